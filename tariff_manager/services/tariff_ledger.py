"""
Registre des tarifs / Tariff ledger.
Journal en ajout seul de chaque mouvement de current_rate.
Append-only journal of every current_rate movement.
"""

from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tariff_manager.models.client_route import ClientRoute
from tariff_manager.models.tariff_history import HistorySource, TariffHistory
from tariff_manager.services.rate_calculator import RateCalculator, round_half_up, to_decimal


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def period_month(day: date) -> str:
    """Premier jour du mois / First day of the month, YYYY-MM-01."""
    return day.replace(day=1).isoformat()


def _months_back(day: date, months: int) -> date:
    month_index = day.year * 12 + (day.month - 1) - months
    return date(month_index // 12, month_index % 12 + 1, 1)


class TariffLedger:

    @staticmethod
    async def record(
        db: AsyncSession,
        assignment: ClientRoute,
        new_rate,
        *,
        previous_rate=None,
        diesel_price=None,
        diesel_percentage=None,
        adjustment_percentage=None,
        reason: str | None = None,
        source: HistorySource = HistorySource.MANUAL,
        today: date | None = None,
    ) -> TariffHistory:
        """
        Ajouter une entrée / Append an entry.
        adjustment_percentage est dérivé des tarifs sauf s'il est fourni (pourcentage appliqué).
        adjustment_percentage is derived from the rates unless given (the applied percentage).
        """
        previous = to_decimal(previous_rate if previous_rate is not None else assignment.current_rate)
        new = to_decimal(new_rate)
        if adjustment_percentage is None:
            adjustment_percentage = RateCalculator.percentage_change(previous, new)
        entry = TariffHistory(
            client_route_id=assignment.id,
            client_id=assignment.client_id,
            route_id=assignment.route_id,
            period_month=period_month(today or date.today()),
            previous_rate=previous,
            new_rate=new,
            currency=assignment.currency,
            diesel_price_at_change=to_decimal(diesel_price) if diesel_price is not None else None,
            diesel_percentage_change=round_half_up(diesel_percentage, 4) if diesel_percentage is not None else None,
            adjustment_percentage=round_half_up(adjustment_percentage, 4),
            adjustment_reason=reason,
            source=source,
            created_at=_now_iso(),
        )
        db.add(entry)
        await db.flush()
        return entry

    @staticmethod
    async def entries(
        db: AsyncSession,
        client_id: int | None = None,
        client_route_id: int | None = None,
        period: str | None = None,
        source: HistorySource | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> tuple[int, list[TariffHistory]]:
        """Lister les entrées filtrées, plus récentes d'abord / List filtered entries, newest first."""
        query = select(TariffHistory).order_by(TariffHistory.id.desc())
        count_query = select(func.count(TariffHistory.id))

        if client_id is not None:
            query = query.where(TariffHistory.client_id == client_id)
            count_query = count_query.where(TariffHistory.client_id == client_id)
        if client_route_id is not None:
            query = query.where(TariffHistory.client_route_id == client_route_id)
            count_query = count_query.where(TariffHistory.client_route_id == client_route_id)
        if period:
            query = query.where(TariffHistory.period_month == period)
            count_query = count_query.where(TariffHistory.period_month == period)
        if source is not None:
            query = query.where(TariffHistory.source == source)
            count_query = count_query.where(TariffHistory.source == source)

        total = await db.scalar(count_query) or 0
        result = await db.execute(query.offset(offset).limit(limit))
        return total, list(result.scalars().all())

    @staticmethod
    async def summary(db: AsyncSession, today: date | None = None) -> dict:
        """Synthèse du registre / Ledger summary."""
        since = _months_back(today or date.today(), 2).isoformat()
        total = await db.scalar(select(func.count(TariffHistory.id))) or 0
        avg = await db.scalar(select(func.avg(TariffHistory.adjustment_percentage)))
        recent = await db.scalar(
            select(func.count(TariffHistory.id)).where(TariffHistory.period_month >= since)
        ) or 0
        return {
            "total_entries": total,
            "average_adjustment_percentage": float(round_half_up(Decimal(str(avg)), 4)) if avg is not None else None,
            "entries_last_three_months": recent,
            "since": since,
        }
