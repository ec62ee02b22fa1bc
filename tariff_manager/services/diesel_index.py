"""
Index du prix du diesel / Diesel price index.
Série datée de relevés, en ajout seul ; chaque relevé garde la variation vs le précédent.
Dated, append-only series of samples; each sample keeps its change vs the prior one.
"""

import json
import logging
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tariff_manager.exceptions import ValidationError
from tariff_manager.models.audit import AuditLog
from tariff_manager.models.diesel_price import DieselPrice
from tariff_manager.services.rate_calculator import RateCalculator, round_half_up, to_decimal

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def parse_iso_date(value) -> str:
    """Date ISO normalisée / Normalised ISO date, YYYY-MM-DD."""
    if isinstance(value, date):
        return value.isoformat()
    try:
        return date.fromisoformat(str(value)).isoformat()
    except ValueError as exc:
        raise ValidationError("effective_date must be an ISO date (YYYY-MM-DD)", details={"effective_date": str(value)}) from exc


def _moving_average(values: list[Decimal], end: int, window: int) -> Decimal:
    chunk = values[max(0, end - window + 1): end + 1]
    return round_half_up(sum(chunk) / len(chunk), 4)


class DieselIndexService:

    @staticmethod
    async def append(
        db: AsyncSession,
        effective_date,
        price_per_liter,
        notes: str | None = None,
        user: str | None = None,
    ) -> DieselPrice:
        """
        Ajouter un relevé / Append a sample.
        previous_price = dernier relevé daté avant le nouveau / latest sample dated before the new one.
        """
        eff = parse_iso_date(effective_date)
        try:
            price = to_decimal(price_per_liter)
        except (InvalidOperation, ValueError, TypeError) as exc:
            raise ValidationError("Diesel price must be a number", details={"price_per_liter": str(price_per_liter)}) from exc
        if not price.is_finite():
            raise ValidationError("Diesel price must be a finite number", details={"price_per_liter": str(price)})
        if price < 0:
            raise ValidationError("Diesel price cannot be negative", details={"price_per_liter": str(price)})

        duplicate = await db.scalar(select(DieselPrice.id).where(DieselPrice.effective_date == eff))
        if duplicate is not None:
            raise ValidationError(
                f"A diesel price already exists for {eff}",
                details={"effective_date": eff, "diesel_price_id": duplicate},
            )

        previous = await db.scalar(
            select(DieselPrice)
            .where(DieselPrice.effective_date < eff)
            .order_by(DieselPrice.effective_date.desc())
            .limit(1)
        )
        previous_price = previous.price_per_liter if previous else None
        change = None
        if previous_price is not None and previous_price != 0:
            change = round_half_up(RateCalculator.percentage_change(previous_price, price), 4)

        sample = DieselPrice(
            effective_date=eff,
            price_per_liter=price,
            previous_price=previous_price,
            percentage_change=change,
            notes=notes,
            created_at=_now_iso(),
        )
        db.add(sample)
        await db.flush()
        await db.refresh(sample)

        db.add(AuditLog(
            entity_type="diesel_price",
            entity_id=sample.id,
            action="CREATE",
            changes=json.dumps({"effective_date": eff, "price_per_liter": str(price)}),
            user=user,
            timestamp=_now_iso(),
        ))
        await db.flush()
        logger.info("Diesel price %s recorded for %s (change %s%%)", price, eff, change)
        return sample

    @staticmethod
    async def current(db: AsyncSession) -> DieselPrice | None:
        """Relevé le plus récent / Most recent sample."""
        return await db.scalar(
            select(DieselPrice).order_by(DieselPrice.effective_date.desc()).limit(1)
        )

    @staticmethod
    async def change_from_base(db: AsyncSession, base_price) -> Decimal:
        """Variation (%) du dernier relevé vs le prix de référence / Change (%) of latest sample vs base."""
        latest = await DieselIndexService.current(db)
        if latest is None:
            raise ValidationError("No diesel price has been recorded yet")
        return RateCalculator.diesel_change_from_base(latest.price_per_liter, base_price)

    @staticmethod
    async def history(db: AsyncSession, limit: int | None = None) -> list[DieselPrice]:
        """Série ascendante / Ascending series (the most recent `limit` samples)."""
        query = select(DieselPrice).order_by(DieselPrice.effective_date.desc())
        if limit:
            query = query.limit(limit)
        result = await db.execute(query)
        return list(reversed(result.scalars().all()))

    @staticmethod
    async def trend(db: AsyncSession, limit: int | None = None) -> list[dict]:
        """Moyennes mobiles 3 et 6 relevés / 3- and 6-sample trailing moving averages."""
        samples = await DieselIndexService.history(db)
        prices = [s.price_per_liter for s in samples]
        rows = [
            {
                "effective_date": s.effective_date,
                "price_per_liter": float(s.price_per_liter),
                "percentage_change": float(s.percentage_change) if s.percentage_change is not None else None,
                "moving_avg_3m": float(_moving_average(prices, i, 3)),
                "moving_avg_6m": float(_moving_average(prices, i, 6)),
            }
            for i, s in enumerate(samples)
        ]
        if limit:
            rows = rows[-limit:]
        return rows
