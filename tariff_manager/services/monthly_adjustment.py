"""
Orchestrateur d'ajustement mensuel / Monthly adjustment orchestrator.

Applique un pourcentage uniforme à toutes les affectations actives, une fois par mois.
Applies one flat percentage to every active assignment, at most once per month.

    IDLE -> VALIDATING -> APPLYING -> COMMITTED
                              \\-> FAILED (partiel / partial)

Chaque affectation est validée individuellement : un échec est journalisé,
compté et n'interrompt pas la boucle.
Each assignment is committed on its own: a failure is logged, counted and
does not stop the loop.
"""

import json
import logging
from calendar import monthrange
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tariff_manager.exceptions import AlreadyAppliedThisPeriod, InvalidPercentage
from tariff_manager.models.audit import AuditLog
from tariff_manager.models.client_route import ClientRoute
from tariff_manager.models.monthly_adjustment import MonthlyAdjustmentRun
from tariff_manager.models.tariff_history import HistorySource
from tariff_manager.services.assignment_store import AssignmentStore
from tariff_manager.services.control_settings import ControlSettingsService
from tariff_manager.services.diesel_index import DieselIndexService
from tariff_manager.services.rate_calculator import RateCalculator, to_decimal
from tariff_manager.services.tariff_ledger import TariffLedger, period_month

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def validate_percentage(value) -> Decimal:
    """Pourcentage fini obligatoire / A finite percentage is required."""
    if isinstance(value, bool) or value is None:
        raise InvalidPercentage(value)
    try:
        percentage = to_decimal(value)
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise InvalidPercentage(value) from exc
    if not percentage.is_finite():
        raise InvalidPercentage(value)
    return percentage


def is_first_wednesday(day: date) -> bool:
    """Premier mercredi du mois / First Wednesday of the month."""
    return day.weekday() == 2 and day.day <= 7


def effective_date_for(day: date, day_of_month: int) -> date:
    last_day = monthrange(day.year, day.month)[1]
    return date(day.year, day.month, max(1, min(day_of_month, last_day)))


@dataclass
class AdjustmentOutcome:
    """Résultat d'une exécution / Run outcome."""
    status: str
    adjustment_month: str
    percentage: float
    adjusted: int = 0
    failed: int = 0
    total: int = 0
    failed_ids: list[int] = field(default_factory=list)
    run_id: int | None = None

    def to_dict(self) -> dict:
        return asdict(self)


class MonthlyAdjustmentOrchestrator:

    @staticmethod
    async def run(
        db: AsyncSession,
        percentage,
        reason: str | None = None,
        today: date | None = None,
        user: str | None = None,
    ) -> AdjustmentOutcome:
        """
        Appliquer l'ajustement mensuel / Apply the monthly adjustment.
        Lève InvalidPercentage ou AlreadyAppliedThisPeriod avant toute écriture.
        Raises InvalidPercentage or AlreadyAppliedThisPeriod before any write.
        """
        # VALIDATING
        p = validate_percentage(percentage)
        today = today or date.today()
        month = period_month(today)

        existing = await db.scalar(
            select(MonthlyAdjustmentRun.id).where(MonthlyAdjustmentRun.adjustment_month == month)
        )
        if existing is not None:
            logger.warning("Monthly adjustment for %s rejected: already applied (run %s)", month, existing)
            raise AlreadyAppliedThisPeriod(month)

        settings = await ControlSettingsService.load(db)
        diesel = await DieselIndexService.current(db)
        diesel_price = diesel.price_per_liter if diesel else None
        effective = effective_date_for(today, settings.effective_day_of_month).isoformat()
        reason = reason or f"Monthly diesel adjustment of {p:+}%"
        ids = await AssignmentStore.active_ids(db)

        # APPLYING
        logger.info("Monthly adjustment %s: applying %s%% to %d assignment(s)", month, p, len(ids))
        outcome = AdjustmentOutcome(status="completed", adjustment_month=month, percentage=float(p), total=len(ids))
        for assignment_id in ids:
            try:
                assignment = await db.get(ClientRoute, assignment_id)
                previous_rate = assignment.current_rate
                new_rate = RateCalculator.scale_rate(previous_rate, p, settings.rounding_precision)
                await TariffLedger.record(
                    db, assignment, new_rate,
                    previous_rate=previous_rate,
                    diesel_price=diesel_price,
                    diesel_percentage=p,
                    adjustment_percentage=p,
                    reason=reason,
                    source=HistorySource.MONTHLY,
                    today=today,
                )
                assignment.current_rate = new_rate
                assignment.effective_date = effective
                assignment.updated_at = _now_iso()
                await db.commit()
                outcome.adjusted += 1
            except Exception:
                await db.rollback()
                logger.exception("Monthly adjustment %s failed for client route %s", month, assignment_id)
                outcome.failed_ids.append(assignment_id)
        outcome.failed = len(outcome.failed_ids)

        # COMMITTED
        run = MonthlyAdjustmentRun(
            adjustment_month=month,
            diesel_percentage_change=p,
            applied_at=_now_iso(),
            total_routes_adjusted=outcome.adjusted,
            total_routes_failed=outcome.failed,
            notes=reason,
        )
        db.add(run)
        try:
            await db.flush()
        except IntegrityError as exc:
            await db.rollback()
            logger.warning("Monthly adjustment for %s rejected at commit: run marker already exists", month)
            raise AlreadyAppliedThisPeriod(month) from exc

        db.add(AuditLog(
            entity_type="monthly_adjustment",
            entity_id=run.id,
            action="APPLY",
            changes=json.dumps({
                "percentage": str(p),
                "adjusted": outcome.adjusted,
                "failed": outcome.failed,
                "failed_ids": outcome.failed_ids,
            }),
            user=user,
            timestamp=_now_iso(),
        ))
        await db.commit()
        outcome.run_id = run.id
        logger.info(
            "Monthly adjustment %s finished: %d adjusted, %d failed of %d",
            month, outcome.adjusted, outcome.failed, outcome.total,
        )
        return outcome

    @staticmethod
    async def status(db: AsyncSession, today: date | None = None) -> dict:
        """État du mois courant / Current month status. is_due est indicatif / is_due is advisory."""
        today = today or date.today()
        month = period_month(today)
        applied = await db.scalar(
            select(MonthlyAdjustmentRun).where(MonthlyAdjustmentRun.adjustment_month == month)
        )
        last = await db.scalar(
            select(MonthlyAdjustmentRun).order_by(MonthlyAdjustmentRun.adjustment_month.desc()).limit(1)
        )
        return {
            "adjustment_month": month,
            "already_applied": applied is not None,
            "is_due": is_first_wednesday(today),
            "last_run": last,
        }

    @staticmethod
    async def runs(db: AsyncSession) -> list[MonthlyAdjustmentRun]:
        result = await db.execute(
            select(MonthlyAdjustmentRun).order_by(MonthlyAdjustmentRun.adjustment_month.desc())
        )
        return list(result.scalars().all())
