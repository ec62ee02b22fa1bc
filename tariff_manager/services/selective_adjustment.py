"""
Ajustement sélectif / Selective rate calculation.
Propose un tarif par affectation à partir du base_rate et de l'écart diesel vs référence,
puis applique uniquement les propositions retenues par l'opérateur.
Proposes a rate per assignment from base_rate and the diesel delta from base,
then applies only the proposals the operator picked.
"""

import json
import logging
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tariff_manager.models.audit import AuditLog
from tariff_manager.models.client import Client
from tariff_manager.models.client_route import ClientRoute
from tariff_manager.models.route import Route
from tariff_manager.models.tariff_history import HistorySource
from tariff_manager.services.control_settings import ControlSettings, ControlSettingsService
from tariff_manager.services.diesel_index import DieselIndexService
from tariff_manager.services.rate_calculator import HUNDRED, RateCalculator, round_half_up
from tariff_manager.services.tariff_ledger import TariffLedger

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def _proposal(assignment: ClientRoute, delta: Decimal, settings: ControlSettings) -> dict:
    proposed = RateCalculator.proposed_rate(
        assignment.base_rate, delta, settings.diesel_impact_percentage, settings.rounding_precision,
    )
    current = assignment.current_rate
    adjustment = round_half_up((proposed - current) / current * HUNDRED, 2) if current else Decimal("0")
    return {
        "proposed_rate": proposed,
        "adjustment_percentage": adjustment,
        "exceeds_max": adjustment > settings.max_monthly_increase,
    }


class SelectiveAdjustmentService:

    @staticmethod
    async def preview(db: AsyncSession) -> dict:
        """Propositions pour toutes les affectations actives / Proposals for every active assignment."""
        settings = await ControlSettingsService.load(db)
        diesel = await DieselIndexService.current(db)
        delta = await DieselIndexService.change_from_base(db, settings.base_diesel_price)
        diesel_impact = delta * settings.diesel_impact_percentage / HUNDRED

        result = await db.execute(
            select(ClientRoute, Client, Route)
            .join(Client, Client.id == ClientRoute.client_id)
            .join(Route, Route.id == ClientRoute.route_id)
            .where(ClientRoute.is_active.is_(True))
            .order_by(Client.company_name, Route.route_code)
        )
        items = []
        for assignment, client, route in result.all():
            proposal = _proposal(assignment, delta, settings)
            items.append({
                "client_route_id": assignment.id,
                "client_id": client.id,
                "client_name": client.company_name,
                "route_code": route.route_code,
                "origin": route.origin,
                "destination": route.destination,
                "currency": assignment.currency.value,
                "base_rate": float(assignment.base_rate),
                "current_rate": float(assignment.current_rate),
                "proposed_rate": float(proposal["proposed_rate"]),
                "adjustment_percentage": float(proposal["adjustment_percentage"]),
                "exceeds_max": proposal["exceeds_max"],
            })

        return {
            "current_diesel_price": float(diesel.price_per_liter),
            "base_diesel_price": float(settings.base_diesel_price),
            "diesel_change_percentage": float(round_half_up(delta, 4)),
            "diesel_impact": float(round_half_up(diesel_impact, 4)),
            "max_monthly_increase": float(settings.max_monthly_increase),
            "threshold_reached": abs(delta) >= settings.auto_adjust_threshold,
            "items": items,
        }

    @staticmethod
    async def apply_selected(
        db: AsyncSession,
        assignment_ids: list[int],
        reason: str | None = None,
        today: date | None = None,
        user: str | None = None,
    ) -> dict:
        """
        Appliquer les propositions choisies / Apply the chosen proposals.
        Recalcule côté serveur ; n'écrit aucun marqueur mensuel.
        Recomputed server-side; never writes a monthly run marker.
        """
        today = today or date.today()
        settings = await ControlSettingsService.load(db)
        diesel = await DieselIndexService.current(db)
        delta = await DieselIndexService.change_from_base(db, settings.base_diesel_price)
        diesel_price = diesel.price_per_liter
        reason = reason or f"Selective diesel adjustment ({round_half_up(delta, 2):+}% vs base)"

        applied, skipped, failed = [], [], []
        for assignment_id in dict.fromkeys(assignment_ids):
            assignment = await db.get(ClientRoute, assignment_id)
            if assignment is None or not assignment.is_active:
                skipped.append(assignment_id)
                continue
            try:
                previous_rate = assignment.current_rate
                new_rate = _proposal(assignment, delta, settings)["proposed_rate"]
                await TariffLedger.record(
                    db, assignment, new_rate,
                    previous_rate=previous_rate,
                    diesel_price=diesel_price,
                    diesel_percentage=delta,
                    reason=reason,
                    source=HistorySource.SELECTIVE,
                    today=today,
                )
                assignment.current_rate = new_rate
                assignment.effective_date = today.isoformat()
                assignment.updated_at = _now_iso()
                await db.commit()
                applied.append(assignment_id)
            except Exception:
                await db.rollback()
                logger.exception("Selective adjustment failed for client route %s", assignment_id)
                failed.append(assignment_id)

        if applied:
            db.add(AuditLog(
                entity_type="selective_adjustment",
                entity_id=applied[0],
                action="APPLY",
                changes=json.dumps({"applied": applied, "diesel_change": str(round_half_up(delta, 4))}),
                user=user,
                timestamp=_now_iso(),
            ))
            await db.commit()
        logger.info("Selective adjustment: %d applied, %d skipped, %d failed", len(applied), len(skipped), len(failed))
        return {"applied": applied, "skipped": skipped, "failed": failed}
