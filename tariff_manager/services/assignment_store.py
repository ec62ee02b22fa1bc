"""
Affectations client-route / Client-route assignment store.
Création, réactivation, modification manuelle et désactivation des tarifs client.
Create, reactivate, manually edit and deactivate client rates.
"""

import json
import logging
import re
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tariff_manager.exceptions import AssignmentConflict, NotFoundError, ValidationError
from tariff_manager.models.audit import AuditLog
from tariff_manager.models.client import Client
from tariff_manager.models.client_route import ClientRoute
from tariff_manager.models.route import Route
from tariff_manager.models.tariff_history import HistorySource
from tariff_manager.services.diesel_index import DieselIndexService, parse_iso_date
from tariff_manager.services.rate_calculator import RateCalculator, to_decimal
from tariff_manager.services.tariff_ledger import TariffLedger

logger = logging.getLogger(__name__)

# Champs qui déclenchent une recomposition du tarif / Fields that trigger rate recomposition
_COMPOSER_FIELDS = ("base_rate", "additional_charges", "includes_vat")
_MONEY_FIELDS = ("base_rate", "current_rate", "additional_charges", "minimum_charge")
_NULLABLE_FIELDS = ("minimum_charge", "route_description", "notes")

# Encodage historique dans notes / Legacy encoding inside notes, e.g.
#   "Additional charges: R 150.00" / "Includes VAT: yes" / "VAT inclusive"
_LEGACY_CHARGES_RE = re.compile(
    r"additional[ _]charges\s*[:=]\s*(?:R|ZAR|\$|USD)?\s*([0-9][0-9,]*(?:\.[0-9]+)?)",
    re.IGNORECASE,
)
_LEGACY_VAT_RE = re.compile(
    r"(?:includes[ _]vat\s*[:=]\s*(yes|no|true|false|1|0))|(vat[ -]incl(?:usive|\.)?)",
    re.IGNORECASE,
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def _audit(db: AsyncSession, assignment_id: int, action: str, changes: dict, user: str | None) -> None:
    db.add(AuditLog(
        entity_type="client_route",
        entity_id=assignment_id,
        action=action,
        changes=json.dumps(changes, default=str),
        user=user,
        timestamp=_now_iso(),
    ))


def parse_legacy_rate_terms(notes: str | None) -> tuple[Decimal | None, bool | None, str | None]:
    """
    Extraire frais additionnels / TVA encodés dans notes.
    Extract additional charges and VAT flag encoded in free-text notes.

    Retourne (additional_charges, includes_vat, notes nettoyées) ; None quand absent.
    Returns (additional_charges, includes_vat, cleaned notes); None when absent.
    """
    if not notes:
        return None, None, notes

    charges = None
    includes_vat = None
    remaining = notes

    match = _LEGACY_CHARGES_RE.search(remaining)
    if match:
        try:
            charges = Decimal(match.group(1).replace(",", ""))
        except InvalidOperation:
            charges = None
        else:
            remaining = remaining[:match.start()] + remaining[match.end():]

    match = _LEGACY_VAT_RE.search(remaining)
    if match:
        flag = match.group(1)
        includes_vat = flag.lower() in ("yes", "true", "1") if flag else True
        remaining = remaining[:match.start()] + remaining[match.end():]

    cleaned = "\n".join(line.strip(" ;,.") for line in remaining.splitlines())
    cleaned = "\n".join(line for line in cleaned.splitlines() if line).strip()
    return charges, includes_vat, cleaned or None


def _validate_money(values: dict) -> None:
    for name in _MONEY_FIELDS:
        value = values.get(name)
        if value is not None and to_decimal(value) < 0:
            raise ValidationError(f"{name} cannot be negative", details={name: str(value)})


def _normalise_dates(values: dict) -> None:
    if values.get("effective_date") is not None:
        values["effective_date"] = parse_iso_date(values["effective_date"])


class AssignmentStore:

    @staticmethod
    async def get(db: AsyncSession, assignment_id: int) -> ClientRoute:
        assignment = await db.get(ClientRoute, assignment_id)
        if not assignment:
            raise NotFoundError("Client route", assignment_id)
        return assignment

    @staticmethod
    async def assign(
        db: AsyncSession,
        client_id: int,
        route_id: int,
        terms: dict,
        user: str | None = None,
        today: date | None = None,
    ) -> ClientRoute:
        """
        Affecter une route à un client / Assign a route to a client.
        Une paire inactive est réactivée (même ligne) ; une paire active lève AssignmentConflict.
        An inactive pairing is reactivated in place; an active one raises AssignmentConflict.
        """
        today = today or date.today()
        if not await db.get(Client, client_id):
            raise NotFoundError("Client", client_id)
        if not await db.get(Route, route_id):
            raise NotFoundError("Route", route_id)

        terms = {k: v for k, v in terms.items() if v is not None}
        if "base_rate" not in terms:
            raise ValidationError("base_rate is required")
        _validate_money(terms)
        _normalise_dates(terms)

        override = terms.pop("current_rate", None)
        composed = RateCalculator.compose_current_rate(
            terms["base_rate"], terms.get("additional_charges", 0), terms.get("includes_vat", False),
        )
        new_rate = to_decimal(override) if override is not None else composed
        for name in ("base_rate", "additional_charges", "minimum_charge"):
            if name in terms:
                terms[name] = to_decimal(terms[name])
        terms.setdefault("effective_date", today.isoformat())

        existing = await db.scalar(
            select(ClientRoute).where(ClientRoute.client_id == client_id, ClientRoute.route_id == route_id)
        )
        if existing is not None and existing.is_active:
            raise AssignmentConflict(client_id, route_id, existing.id)

        if existing is not None:
            previous_rate = existing.current_rate
            for key, value in terms.items():
                setattr(existing, key, value)
            existing.is_active = True
            existing.updated_at = _now_iso()
            if new_rate != previous_rate:
                diesel = await DieselIndexService.current(db)
                await TariffLedger.record(
                    db, existing, new_rate,
                    previous_rate=previous_rate,
                    diesel_price=diesel.price_per_liter if diesel else None,
                    reason="Route reactivated",
                    source=HistorySource.ASSIGNMENT,
                    today=today,
                )
            existing.current_rate = new_rate
            await db.flush()
            _audit(db, existing.id, "REACTIVATE", {"current_rate": new_rate}, user)
            await db.flush()
            await db.refresh(existing)
            logger.info("Client route %s reactivated (client=%s route=%s)", existing.id, client_id, route_id)
            return existing

        assignment = ClientRoute(
            client_id=client_id,
            route_id=route_id,
            current_rate=new_rate,
            created_at=_now_iso(),
            updated_at=_now_iso(),
            **terms,
        )
        db.add(assignment)
        await db.flush()
        await db.refresh(assignment)
        _audit(db, assignment.id, "CREATE", {"base_rate": assignment.base_rate, "current_rate": new_rate}, user)
        await db.flush()
        return assignment

    @staticmethod
    async def update(
        db: AsyncSession,
        assignment_id: int,
        changes: dict,
        user: str | None = None,
        today: date | None = None,
    ) -> ClientRoute:
        """
        Modification manuelle / Manual edit.
        Recompose depuis base + frais + TVA, sauf si current_rate est fourni (saisie directe).
        Recomposes from base + extras + VAT unless current_rate is given (direct override).
        """
        assignment = await AssignmentStore.get(db, assignment_id)
        changes = {k: v for k, v in changes.items() if v is not None or k in _NULLABLE_FIELDS}
        reason = changes.pop("reason", None)
        override = changes.pop("current_rate", None)
        _validate_money({**changes, "current_rate": override})
        _normalise_dates(changes)

        previous_rate = assignment.current_rate
        for key, value in changes.items():
            if key in ("base_rate", "additional_charges", "minimum_charge") and value is not None:
                value = to_decimal(value)
            setattr(assignment, key, value)

        if override is not None:
            new_rate = to_decimal(override)
        elif any(name in changes for name in _COMPOSER_FIELDS):
            new_rate = RateCalculator.compose_current_rate(
                assignment.base_rate, assignment.additional_charges, assignment.includes_vat,
            )
        else:
            new_rate = previous_rate

        if new_rate != previous_rate:
            diesel = await DieselIndexService.current(db)
            await TariffLedger.record(
                db, assignment, new_rate,
                previous_rate=previous_rate,
                diesel_price=diesel.price_per_liter if diesel else None,
                reason=reason or "Manual rate adjustment",
                source=HistorySource.MANUAL,
                today=today,
            )
            assignment.current_rate = new_rate

        assignment.updated_at = _now_iso()
        _audit(db, assignment.id, "UPDATE", {**changes, "current_rate": new_rate}, user)
        await db.flush()
        await db.refresh(assignment)
        return assignment

    @staticmethod
    async def deactivate(db: AsyncSession, assignment_id: int, user: str | None = None) -> ClientRoute:
        """Désactiver sans supprimer / Deactivate, never delete."""
        assignment = await AssignmentStore.get(db, assignment_id)
        assignment.is_active = False
        assignment.updated_at = _now_iso()
        _audit(db, assignment.id, "DEACTIVATE", {"is_active": False}, user)
        await db.flush()
        await db.refresh(assignment)
        return assignment

    @staticmethod
    async def list_for_client(db: AsyncSession, client_id: int, active_only: bool = True) -> list[ClientRoute]:
        query = select(ClientRoute).where(ClientRoute.client_id == client_id).order_by(ClientRoute.id)
        if active_only:
            query = query.where(ClientRoute.is_active.is_(True))
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def active(db: AsyncSession) -> list[ClientRoute]:
        result = await db.execute(
            select(ClientRoute).where(ClientRoute.is_active.is_(True)).order_by(ClientRoute.id)
        )
        return list(result.scalars().all())

    @staticmethod
    async def active_ids(db: AsyncSession) -> list[int]:
        result = await db.execute(
            select(ClientRoute.id).where(ClientRoute.is_active.is_(True)).order_by(ClientRoute.id)
        )
        return list(result.scalars().all())

    @staticmethod
    async def backfill_legacy_terms(db: AsyncSession) -> int:
        """Migrer l'encodage historique des notes / Migrate the legacy notes encoding. Returns rows changed."""
        result = await db.execute(select(ClientRoute).where(ClientRoute.notes.is_not(None)))
        migrated = 0
        for assignment in result.scalars().all():
            charges, includes_vat, cleaned = parse_legacy_rate_terms(assignment.notes)
            if charges is None and includes_vat is None:
                continue
            if charges is not None and not assignment.additional_charges:
                assignment.additional_charges = charges
            if includes_vat is not None and not assignment.includes_vat:
                assignment.includes_vat = includes_vat
            assignment.notes = cleaned
            migrated += 1
        await db.flush()
        return migrated
