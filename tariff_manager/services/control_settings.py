"""
Service Paramètres de contrôle / Control settings service.
Lit la table control_settings en objet typé avec valeurs par défaut.
Reads the control_settings table into a typed object with defaults.
"""

import json
import logging
from dataclasses import dataclass, fields
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tariff_manager.exceptions import ValidationError
from tariff_manager.models.audit import AuditLog
from tariff_manager.models.control_setting import ControlSetting

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


@dataclass(frozen=True)
class ControlSettings:
    """Paramètres de l'indexation / Indexation tunables."""
    base_diesel_price: Decimal = Decimal("21.50")
    diesel_impact_percentage: Decimal = Decimal("35")
    auto_adjust_threshold: Decimal = Decimal("2.5")
    max_monthly_increase: Decimal = Decimal("10")
    rounding_precision: int = 2
    effective_day_of_month: int = 1


_DESCRIPTIONS = {
    "base_diesel_price": "Reference diesel price (per litre) the base rates were negotiated at",
    "diesel_impact_percentage": "Share of a rate that moves with the diesel price",
    "auto_adjust_threshold": "Diesel move (%) from which an adjustment is suggested",
    "max_monthly_increase": "Rate increase (%) above which a proposal is flagged",
    "rounding_precision": "Decimal places of adjusted rates",
    "effective_day_of_month": "Day of month adjusted rates take effect",
}


def _type_of(name: str) -> str:
    return "integer" if name in ("rounding_precision", "effective_day_of_month") else "decimal"


# Echelle des colonnes monétaires Numeric(12, 2) / Scale of the Numeric(12, 2) money columns
MAX_ROUNDING_PRECISION = 2


def _check_range(name: str, value) -> None:
    if name == "base_diesel_price" and value <= 0:
        raise ValidationError("base_diesel_price must be positive", details={"setting": name, "value": str(value)})
    if name == "rounding_precision" and not 0 <= value <= MAX_ROUNDING_PRECISION:
        raise ValidationError(
            f"rounding_precision must be between 0 and {MAX_ROUNDING_PRECISION}",
            details={"setting": name, "value": str(value)},
        )
    if name == "effective_day_of_month" and not 1 <= value <= 28:
        raise ValidationError("effective_day_of_month must be between 1 and 28", details={"setting": name, "value": str(value)})


def _parse(name: str, raw) -> Decimal | int:
    try:
        if _type_of(name) == "integer":
            return int(str(raw))
        return Decimal(str(raw))
    except (ValueError, InvalidOperation) as exc:
        raise ValidationError(f"Invalid value for {name}", details={"setting": name, "value": str(raw)}) from exc


class ControlSettingsService:

    @staticmethod
    async def load(db: AsyncSession) -> ControlSettings:
        """Charger les paramètres (défauts pour clés absentes) / Load settings, defaulting absent keys."""
        result = await db.execute(select(ControlSetting))
        known = {f.name for f in fields(ControlSettings)}
        values = {}
        for row in result.scalars().all():
            if row.setting_key not in known:
                continue
            try:
                value = _parse(row.setting_key, row.setting_value)
                _check_range(row.setting_key, value)
                values[row.setting_key] = value
            except ValidationError:
                logger.warning("Ignoring invalid control setting %s=%r", row.setting_key, row.setting_value)
        return ControlSettings(**values)

    @staticmethod
    async def seed_defaults(db: AsyncSession) -> int:
        """Insérer les clés manquantes / Insert missing keys. Returns the number created."""
        result = await db.execute(select(ControlSetting.setting_key))
        existing = set(result.scalars().all())
        defaults = ControlSettings()
        created = 0
        for f in fields(ControlSettings):
            if f.name in existing:
                continue
            db.add(ControlSetting(
                setting_key=f.name,
                setting_value=str(getattr(defaults, f.name)),
                setting_type=_type_of(f.name),
                description=_DESCRIPTIONS.get(f.name),
                updated_at=_now_iso(),
            ))
            created += 1
        await db.flush()
        return created

    @staticmethod
    async def update(db: AsyncSession, changes: dict, user: str | None = None) -> ControlSettings:
        """Mettre à jour des paramètres / Update settings."""
        known = {f.name for f in fields(ControlSettings)}
        parsed = {}
        for key, value in changes.items():
            if value is None:
                continue
            if key not in known:
                raise ValidationError(f"Unknown control setting {key}", details={"setting": key})
            parsed[key] = _parse(key, value)

        for key, value in parsed.items():
            _check_range(key, value)

        result = await db.execute(select(ControlSetting).where(ControlSetting.setting_key.in_(list(parsed))))
        rows = {row.setting_key: row for row in result.scalars().all()}
        for key, value in parsed.items():
            row = rows.get(key)
            if row is None:
                row = ControlSetting(setting_key=key, setting_type=_type_of(key), description=_DESCRIPTIONS.get(key))
                db.add(row)
            row.setting_value = str(value)
            row.updated_at = _now_iso()
            db.add(AuditLog(
                entity_type="control_setting",
                entity_id=row.id or 0,
                action="UPDATE",
                changes=json.dumps({key: str(value)}),
                user=user,
                timestamp=_now_iso(),
            ))
        await db.flush()
        return await ControlSettingsService.load(db)
