"""
Connexion a la base de donnees / Database connection.
Supporte SQLite (dev) et PostgreSQL (prod) via SQLAlchemy 2.0 async.
"""

import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from tariff_manager.config import settings

logger = logging.getLogger(__name__)

_is_sqlite = settings.DATABASE_URL.startswith("sqlite")

# Configuration moteur / Engine configuration
_engine_kwargs: dict = {
    "echo": settings.DEBUG,
}

# PostgreSQL : pool de connexions / PostgreSQL: connection pooling
if not _is_sqlite:
    _engine_kwargs.update({
        "pool_size": 5,
        "max_overflow": 5,
        "pool_timeout": settings.DB_POOL_TIMEOUT,
        "pool_recycle": 1800,
        "pool_pre_ping": True,
    })

engine = create_async_engine(settings.DATABASE_URL, **_engine_kwargs)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncSession:
    """Dependance FastAPI pour obtenir une session DB / FastAPI dependency for DB session."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db():
    """Creer les tables au demarrage / Create tables on startup."""
    # Enregistrer tous les modeles sur Base.metadata / Register every model on Base.metadata
    import tariff_manager.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    # Ajouter les colonnes manquantes sur tables existantes /
    # Add missing columns on existing tables
    await _migrate_missing_columns(engine)

    async with async_session() as session:
        await _seed_control_settings(session)
        await _backfill_legacy_rate_terms(session)
        await session.commit()


async def _seed_control_settings(session: AsyncSession) -> None:
    """Inserer les parametres par defaut absents / Insert missing default control settings."""
    from tariff_manager.services.control_settings import ControlSettingsService

    created = await ControlSettingsService.seed_defaults(session)
    if created:
        logger.info("[seed] %d default control setting(s) created", created)


async def _backfill_legacy_rate_terms(session: AsyncSession) -> None:
    """Deplacer les frais/TVA encodes dans notes vers les colonnes dediees /
    Move additional charges / VAT flags encoded in notes into dedicated columns."""
    from tariff_manager.services.assignment_store import AssignmentStore

    migrated = await AssignmentStore.backfill_legacy_terms(session)
    if migrated:
        logger.info("[backfill] Moved legacy rate terms out of notes for %d assignment(s)", migrated)


def _column_default_clause(col_type_str: str) -> str:
    """Clause DEFAULT pour ALTER TABLE / DEFAULT clause for ALTER TABLE."""
    if col_type_str == "BOOLEAN":
        return "DEFAULT FALSE" if not _is_sqlite else "DEFAULT 0"
    if col_type_str.startswith("VARCHAR") or col_type_str == "TEXT":
        return "DEFAULT ''"
    if col_type_str in ("INTEGER", "BIGINT") or col_type_str.startswith(("NUMERIC", "FLOAT")):
        return "DEFAULT 0"
    return ""


async def _migrate_missing_columns(target: AsyncEngine) -> None:
    """Verifier et ajouter les colonnes manquantes / Check and add missing columns via ALTER TABLE.

    Couvre les colonnes ajoutees apres coup (currency, additional_charges,
    includes_vat, route_description...). Supporte SQLite (PRAGMA) et PostgreSQL.
    """
    async with target.begin() as conn:
        for table in Base.metadata.sorted_tables:
            if _is_sqlite:
                result = await conn.execute(text(f"PRAGMA table_info('{table.name}')"))
                existing_cols = {row[1] for row in result.fetchall()}
            else:
                result = await conn.execute(text(
                    "SELECT column_name FROM information_schema.columns "
                    "WHERE table_name = :table_name AND table_schema = 'public'"
                ), {"table_name": table.name})
                existing_cols = {row[0] for row in result.fetchall()}

            for col in table.columns:
                if col.name in existing_cols:
                    continue
                col_type = col.type.compile(dialect=target.dialect)
                default = _column_default_clause(str(col_type))
                await conn.execute(text(
                    f'ALTER TABLE "{table.name}" ADD COLUMN "{col.name}" {col_type} {default}'
                ))
                logger.info("[migrate] Added column %s.%s (%s)", table.name, col.name, col_type)
