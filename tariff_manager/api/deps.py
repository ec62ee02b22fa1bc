"""
Dépendances communes des routes / Shared route dependencies.
Injectées dans les routes via Depends().
"""

from fastapi import Header


async def get_operator(x_operator: str | None = Header(default=None, max_length=100)) -> str | None:
    """Opérateur déclaré pour l'audit (pas d'authentification) / Declared operator for audit (no authentication)."""
    return x_operator or None
