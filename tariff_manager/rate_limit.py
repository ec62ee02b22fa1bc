"""Rate limiting global / Global rate limiter.

Utilise slowapi pour limiter les requetes par IP.
Limite par defaut sur toutes les routes, plus stricte sur les ajustements en lot.
Default limit on every route, tighter on batch adjustments.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from tariff_manager.config import settings

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
    enabled=settings.RATE_LIMIT_ENABLED,
)
