"""Routes API / API routes."""

from fastapi import APIRouter

from tariff_manager.api import (
    clients,
    routes,
    client_routes,
    diesel_prices,
    adjustments,
    tariff_history,
    control_settings,
    rate_sheets,
    documents,
    audit,
)

api_router = APIRouter(prefix="/api")

api_router.include_router(clients.router, prefix="/clients", tags=["clients"])
api_router.include_router(routes.router, prefix="/routes", tags=["routes"])
api_router.include_router(client_routes.router, prefix="/client-routes", tags=["client-routes"])
api_router.include_router(diesel_prices.router, prefix="/diesel-prices", tags=["diesel-prices"])
api_router.include_router(adjustments.router, prefix="/adjustments", tags=["adjustments"])
api_router.include_router(tariff_history.router, prefix="/tariff-history", tags=["tariff-history"])
api_router.include_router(control_settings.router, prefix="/control-settings", tags=["control-settings"])
api_router.include_router(rate_sheets.router, prefix="/rate-sheets", tags=["rate-sheets"])
api_router.include_router(documents.router, prefix="/documents", tags=["documents"])
api_router.include_router(audit.router, prefix="/audit", tags=["audit"])
