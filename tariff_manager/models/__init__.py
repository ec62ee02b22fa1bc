"""
Modèles SQLAlchemy / SQLAlchemy models.
Importer tous les modèles ici pour que create_all les détecte.
Import all models here so create_all can detect them.
"""

from tariff_manager.models.client import Client, Currency
from tariff_manager.models.route import Route
from tariff_manager.models.client_route import ClientRoute, RateType
from tariff_manager.models.diesel_price import DieselPrice
from tariff_manager.models.tariff_history import TariffHistory, HistorySource
from tariff_manager.models.monthly_adjustment import MonthlyAdjustmentRun
from tariff_manager.models.control_setting import ControlSetting
from tariff_manager.models.document import Document, DocumentType, REQUIRED_DOCUMENT_TYPES
from tariff_manager.models.audit import AuditLog

__all__ = [
    "Client",
    "Currency",
    "Route",
    "ClientRoute",
    "RateType",
    "DieselPrice",
    "TariffHistory",
    "HistorySource",
    "MonthlyAdjustmentRun",
    "ControlSetting",
    "Document",
    "DocumentType",
    "REQUIRED_DOCUMENT_TYPES",
    "AuditLog",
]
