"""
Configuration de l'application / Application configuration.
Utilise pydantic-settings pour charger depuis .env ou variables d'environnement.
"""

from pydantic_settings import BaseSettings

DEFAULT_TERMS_AND_CONDITIONS = """1. Rates are subject to fuel price fluctuations and may be adjusted monthly based on the current diesel price.
2. All rates are quoted in South African Rand (ZAR) and exclude VAT unless otherwise stated.
3. Payment terms are as per the client agreement. Late payments may incur interest charges.
4. Minimum charges apply regardless of load size or weight.
5. Rates are valid for the period specified above. Extensions require written confirmation.
6. Additional charges may apply for special handling, hazardous materials, or after-hours deliveries.
7. The company reserves the right to adjust rates with 30 days written notice.
8. These rates supersede all previous quotations for the same routes."""


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Matanuska Tariff Manager"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = True

    # Database - SQLite par défaut pour le développement
    # Database - SQLite by default for development
    DATABASE_URL: str = "sqlite+aiosqlite:///./tariffs.db"
    DB_POOL_TIMEOUT: int = 30

    # CORS - origines autorisées / allowed origins
    CORS_ORIGINS: list[str] = ["http://localhost:5173", "http://localhost:3000"]

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_DEFAULT: str = "60/minute"
    RATE_LIMIT_ADJUSTMENTS: str = "5/minute"

    # Stockage des documents / Document storage
    FILE_STORE_DIR: str = "./storage/documents"
    MAX_UPLOAD_MB: int = 20

    # Fiche tarifaire / Rate sheet layout
    RATE_SHEET_LINES_PER_PAGE: int = 60
    RATE_SHEET_WRAP_WIDTH: int = 110
    RATE_SHEET_VALIDITY_MONTHS: int = 1

    # Identité société / Company branding
    COMPANY_NAME: str = "Matanuska Transport"
    COMPANY_TAGLINE: str = "Your Trusted Logistics Partner"
    COMPANY_ADDRESS: str = "123 Logistics Drive, Johannesburg, 2000"
    COMPANY_PHONE: str = "+27 11 555 0000"
    COMPANY_EMAIL: str = "rates@matanuska.co.za"
    COMPANY_WEBSITE: str = "www.matanuska.co.za"
    COMPANY_VAT_NUMBER: str = "4000000000"
    COMPANY_REGISTRATION_NUMBER: str = "2020/000000/07"
    DEFAULT_TERMS: str = DEFAULT_TERMS_AND_CONDITIONS

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
