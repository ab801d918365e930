# backend/storefront/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/storefront.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///storefront.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Order totals are quantized to this many decimals (currency minor unit)
    CURRENCY_DECIMAL_PLACES = int(os.environ.get("CURRENCY_DECIMAL_PLACES", "2"))
    DEFAULT_CURRENCY = os.environ.get("DEFAULT_CURRENCY", "ARS")

    # Local fallback cache for tenant settings, relative to the instance folder.
    # Empty string keeps the cache in memory only.
    LOCAL_CACHE_FILENAME = os.environ.get("LOCAL_CACHE_FILENAME", "settings_cache.json")

    # Customer notifications; without a webhook the message is only logged
    NOTIFY_WEBHOOK_URL = os.environ.get("NOTIFY_WEBHOOK_URL") or None
    NOTIFY_TIMEOUT_SECONDS = float(os.environ.get("NOTIFY_TIMEOUT_SECONDS", "5"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Browser origins allowed to call the API (storefront and dashboard dev servers)
    CORS_ALLOWED_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173,http://127.0.0.1:4173",
        ).split(",")
        if origin.strip()
    ]
