# backend/backoffice/config.py
from __future__ import annotations
import json
import os


def _json_env(name: str, default: dict) -> dict:
    raw = os.environ.get(name)
    if not raw:
        return dict(default)
    return json.loads(raw)


# POS branch codes keyed by location id
DEFAULT_POS_BRANCH_CODES = {
    "cabildo": 1,
    "carranza": 2,
    "pacifico": 3,
    "lavalle": 4,
    "rivadavia": 5,
    "aguero": 6,
    "dorrego": 7,
    "dean_dennys": 8,
}

# Unit prices in cents keyed by product category
DEFAULT_CATEGORY_PRICES_CENTS = {
    "empanadas": 80000,
    "croissants": 50000,
    "pizzas": 500000,
    "large_soda": 150000,
    "small_soda": 100000,
    "small_water": 80000,
    "beer": 200000,
    "dough": 120000,
}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/backoffice.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///backoffice.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Directory holding the daily POS export CSVs
    POS_EXPORT_DIR = os.environ.get("POS_EXPORT_DIR", "pos_exports")

    # Differences above this amount raise a stock/cash alert ($5000)
    STOCK_CASH_ALERT_THRESHOLD_CENTS = int(os.environ.get("STOCK_CASH_ALERT_THRESHOLD_CENTS", "500000"))
    PENDING_COMPARISON_LIMIT = int(os.environ.get("PENDING_COMPARISON_LIMIT", "10"))

    POS_BRANCH_CODES = _json_env("POS_BRANCH_CODES", DEFAULT_POS_BRANCH_CODES)
    CATEGORY_PRICES_CENTS = _json_env("CATEGORY_PRICES_CENTS", DEFAULT_CATEGORY_PRICES_CENTS)
