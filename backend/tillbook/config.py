# backend/tillbook/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/tillbook.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///tillbook.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Menu catalog JSON; built-in default menus are used when unset
    CATALOG_PATH = os.environ.get("TILLBOOK_CATALOG_PATH")

    DEFAULT_ITEM_QUANTITY = int(os.environ.get("DEFAULT_ITEM_QUANTITY", "10"))
    DEFAULT_ITEM_PRICE = os.environ.get("DEFAULT_ITEM_PRICE", "25.00")
    LAYAWAY_DOWN_PAYMENT_RATE = os.environ.get("LAYAWAY_DOWN_PAYMENT_RATE", "0.30")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
