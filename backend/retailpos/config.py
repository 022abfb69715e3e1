# backend/retailpos/config.py
from __future__ import annotations
import os


def _pack_size() -> int:
    raw = os.environ.get("PACK_SIZE", "3")
    size = int(raw)
    if size < 1:
        raise ValueError("PACK_SIZE must be a positive integer")
    return size


def _origins() -> set[str]:
    raw = os.environ.get("CORS_ALLOWED_ORIGINS")
    if not raw:
        return {
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:4173",
            "http://127.0.0.1:4173",
        }
    return {o.strip() for o in raw.split(",") if o.strip()}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/retailpos.sqlite3 unless DATABASE_URL is set
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///retailpos.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Pieces per unit. The one table every conversion and tier-price derivation reads.
    UNIT_RATIOS = {"piece": 1, "pack": _pack_size(), "dozen": 12}
    PRICE_DECIMAL_PLACES = 2

    CORS_ALLOWED_ORIGINS = _origins()

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

    SESSION_ABSOLUTE_TIMEOUT_HOURS = 24
    SESSION_IDLE_TIMEOUT_HOURS = 2
