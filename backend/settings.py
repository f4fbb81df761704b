# backend/settings.py
import os


def _origins(raw):
    raw = (raw or "").strip()
    if not raw or raw == "*":
        return "*"
    return [o.strip() for o in raw.split(",") if o.strip()]


class Config:
    SECRET_KEY = "dev-secret"

    # listen address and allowed client origins come from the environment
    HOST = os.environ.get("PLAZASYNC_HOST", "0.0.0.0")
    PORT = int(os.environ.get("PLAZASYNC_PORT", "5001"))
    CORS_ORIGINS = _origins(os.environ.get("PLAZASYNC_CORS_ORIGINS", "*"))

    ASYNC_MODE = "eventlet"
    ROOM = "plaza"
    MAP_PATH = None  # Tiled JSON map with a "spawns" object layer
    LOG_LEVEL = "INFO"
