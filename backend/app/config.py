# ENV vars for the map generator service
import os
from dotenv import load_dotenv

load_dotenv()


def _optional_int(name):
    value = os.getenv(name)
    return int(value) if value not in (None, "") else None


class Config:
    DEBUG = os.getenv("DEBUG", "false").lower() == "true"
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG" if DEBUG else "INFO").upper()
    MAX_ATTEMPTS = int(os.getenv("MAPGEN_MAX_ATTEMPTS", "5000"))
    DEFAULT_SEED = _optional_int("MAPGEN_DEFAULT_SEED")
