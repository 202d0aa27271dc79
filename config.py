"""
Runtime configuration.

Values are read from the environment (and a local .env file, if present).
Import constants from here rather than calling os.getenv across modules.
"""

import os
from typing import List

from dotenv import load_dotenv

load_dotenv()

DATABASE_URL: str = os.getenv("DATABASE_URL", "mongodb://localhost:27017")
DATABASE_NAME: str = os.getenv("DATABASE_NAME", "trip_planner")

PORT: int = int(os.getenv("PORT", 8000))
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

# Directory holding the static frontend (login.html etc.)
STATIC_DIR: str = os.getenv("STATIC_DIR", "public")

CORS_ORIGINS: List[str] = [
    origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()
]
