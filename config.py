"""Centralized configuration for environment variables.

This module is the single source of truth for configuration used across the
application. Import constants from here rather than calling os.getenv directly
in multiple places.
"""

from __future__ import annotations

import os
from typing import Final

from dotenv import load_dotenv

# Load environment variables from .env if present
load_dotenv()


# --- MongoDB Configuration ---
MONGODB_URI: Final[str] = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
MONGODB_DATABASE: Final[str] = os.getenv("MONGODB_DATABASE", "route-nest")
MONGODB_MAX_POOL_SIZE: Final[int] = int(os.getenv("MONGODB_MAX_POOL_SIZE", "50"))
MONGODB_CONNECTION_TIMEOUT_MS: Final[int] = int(
    os.getenv("MONGODB_CONNECTION_TIMEOUT_MS", "5000"),
)
MONGODB_SERVER_SELECTION_TIMEOUT_MS: Final[int] = int(
    os.getenv("MONGODB_SERVER_SELECTION_TIMEOUT_MS", "10000"),
)

# --- HTTP Server Configuration ---
PORT: Final[int] = int(os.getenv("PORT", "8000"))

# Comma-separated list; empty means development defaults
CORS_ALLOWED_ORIGINS: Final[list[str]] = [
    origin.strip()
    for origin in os.getenv("CORS_ALLOWED_ORIGINS", "").split(",")
    if origin.strip()
]

DEV_CORS_ORIGINS: Final[list[str]] = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]


__all__ = [
    "CORS_ALLOWED_ORIGINS",
    "DEV_CORS_ORIGINS",
    "MONGODB_CONNECTION_TIMEOUT_MS",
    "MONGODB_DATABASE",
    "MONGODB_MAX_POOL_SIZE",
    "MONGODB_SERVER_SELECTION_TIMEOUT_MS",
    "MONGODB_URI",
    "PORT",
]
