"""
MongoDB connection management for the trip store.

``db_manager`` owns the single motor client of the process. The client is
created lazily on first use and is rebuilt if the running event loop changes
(test clients and reloaders run more than one loop per process).
"""

from __future__ import annotations

import asyncio
import logging
import threading
from datetime import UTC
from typing import Self

import certifi
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

import config

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Process-wide holder of the motor client and the Beanie setup."""

    _instance: DatabaseManager | None = None
    _lock = threading.Lock()

    def __new__(cls) -> Self:
        with cls._lock:
            if cls._instance is None:
                instance = super().__new__(cls)
                instance._client = None
                instance._db = None
                instance._loop = None
                instance._beanie_ready = False
                cls._instance = instance
        return cls._instance

    def _connect(self) -> None:
        options = {
            "tz_aware": True,
            "tzinfo": UTC,
            "maxPoolSize": config.MONGODB_MAX_POOL_SIZE,
            "connectTimeoutMS": config.MONGODB_CONNECTION_TIMEOUT_MS,
            "serverSelectionTimeoutMS": config.MONGODB_SERVER_SELECTION_TIMEOUT_MS,
            "retryWrites": True,
            "appname": "route-nest",
        }
        # Atlas clusters need an explicit CA bundle
        if config.MONGODB_URI.startswith("mongodb+srv://"):
            options.update(tls=True, tlsCAFile=certifi.where())

        try:
            self._client = AsyncIOMotorClient(config.MONGODB_URI, **options)
        except Exception:
            logger.exception("Could not create MongoDB client")
            raise
        self._db = self._client[config.MONGODB_DATABASE]
        self._loop = _running_loop()
        logger.info(
            "MongoDB client ready for database %s (pool size %d)",
            config.MONGODB_DATABASE,
            config.MONGODB_MAX_POOL_SIZE,
        )

    def _drop_stale_client(self) -> None:
        if self._client is None:
            return
        current = _running_loop()
        if (self._loop is not None and self._loop.is_closed()) or (
            current is not None and current is not self._loop
        ):
            logger.info("Event loop changed; discarding MongoDB client")
            self._reset()

    def _reset(self) -> None:
        if self._client is not None:
            self._client.close()
        self._client = None
        self._db = None
        self._loop = None
        self._beanie_ready = False

    @property
    def db(self) -> AsyncIOMotorDatabase:
        """Database handle, connecting on first access."""
        self._drop_stale_client()
        if self._db is None:
            self._connect()
        return self._db

    async def init_beanie(self) -> None:
        """Register the document models with Beanie once per client."""
        from beanie import init_beanie

        from db.models import ALL_DOCUMENT_MODELS

        database = self.db
        if self._beanie_ready:
            logger.debug("Beanie already initialized")
            return

        await init_beanie(database=database, document_models=ALL_DOCUMENT_MODELS)
        self._beanie_ready = True
        logger.info("Beanie initialized with %d document models", len(ALL_DOCUMENT_MODELS))

    async def cleanup_connections(self) -> None:
        """Close the client; the next ``db`` access reconnects."""
        if self._client is not None:
            logger.info("Closing MongoDB client")
        self._reset()


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


db_manager = DatabaseManager()
