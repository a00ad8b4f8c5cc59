import asyncio
import logging
import re
from typing import Any, Callable, Optional

import motor.motor_asyncio
from pymongo import ASCENDING
from pymongo.errors import PyMongoError

from loanlink.core.config import Settings
from loanlink.core.exceptions import ConfigurationError, StoreError

logger = logging.getLogger(__name__)

LOANS_COLLECTION = "loans"
LOAN_APPLICATIONS_COLLECTION = "loanApplications"
USERS_COLLECTION = "users"


# For security, never log full connection URIs which may contain credentials.
def mask_mongo_uri(uri: Optional[str]) -> str:
    if not uri:
        return "not set"
    m = re.match(r'(?P<prefix>mongodb(?:\+srv)?://)(?:(?P<creds>[^@]+)@)?(?P<rest>.+)', uri)
    if not m:
        return "mongodb://<redacted>"
    host_part = m.group('rest').split('/')[0]
    return f"{m.group('prefix')}***@{host_part}"


class StoreHandle:
    """Lazily opened, memoized connection to the LoanLink database.

    The first successful ``get_database()`` call creates the Motor client,
    pings the server and ensures indexes; every later caller receives the same
    database handle. Concurrent first callers wait on one attempt. A failed
    attempt is not remembered, so the next call tries again.
    """

    def __init__(self, settings: Settings, client_factory: Optional[Callable[..., Any]] = None):
        if not settings.MONGODB_URI:
            raise ConfigurationError("MONGODB_URI is not set in environment variables")
        self._uri = settings.MONGODB_URI
        self._db_name = settings.MONGODB_DB_NAME
        self._timeout_ms = settings.MONGODB_TIMEOUT_MS
        self._client_factory = client_factory or motor.motor_asyncio.AsyncIOMotorClient
        self._client = None
        self._database = None
        self._lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        return self._database is not None

    async def get_database(self):
        if self._database is not None:
            return self._database

        async with self._lock:
            # another caller may have finished connecting while we waited
            if self._database is not None:
                return self._database
            self._database = await self._connect()
            return self._database

    async def get_collection(self, name: str):
        database = await self.get_database()
        return database[name]

    async def _connect(self):
        logger.info(f"Attempting to connect to MongoDB at: {mask_mongo_uri(self._uri)}")
        logger.info("Database name: %s", self._db_name)

        client = self._client_factory(
            self._uri,
            serverSelectionTimeoutMS=self._timeout_ms,
            connectTimeoutMS=self._timeout_ms,
            tz_aware=True,
        )
        try:
            await client.admin.command('ping')
            database = client[self._db_name]
            await database[USERS_COLLECTION].create_index([("email", ASCENDING)], unique=True)
        except PyMongoError as e:
            logger.error(f"MongoDB connection failed ({mask_mongo_uri(self._uri)}): {e}")
            client.close()
            raise StoreError(f"Database service unavailable: {e}") from e

        self._client = client
        logger.info("Successfully connected to MongoDB!")
        return database

    async def close(self) -> None:
        async with self._lock:
            if self._client is not None:
                self._client.close()
                logger.info("MongoDB connection closed")
            self._client = None
            self._database = None
