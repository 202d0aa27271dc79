"""
MongoDB connection handle.

A single Database instance is opened when the application starts, kept on
``app.state`` and handed to route handlers through the ``get_database``
dependency. Nothing in this module holds a connection at import time.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from fastapi import Request
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.errors import OperationFailure

import config

logger = logging.getLogger(__name__)

USER_COLLECTION = "user"
TRIP_COLLECTION = "trip"


class Database:
    """Owns the MongoClient and exposes collections by name."""

    def __init__(
        self,
        url: str = config.DATABASE_URL,
        name: str = config.DATABASE_NAME,
        client: Optional[MongoClient] = None,
    ):
        self.url = url
        self.name = name
        self._client = client
        self._db = None

    @property
    def is_open(self) -> bool:
        return self._db is not None

    def open(self) -> "Database":
        if self._client is None:
            self._client = MongoClient(self.url)
        self._db = self._client[self.name]
        self.ensure_indexes()
        logger.info("Connected to MongoDB database %s", self.name)
        return self

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            logger.info("MongoDB connection closed")
        self._client = None
        self._db = None

    def ensure_indexes(self) -> None:
        # Unique email closes the signup check-then-insert race at the store level.
        # Existing duplicates make the build fail; signup then relies on the lookup alone.
        try:
            self[USER_COLLECTION].create_index([("email", ASCENDING)], unique=True)
        except OperationFailure as exc:
            logger.warning("Unique email index not created, duplicate emails already stored: %s", exc)
        self[TRIP_COLLECTION].create_index([("userEmail", ASCENDING), ("createdAt", DESCENDING)])

    def __getitem__(self, collection_name: str) -> Collection:
        if self._db is None:
            raise RuntimeError("Database is not open")
        return self._db[collection_name]

    def list_collection_names(self) -> List[str]:
        return self._db.list_collection_names() if self._db is not None else []

    def create_document(self, collection_name: str, data: Dict[str, Any]) -> str:
        """Insert a document and return its id as a string."""
        result = self[collection_name].insert_one(data)
        return str(result.inserted_id)

    def get_documents(
        self,
        collection_name: str,
        filter_dict: Optional[Dict[str, Any]] = None,
        projection: Optional[Dict[str, Any]] = None,
        sort: Optional[Sequence[Tuple[str, int]]] = None,
    ) -> List[Dict[str, Any]]:
        cursor = self[collection_name].find(filter_dict or {}, projection)
        if sort:
            cursor = cursor.sort(list(sort))
        return list(cursor)


def get_database(request: Request) -> Database:
    return request.app.state.database
