"""
Collection-level access for users and trips.

Both stores work on plain documents and hand back JSON-ready dicts where the
Mongo ``_id`` is exposed as a string ``id``.
"""

import logging
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from database import TRIP_COLLECTION, USER_COLLECTION, Database
from errors import ConflictError, NotFoundError
from schemas import DEFAULT_ROLE, Trip, User, normalize_email

logger = logging.getLogger(__name__)

EMAIL_EXISTS = "Email already exists"
USER_NOT_FOUND = "User not found"
TRIP_NOT_FOUND = "Trip not found"


def serialize_document(doc: Dict[str, Any], exclude: tuple = ()) -> Dict[str, Any]:
    out = {"id": str(doc["_id"])} if "_id" in doc else {}
    for key, value in doc.items():
        if key == "_id" or key in exclude:
            continue
        out[key] = str(value) if isinstance(value, ObjectId) else value
    return out


def public_user(doc: Dict[str, Any]) -> Dict[str, Any]:
    """User fields that are safe to return to clients."""
    return serialize_document(doc, exclude=("password",))


def _object_id(value: str) -> Optional[ObjectId]:
    return ObjectId(value) if ObjectId.is_valid(value) else None


class UserStore:
    def __init__(self, database: Database):
        self.database = database
        self.collection = database[USER_COLLECTION]

    def create(self, name: str, email: str, password_hash: str, role: str = DEFAULT_ROLE) -> Dict[str, Any]:
        user = User(name=name, email=email, password=password_hash, role=role or DEFAULT_ROLE)
        if self.collection.find_one({"email": user.email}):
            raise ConflictError(EMAIL_EXISTS)
        doc = user.model_dump(by_alias=True)
        try:
            doc["_id"] = self.database.create_document(USER_COLLECTION, doc)
        except DuplicateKeyError as exc:
            # Lost the race against a concurrent signup for the same email.
            raise ConflictError(EMAIL_EXISTS) from exc
        logger.info("Created user %s with role %s", user.email, user.role)
        return public_user(doc)

    def find_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        """Raw user document, password hash included."""
        return self.collection.find_one({"email": normalize_email(email)})

    def list_all(self) -> List[Dict[str, Any]]:
        docs = self.database.get_documents(USER_COLLECTION, projection={"password": 0})
        return [public_user(doc) for doc in docs]

    def update_by_id(self, user_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        oid = _object_id(user_id)
        if oid is None:
            raise NotFoundError(USER_NOT_FOUND)

        patch = dict(patch)
        if "email" in patch:
            patch["email"] = normalize_email(patch["email"])
            if self.collection.find_one({"email": patch["email"], "_id": {"$ne": oid}}):
                raise ConflictError(EMAIL_EXISTS)

        if patch:
            try:
                doc = self.collection.find_one_and_update(
                    {"_id": oid}, {"$set": patch}, return_document=ReturnDocument.AFTER
                )
            except DuplicateKeyError as exc:
                raise ConflictError(EMAIL_EXISTS) from exc
        else:
            doc = self.collection.find_one({"_id": oid})

        if doc is None:
            raise NotFoundError(USER_NOT_FOUND)
        logger.info("Updated user %s fields %s", user_id, sorted(patch))
        return public_user(doc)

    def delete_by_id(self, user_id: str) -> None:
        oid = _object_id(user_id)
        if oid is None or self.collection.delete_one({"_id": oid}).deleted_count == 0:
            raise NotFoundError(USER_NOT_FOUND)
        logger.info("Deleted user %s", user_id)


class TripStore:
    def __init__(self, database: Database):
        self.database = database
        self.collection = database[TRIP_COLLECTION]

    def create(self, trip: Trip) -> Dict[str, Any]:
        doc = trip.model_dump(by_alias=True)
        doc["_id"] = self.database.create_document(TRIP_COLLECTION, doc)
        logger.info("Saved trip %r for %s", trip.trip_name, trip.user_email)
        return serialize_document(doc)

    def find_by_owner_email(self, email: str) -> List[Dict[str, Any]]:
        docs = self.database.get_documents(
            TRIP_COLLECTION,
            {"userEmail": normalize_email(email)},
            sort=[("createdAt", DESCENDING)],
        )
        return [serialize_document(doc) for doc in docs]

    def list_all(self) -> List[Dict[str, Any]]:
        return [serialize_document(doc) for doc in self.database.get_documents(TRIP_COLLECTION)]

    def update_by_id(self, trip_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        oid = _object_id(trip_id)
        if oid is None:
            raise NotFoundError(TRIP_NOT_FOUND)
        if patch:
            doc = self.collection.find_one_and_update(
                {"_id": oid}, {"$set": patch}, return_document=ReturnDocument.AFTER
            )
        else:
            doc = self.collection.find_one({"_id": oid})
        if doc is None:
            raise NotFoundError(TRIP_NOT_FOUND)
        logger.info("Updated trip %s fields %s", trip_id, sorted(patch))
        return serialize_document(doc)

    def delete_by_id(self, trip_id: str) -> None:
        oid = _object_id(trip_id)
        if oid is None or self.collection.delete_one({"_id": oid}).deleted_count == 0:
            raise NotFoundError(TRIP_NOT_FOUND)
        logger.info("Deleted trip %s", trip_id)
