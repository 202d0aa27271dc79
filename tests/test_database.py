import mongomock
import pytest

from database import Database
from errors import ConflictError
from stores import UserStore


def test_open_survives_existing_duplicate_emails():
    client = mongomock.MongoClient()
    client["legacy_db"]["user"].insert_many([{"email": "a@x.com"}, {"email": "a@x.com"}])

    database = Database(name="legacy_db", client=client).open()

    assert database.is_open
    with pytest.raises(ConflictError):
        UserStore(database).create("Ann", "a@x.com", "h")


def test_unique_email_index_is_created_on_clean_database(database):
    indexes = database["user"].index_information()
    assert any(info.get("unique") and info["key"] == [("email", 1)] for info in indexes.values())
