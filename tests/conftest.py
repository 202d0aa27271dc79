import mongomock
import pytest
from fastapi.testclient import TestClient

from database import Database
from main import create_app


@pytest.fixture
def database():
    db = Database(name="test_db", client=mongomock.MongoClient())
    db.open()
    return db


@pytest.fixture
def client():
    app = create_app(Database(name="test_db", client=mongomock.MongoClient()))
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def trip_payload():
    return {
        "email": "traveler@example.com",
        "tripName": "Spring in Kyoto",
        "destination": "Kyoto",
        "fromDate": "2024-04-01",
        "toDate": "2024-04-08",
        "people": "2",
        "accommodation": "Hotel",
        "transport": "Plane",
        "budget": "2500",
        "activities": ["Sightseeing", "Dining"],
    }
