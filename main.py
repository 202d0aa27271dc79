import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError as PydanticValidationError

import config
from database import Database, get_database
from errors import ValidationError, api_route, register_error_handlers
from reporting import build_report
from schemas import (
    LoginRequest,
    SignupRequest,
    TripCreateRequest,
    TripUpdateRequest,
    UserUpdateRequest,
)
from security import hash_password, verify_password
from stores import TripStore, UserStore

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(database: Optional[Database] = None) -> FastAPI:
    if database is None:
        database = Database()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.database = database.open()
        try:
            yield
        finally:
            database.close()

    app = FastAPI(title="Trip Planner API", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )
    register_error_handlers(app)

    if os.path.isdir(config.STATIC_DIR):
        app.mount("/static", StaticFiles(directory=config.STATIC_DIR), name="static")

    register_routes(app)
    return app


def register_routes(app: FastAPI) -> None:

    # ----------------------
    # Pages & diagnostics
    # ----------------------

    @app.get("/")
    def root():
        login_page = os.path.join(config.STATIC_DIR, "login.html")
        if os.path.isfile(login_page):
            return FileResponse(login_page)
        return {"message": "Trip Planner Backend is running"}

    @app.get("/test")
    def test_database(database: Database = Depends(get_database)):
        response = {
            "backend": "Running",
            "database": "Not Available",
            "database_name": database.name,
            "connection_status": "Not Connected",
            "collections": [],
        }
        try:
            if database.is_open:
                response["database"] = "Available"
                response["connection_status"] = "Connected"
                response["collections"] = database.list_collection_names()[:10]
        except Exception as e:
            logger.warning("Database check failed: %s", e)
            response["database"] = f"Error: {str(e)[:80]}"
        return response

    # ---- Auth ----

    @app.post("/api/signup", status_code=201)
    @api_route("Server error during signup")
    def signup(req: SignupRequest, database: Database = Depends(get_database)):
        user = UserStore(database).create(
            name=req.name,
            email=str(req.email),
            password_hash=hash_password(req.password),
            role=req.role,
        )
        return {
            "success": True,
            "message": "Signup successful",
            "user": {key: user[key] for key in ("id", "name", "email", "role")},
        }

    @app.post("/api/login")
    @api_route("Server error during login")
    def login(req: LoginRequest, database: Database = Depends(get_database)):
        user = UserStore(database).find_by_email(str(req.email))
        if not user:
            raise ValidationError("User not found")
        if not verify_password(req.password, user.get("password", "")):
            raise ValidationError("Invalid password")
        return {
            "success": True,
            "message": "Login successful",
            "user": {
                "id": str(user["_id"]),
                "name": user.get("name"),
                "email": user.get("email"),
                "role": user.get("role"),
            },
        }

    # ---- Users ----

    @app.get("/api/users")
    @api_route("Failed to fetch users")
    def list_users(database: Database = Depends(get_database)):
        return {"success": True, "users": UserStore(database).list_all()}

    @app.put("/api/users/{user_id}")
    @api_route("Error updating user")
    def update_user(user_id: str, req: UserUpdateRequest, database: Database = Depends(get_database)):
        user = UserStore(database).update_by_id(user_id, req.to_document_patch())
        return {"success": True, "user": user}

    @app.delete("/api/users/{user_id}")
    @api_route("Error deleting user")
    def delete_user(user_id: str, database: Database = Depends(get_database)):
        UserStore(database).delete_by_id(user_id)
        return {"success": True, "message": "User deleted successfully"}

    # ---- Trips ----

    @app.post("/api/trips", status_code=201)
    @api_route("Failed to save trip")
    def save_trip(req: TripCreateRequest, database: Database = Depends(get_database)):
        if req.missing_fields():
            raise ValidationError("Missing required fields (email, tripName, destination)")
        try:
            trip = req.to_trip()
        except PydanticValidationError as e:
            raise ValidationError("Invalid trip data", str(e)) from e
        return {"success": True, "message": "Trip saved successfully", "trip": TripStore(database).create(trip)}

    @app.get("/api/trips/{email}")
    @api_route("Failed to fetch trips")
    def list_trips(email: str, database: Database = Depends(get_database)):
        return {"success": True, "trips": TripStore(database).find_by_owner_email(email)}

    @app.put("/api/trips/{trip_id}")
    @api_route("Error updating trip")
    def update_trip(trip_id: str, req: TripUpdateRequest, database: Database = Depends(get_database)):
        trip = TripStore(database).update_by_id(trip_id, req.to_document_patch())
        return {"success": True, "trip": trip}

    @app.delete("/api/trips/{trip_id}")
    @api_route("Error deleting trip")
    def delete_trip(trip_id: str, database: Database = Depends(get_database)):
        TripStore(database).delete_by_id(trip_id)
        return {"success": True, "message": "Trip deleted successfully"}

    # ---- Admin ----

    @app.get("/api/stats")
    @api_route("Failed to load statistics.")
    def stats(database: Database = Depends(get_database)):
        users = UserStore(database).list_all()
        trips = TripStore(database).list_all()
        return {"success": True, "stats": build_report(users, trips)}


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
