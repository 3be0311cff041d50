from __future__ import annotations

from fastapi import FastAPI

from src.application.dtos.common_dto import HealthResponse, RootResponse
from src.infrastructure.api.middlewares import add_default_middlewares
from src.infrastructure.api.routes.profile_routes import router as profile_router


def create_app() -> FastAPI:
    app = FastAPI(
        title="Profile Service",
        version="0.1.0",
        description="""
        ## Profile Service API

        Account management backed by PostgreSQL: profile creation, retrieval,
        update, refresh-token rotation, deletion and login.

        ### Storage
        Every operation runs a single statement in its own REPEATABLE READ
        transaction. Without `USE_POSTGRES=1` profiles are kept in memory.

        ### Error Responses
        - **401 Unauthorized**: Invalid login or password
        - **404 Not Found**: Profile does not exist
        - **409 Conflict**: Login or id already taken
        - **422 Unprocessable Entity**: Validation error in request body
        - **500 Internal Server Error**: Profile store failure
        """,
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )
    add_default_middlewares(app)

    @app.get(
        "/",
        response_model=RootResponse,
        summary="API Root",
        description="Get basic information about the Profile API",
        response_description="API information including status and version",
    )
    def root():
        """Get API root information."""
        return {"status": "ok", "service": "profile-service", "version": app.version}

    @app.get(
        "/health",
        response_model=HealthResponse,
        summary="Health Check",
        description="Check if the API service is running and healthy",
        response_description="Health status of the API service",
    )
    def health():
        """Check API health status."""
        return {"status": "healthy"}

    app.include_router(profile_router)
    return app


app = create_app()
