# Entry point for the FastAPI app
from fastapi import FastAPI

from api.config.lifecycle import setup_lifecycle_events
from api.routes import backup
from api.settings import settings


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    app = FastAPI(
        title="Database Backup Service",
        description="Periodic logical backups of MySQL databases, delivered as zip archives to a Discord channel",
        version=settings.IMAGE_TAG,
    )

    setup_lifecycle_events(app)
    app.include_router(backup.router)

    # Health check endpoint.
    @app.get("/health")
    def check_health():
        return {"status": "OK"}

    # Get Image version.
    @app.get("/version")
    def get_version():
        return {"IMAGE_TAG": f"{settings.IMAGE_TAG}"}

    return app


app = create_app()
