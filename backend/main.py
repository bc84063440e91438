"""Entry point for the InfraGuard FastAPI application."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import router as api_router
from services.learning_stores import LearningStores
from utils.learning_config import get_calibration_config


def create_app(stores: LearningStores | None = None) -> FastAPI:
    """Build the application.

    Args:
        stores: Learning stores to serve. When None, stores are resolved from
            INFRAGUARD_STORE_BACKEND and INFRAGUARD_DATA_DIR on first use.

    Returns:
        Configured FastAPI app.
    """
    app = FastAPI(title="InfraGuard Backend", version="0.1.0")

    app.state.stores = stores if stores is not None else LearningStores()
    app.state.calibration_config = get_calibration_config()

    # Local frontends run on a different port during development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    @app.get("/")
    async def root() -> dict:
        """
        Simple heartbeat endpoint to confirm the API is online.

        Returns:
            dict: App metadata payload.
        """
        return {"status": "ok", "app": "InfraGuard Backend"}

    return app


app = create_app()
