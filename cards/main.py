from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cards.config import configure_logging, get_settings
from cards.infrastructure.database import dispose_database, initialize_database
from cards.infrastructure.notifications import (
    NotificationDispatcher,
    PresenceRegistry,
    RealtimeChannel,
)
from cards.interfaces.api.routes import register_routes


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Inicializa la base de datos al arrancar y libera los recursos al cerrar."""

    configure_logging()
    initialize_database()
    yield
    dispose_database()


def create_app() -> FastAPI:
    """Crea y configura la aplicación principal de FastAPI."""

    settings = get_settings()
    app = FastAPI(title="Cards API", lifespan=lifespan)

    # Presencia y despacho viven por proceso; se comparten vía app.state.
    registry = PresenceRegistry()
    app.state.presence = registry
    app.state.dispatcher = NotificationDispatcher(registry, RealtimeChannel(registry))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_routes(app)
    return app


app = create_app()
