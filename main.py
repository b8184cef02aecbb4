import inspect
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from openai import AsyncOpenAI

from routes.monitor_route import router as monitor_router
from routes.monitor_ws import router as monitor_ws_router
from routes.query_route import router as query_router
from services.monitor.capture_device import OpenCVCamera
from services.monitor.monitor_session import MonitorSession
from services.openai.engagement_estimator import EngagementEstimator
from utils import settings

BASE_DIR = Path(__file__).resolve().parent
PUBLIC_DIR = BASE_DIR / "public"

LOGGER = logging.getLogger(__name__)


async def _close_client(client) -> None:
    """Close the OpenAI client through whichever close hook it exposes."""
    close = getattr(client, "aclose", None) or getattr(client, "close", None)
    if close is None:
        return
    try:
        result = close()
        if inspect.isawaitable(result):
            await result
    except Exception as exc:
        # Shutdown errors must not mask an earlier failure
        LOGGER.warning("Error closing OpenAI client: %s", exc)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan manager to initialize:
      - the OpenAI async client
      - the single engagement monitor session (camera not opened until started)
    and attach them to `app.state`.
    """
    # `settings` has already loaded any .env file
    openai_api_key = os.getenv("OPENAI_API_KEY")
    if not openai_api_key:
        raise RuntimeError("OPENAI_API_KEY environment variable is not set")

    try:
        openai_client = AsyncOpenAI()
    except Exception as exc:
        raise RuntimeError("Failed to initialize OpenAI Async client") from exc

    app.state.openai_client = openai_client
    app.state.monitor = MonitorSession(
        EngagementEstimator(openai_client),
        OpenCVCamera.factory(settings.CAMERA_INDEX),
    )

    try:
        yield
    finally:
        # Release the camera before the client goes away.
        await app.state.monitor.aclose()
        await _close_client(getattr(app.state, "openai_client", None))


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application instance.
    """
    app = FastAPI(lifespan=lifespan, title="Interactive Learning Assistant")

    # Serve static assets from the public directory, if it exists.
    if PUBLIC_DIR.exists():
        app.mount("/public", StaticFiles(directory=PUBLIC_DIR), name="public")

    @app.get("/", include_in_schema=False)
    async def serve_index():
        """
        Serve the frontend index page from the public directory.
        """
        index_path = PUBLIC_DIR / "index.html"
        if not index_path.exists():
            raise HTTPException(status_code=404, detail="Frontend not found")
        return FileResponse(index_path)

    @app.get("/health")
    async def health(request: Request):
        """
        Simple health check that reports OpenAI client presence and monitor state.
        """
        has_openai = getattr(request.app.state, "openai_client", None) is not None
        monitor = getattr(request.app.state, "monitor", None)
        return {
            "ok": True,
            "openai_available": has_openai,
            "monitor_state": monitor.state.value if monitor is not None else None,
        }

    # Register application routers
    app.include_router(query_router)
    app.include_router(monitor_router)
    app.include_router(monitor_ws_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
    uvicorn.run(app, host=os.getenv("HOST", "127.0.0.1"), port=int(os.getenv("PORT", "8000")))
