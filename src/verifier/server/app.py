"""FastAPI application for the verify-conformance bot."""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, HTTPException, BackgroundTasks

from verifier.server.config import get_settings
from verifier.server.webhooks import verify_webhook_signature, handle_webhook
from verifier.server.runtime import periodic_scan
from verifier.server.api import router as api_router


logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler, owning the periodic scan task."""
    settings = get_settings()
    logger.info(f"Starting verify-conformance server on {settings.host}:{settings.port}")
    logger.info(f"Repos: {settings.repo_list or 'none'}, orgs: {settings.org_list or 'none'}")

    scan_task = None
    if settings.scan_interval_seconds > 0:
        logger.info(f"Full scan every {settings.scan_interval_seconds}s")
        scan_task = asyncio.create_task(periodic_scan(settings.scan_interval_seconds))
    yield
    if scan_task is not None:
        scan_task.cancel()
    logger.info("Shutting down verify-conformance server")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI app
    """
    settings = get_settings()

    app = FastAPI(
        title="verify-conformance",
        description="Checks Kubernetes conformance certification pull requests",
        version="0.1.0",
        lifespan=lifespan,
        debug=settings.debug,
    )

    @app.get("/")
    async def root():
        """Root endpoint with app info."""
        return {
            "name": "verify-conformance",
            "version": "0.1.0",
            "description": "Kubernetes conformance PR verification",
            "status": "running",
        }

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy"}

    @app.post("/webhook")
    async def webhook(request: Request, background_tasks: BackgroundTasks):
        """GitHub webhook endpoint."""
        body = await request.body()

        await verify_webhook_signature(request, body)

        try:
            payload = await request.json()
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid JSON payload")

        event_type = request.headers.get("X-GitHub-Event", "")
        if not event_type:
            raise HTTPException(status_code=400, detail="Missing X-GitHub-Event header")

        if event_type == "ping":
            return {"status": "pong", "zen": payload.get("zen", "")}

        background_tasks.add_task(process_webhook_async, event_type, payload)

        return {
            "status": "accepted",
            "event": event_type,
            "action": payload.get("action", ""),
        }

    app.include_router(api_router)

    return app


async def process_webhook_async(event_type: str, payload: dict):
    """Process webhook asynchronously.

    Args:
        event_type: GitHub event type
        payload: Webhook payload
    """
    try:
        result = await handle_webhook(event_type, payload)
        logger.info(f"Webhook processed: {result}")
    except Exception as e:
        logger.exception(f"Error processing webhook: {e}")


app = create_app()
