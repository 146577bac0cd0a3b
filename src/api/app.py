"""
FastAPI application for the claim log service.

Provides:
- Claim log list/append endpoints, backed per organization by the Fabric
  ledger or the in-memory fallback store
- Health check endpoint reporting which organizations are ledger-backed
"""

# Configure noisy library loggers before they are imported
import logging

logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("grpc").setLevel(logging.WARNING)
logging.getLogger("hfc").setLevel(logging.WARNING)

from contextlib import asynccontextmanager
import json
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..ledger.gateway import GatewayFactory
from ..ledger.registry import ConnectionRegistry
from ..storage.claim_log_store import ClaimLogStore, InMemoryClaimLogStore, utc_now_iso
from ..utils.config import Settings, settings as default_settings
from ..utils.errors import BackendError, ClaimValidationError
from .facade import ClaimLogFacade
from .schema import ErrorResponse, MissingFieldsResponse, health_keys

logging.basicConfig(
    level=logging.DEBUG if default_settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def read_json_body(request: Request) -> Any:
    """
    Decode a request body as JSON.

    An empty or undecodable body reads as None, which validation then
    rejects as missing every required field.
    """
    raw = await request.body()
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        logger.warning(f"Undecodable JSON body on {request.url.path}")
        return None


def create_app(
    settings: Optional[Settings] = None,
    registry: Optional[ConnectionRegistry] = None,
    store: Optional[ClaimLogStore] = None,
    gateway_factory: Optional[GatewayFactory] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Application settings (defaults to environment)
        registry: Pre-built connection registry. When given, boot does not
                  connect; the caller owns its contents.
        store: Fallback store (defaults to a fresh in-memory store)
        gateway_factory: Gateway constructor used at boot (defaults to Fabric)
    """
    settings = settings or default_settings
    connect_on_startup = registry is None
    registry = registry or ConnectionRegistry(settings.organizations)
    store = store or InMemoryClaimLogStore()
    facade = ClaimLogFacade(registry, store)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Connect organizations on startup, disconnect them on shutdown."""
        logger.info(f"🚀 Blockchain HTTP Server running on port {settings.port}")
        if connect_on_startup:
            logger.info("🔌 Initializing connections to Hyperledger Fabric...")
            await registry.connect_all(settings, gateway_factory)
        yield
        logger.info("🛑 Shutting down server...")
        await registry.close(timeout=settings.shutdown_timeout)

    app = FastAPI(
        title="Claim Log Ledger Service",
        description="Crop-insurance claim logs on Hyperledger Fabric with in-memory fallback",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.registry = registry
    app.state.store = store
    app.state.facade = facade

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get("/health")
    async def health_check():
        """Liveness plus which organizations are ledger-backed."""
        response = {"status": "OK"}
        status = registry.status()
        for org_name, key in health_keys(status).items():
            response[key] = status[org_name]
        response["timestamp"] = utc_now_iso()
        return response

    # =========================================================================
    # Claim Log Endpoints
    # =========================================================================

    @app.get("/api/claims-logs/{org}")
    async def get_claim_logs(org: str):
        """List claim logs for an organization."""
        logger.info(f"📋 Fetching claims logs for {org}...")
        try:
            return await facade.list_claim_logs(org)
        except BackendError as e:
            logger.error(f"❌ Error fetching claims logs: {e}")
            return JSONResponse(
                status_code=500,
                content=ErrorResponse(error="Failed to fetch claims logs", details=str(e)).model_dump(),
            )

    @app.post("/api/claims-logs/{org}")
    async def post_claim_log(org: str, request: Request):
        """Record a claim log for an organization."""
        body = await read_json_body(request)
        logger.info(f"📝 Received claim log for {org}: {body}")
        try:
            return await facade.add_claim_log(org, body)
        except ClaimValidationError as e:
            logger.warning(f"Rejected claim log for {org}: {e}")
            return JSONResponse(
                status_code=400,
                content=MissingFieldsResponse(required=e.required).model_dump(),
            )
        except BackendError as e:
            logger.error(f"❌ Error adding claim log: {e}")
            return JSONResponse(
                status_code=500,
                content=ErrorResponse(error="Failed to add claim log", details=str(e)).model_dump(),
            )

    return app


app = create_app()


# =============================================================================
# Main Entry Point
# =============================================================================


def main():
    """Run the FastAPI server."""
    import uvicorn

    uvicorn.run(
        "src.api.app:app",
        host=default_settings.host,
        port=default_settings.port,
        reload=default_settings.debug,
        log_level="debug" if default_settings.debug else "info",
    )


if __name__ == "__main__":
    main()
