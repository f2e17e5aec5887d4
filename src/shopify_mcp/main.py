"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from shopify_mcp.auth.gate import SessionGate
from shopify_mcp.auth.otp import OTPIssuer, OTPVerifier
from shopify_mcp.auth.otp_store import OTPStore
from shopify_mcp.auth.session_store import SessionStore
from shopify_mcp.config import settings
from shopify_mcp.server import create_mcp_server
from shopify_mcp.services.email_service import EmailService
from shopify_mcp.services.shopify_client import ShopifyClient

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)

logger = logging.getLogger(__name__)

# ── Shared instances (created once, reused across requests) ──
_otp_store = OTPStore()
_session_store = SessionStore()
_shopify = ShopifyClient()

mcp = create_mcp_server(
    issuer=OTPIssuer(_otp_store, EmailService()),
    verifier=OTPVerifier(_otp_store, _session_store, _shopify),
    gate=SessionGate(_session_store),
    shopify=_shopify,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle hook."""
    logger.info("Starting %s …", settings.app_name)
    if not settings.shopify_access_token or not settings.myshopify_domain:
        logger.warning("SHOPIFY_ACCESS_TOKEN or MYSHOPIFY_DOMAIN not set — Shopify calls will fail")
    yield
    logger.info("Shutting down %s …", settings.app_name)


app = FastAPI(
    title=settings.app_name,
    description="MCP Server for the Shopify Admin API with email OTP verification",
    version="0.1.0",
    lifespan=lifespan,
)


@app.get("/health")
async def health_check():
    """Simple liveness probe."""
    return {"status": "healthy", "app": settings.app_name, "sessions": _session_store.active_count}


# /sse and /messages/ are served by the MCP SDK
app.mount("/", mcp.sse_app())


def run() -> None:
    """Console entry point."""
    uvicorn.run(app, host=settings.host, port=settings.port, log_level="info")


if __name__ == "__main__":
    run()
