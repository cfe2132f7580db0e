"""
Stand-up Bot FastAPI application

Main entry point for the bot service. Wires together:
- Bot Framework webhook at /api/messages
- Health check at /health

Authentication:
- Bot Framework: JWT validated by the CloudAdapter
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, HTTPException, Request, Response

from .bot_handler import BotHandler
from .config import config

# Configure logging
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Global instances
bot_handler: Optional[BotHandler] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    global bot_handler

    # Startup
    logger.info("Starting Stand-up Bot...")
    logger.info(f"App ID: {config.MICROSOFT_APP_ID or '(not configured)'}")
    logger.info(f"App type: {config.MICROSOFT_APP_TYPE}")
    logger.info(f"Tenant: {config.MICROSOFT_APP_TENANT_ID or '(not configured)'}")

    bot_handler = BotHandler(config)

    logger.info("Stand-up Bot started successfully")

    yield

    # Shutdown
    logger.info("Shutting down Stand-up Bot...")
    bot_handler = None


app = FastAPI(title="Stand-up Bot", lifespan=lifespan)


@app.post("/api/messages")
async def bot_messages(request: Request):
    """
    Bot Framework webhook: receives all messages from Teams.

    Bot Framework validates the JWT token in the Authorization header
    automatically via the adapter.
    """
    if bot_handler is None:
        raise HTTPException(status_code=503, detail="Bot handler not initialized")

    try:
        body = await request.json()
    except Exception as e:
        logger.error(f"Invalid JSON in request: {e}")
        raise HTTPException(status_code=400, detail="Invalid JSON")

    auth_header = request.headers.get("Authorization", "")

    try:
        response = await bot_handler.process_activity(body, auth_header)
        if response:
            return Response(
                status_code=response.status,
                content=response.body if hasattr(response, 'body') else None
            )
        return Response(status_code=200)
    except Exception as e:
        logger.error(f"Error processing bot activity: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/health")
async def health():
    """Health check for App Service."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "bot_configured": bool(config.MICROSOFT_APP_ID),
        "bot_ready": bot_handler is not None,
    }


@app.get("/")
async def root():
    """Root endpoint with basic info."""
    return {
        "service": "Stand-up Bot",
        "version": "1.0.0",
        "endpoints": {
            "bot_webhook": "/api/messages",
            "health": "/health",
        }
    }
