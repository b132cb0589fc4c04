# api/app.py
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse

from config.settings import settings
from core.logger import logger
from infrastructure.database import AsyncDatabaseManager
from infrastructure.health import DatabaseHealthChecker
from infrastructure.impression_gateway import ImpressionGateway
from services.impressions_webhook import ImpressionsWebhookService


def create_app(db: Optional[AsyncDatabaseManager] = None) -> FastAPI:
    """Builds the webhook app around one database manager."""
    if db is None:
        db = AsyncDatabaseManager(settings.SQL_CONNECTION_STRING)

    webhook = ImpressionsWebhookService(ImpressionGateway(db))
    health = DatabaseHealthChecker(db)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await db.close()

    app = FastAPI(title="Impressions Webhook", lifespan=lifespan)

    @app.post(settings.WEBHOOK_ROUTE)
    async def impressions_webhook(request: Request) -> Response:
        result = await webhook.handle(request.query_params.multi_items(), request.stream())
        if result.body is None:
            return Response(status_code=result.status_code)
        return PlainTextResponse(result.body, status_code=result.status_code)

    @app.get("/health")
    async def health_check():
        if await health.is_alive():
            return {"status": "healthy"}
        return JSONResponse({"status": "unhealthy"}, status_code=503)

    logger.info(f"Webhook listening on {settings.WEBHOOK_ROUTE}")
    return app
