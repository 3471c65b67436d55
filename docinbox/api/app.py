"""FastAPI application: SMS webhook and health endpoints."""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from docinbox.config import AppConfig
from docinbox.errors import AppError, format_error_response
from docinbox.health.aggregator import HealthAggregator, default_probes
from docinbox.health.probes import Probe
from docinbox.observability.logger import CHANNEL_NAME, StructuredLogger
from docinbox.sms.processor import MessageProcessor, SmsDocumentProcessor
from docinbox.sms.sender import TwilioSmsSender
from docinbox.webhook.sms import SmsWebhookHandler

WEBHOOK_PATH = "/api/sms-webhook"
HEALTH_PATH = "/api/health"


def create_app_from_env() -> FastAPI:
    """Factory for uvicorn --factory: reads config from environment variables."""
    config = AppConfig.from_env()
    logging.basicConfig(format="%(message)s")
    logging.getLogger(CHANNEL_NAME).setLevel(
        logging.DEBUG if config.development else logging.INFO,
    )
    return create_app(config)


def build_processor(config: AppConfig, logger: StructuredLogger) -> MessageProcessor:
    sender = TwilioSmsSender.from_config(config, logger)
    return SmsDocumentProcessor(sender=sender, logger=logger)


def create_app(
    config: AppConfig,
    processor: MessageProcessor | None = None,
    logger: StructuredLogger | None = None,
    probes: Mapping[str, Probe] | None = None,
) -> FastAPI:
    """Create the API app; collaborators default to the config-driven ones."""
    app = FastAPI(docs_url=None, redoc_url=None)
    log = logger or StructuredLogger.from_config(config)
    handler = SmsWebhookHandler(processor or build_processor(config, log), log)
    aggregator = HealthAggregator(
        probes if probes is not None else default_probes(config),
        log,
        environment=config.environment,
        version=config.version,
    )

    @app.post(WEBHOOK_PATH)
    async def sms_webhook(request: Request) -> Response:
        start = time.perf_counter()
        try:
            form = await request.form()
        except Exception as exc:
            result = handler.error_response(exc)
        else:
            result = await handler.handle(form)
        log.log_api_request(
            "POST", WEBHOOK_PATH, result.status_code, _elapsed_ms(start),
        )
        return Response(
            content=result.body,
            status_code=result.status_code,
            media_type=result.media_type,
        )

    @app.get(HEALTH_PATH)
    async def health() -> JSONResponse:
        start = time.perf_counter()
        report = await aggregator.check()
        log.log_api_request(
            "GET", HEALTH_PATH, report.http_status, _elapsed_ms(start),
        )
        return JSONResponse(
            report.model_dump(mode="json"), status_code=report.http_status,
        )

    register_error_handlers(app, log)
    return app


def register_error_handlers(app: FastAPI, logger: StructuredLogger) -> None:
    """Render AppError and request-validation failures as JSON error envelopes."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("Request failed", {"path": request.url.path}, exc)
        return JSONResponse(format_error_response(exc), status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError,
    ) -> JSONResponse:
        details = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ())),
                "message": err.get("msg", ""),
            }
            for err in exc.errors()
        ]
        error = AppError.validation("Invalid request", details=details)
        return JSONResponse(format_error_response(error), status_code=error.status_code)


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000
