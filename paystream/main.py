import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from paystream.core.config import Settings, settings as default_settings
from paystream.routers import apple_pay, contact, payments, stream
from paystream.security_middleware import RateLimiter, payment_security_middleware
from paystream.services.broadcaster import EventBroadcaster
from paystream.services.contact_inbox import ContactInbox
from paystream.services.ledger import PaymentLedger, seed_demo_payments
from paystream.services.merchant_session import MerchantSessionValidator

logging.basicConfig(
    level=default_settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting payment stream API...")
    yield
    # Streams still open after the graceful shutdown window
    app.state.broadcaster.close()
    logger.info("Shutting down payment stream API...")


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"ok": False, "error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


def _format_validation_error(error: dict) -> str:
    field = ".".join(str(part) for part in error.get("loc", ()) if part not in ("body", "query"))
    return f"{field}: {error['msg']}" if field else error["msg"]


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"ok": False, "errors": [_format_validation_error(e) for e in exc.errors()]},
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application and its in-process services"""
    settings = settings or default_settings

    app = FastAPI(
        title="Payment Stream API",
        description="Payment confirmations with a live Server-Sent Events feed",
        version="1.0.0",
        lifespan=lifespan
    )

    app.state.settings = settings
    app.state.ledger = PaymentLedger(max_limit=settings.PAYMENTS_MAX_LIMIT)
    app.state.broadcaster = EventBroadcaster(
        keepalive_interval=settings.SSE_KEEPALIVE_SECONDS,
        queue_size=settings.SSE_QUEUE_SIZE,
        max_subscribers=settings.SSE_MAX_SUBSCRIBERS,
    )
    app.state.session_validator = MerchantSessionValidator(settings.merchant)
    app.state.contact_inbox = ContactInbox()
    app.state.rate_limiter = RateLimiter(
        max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
        window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
    )

    if settings.SEED_DEMO_PAYMENTS:
        seed_demo_payments(app.state.ledger)

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    # Security middleware (rate limit, headers, access log)
    app.middleware("http")(payment_security_middleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(payments.router, prefix="/api/payments", tags=["Payments"])
    app.include_router(stream.router, prefix="/api/payments", tags=["Live Stream"])
    app.include_router(apple_pay.router, prefix="/api/apple-pay", tags=["Apple Pay"])
    app.include_router(contact.router, prefix="/api/contact", tags=["Contact"])

    @app.get("/")
    async def root():
        return {
            "message": "Payment Stream API",
            "version": "1.0.0",
            "endpoints": {
                "payments": "/api/payments",
                "stream": "/api/payments/stream",
                "apple_pay": "/api/apple-pay/validate-session",
                "contact": "/api/contact"
            }
        }

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    @app.get("/api/health")
    async def api_health():
        return {"ok": True, "applePayEnabled": settings.APPLE_PAY_ENABLED}

    return app


app = create_app()
