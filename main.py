"""
Pay4Me - FastAPI Backend
Bill payments (airtime, data, betting, TV) with OTP verification and JWT auth
"""

import logging
import time
from datetime import datetime, timezone
from typing import Callable, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Settings
from routes.auth_routes import router as auth_router
from routes.payment_routes import router as payment_router
from routes.profile_routes import router as profile_router
from routes.support_routes import router as support_router
from services.container import Services
from services.errors import AppError

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)

API_PREFIX = "/api"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


def create_app(settings: Optional[Settings] = None, clock: Callable[[], float] = time.time) -> FastAPI:
    settings = settings or Settings()

    app = FastAPI(
        title="Pay4Me API",
        description="Airtime, data, betting and TV bill payments",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.state.services = Services(settings, clock=clock)

    # CORS middleware for frontend integration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.frontend_url.split(",") if o.strip()] or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(auth_router, prefix=f"{API_PREFIX}/auth", tags=["Auth"])
    app.include_router(payment_router, prefix=API_PREFIX, tags=["Payments"])
    app.include_router(support_router, prefix=f"{API_PREFIX}/support", tags=["Support"])
    app.include_router(profile_router, prefix=f"{API_PREFIX}/profile", tags=["Profile"])

    @app.get("/")
    async def root():
        """Root endpoint with basic API information"""
        return {
            "message": "Pay4Me API",
            "version": "1.0.0",
            "status": "active",
            "endpoints": {
                "health": f"{API_PREFIX}/health",
                "auth": f"{API_PREFIX}/auth",
                "airtime": f"{API_PREFIX}/airtime/purchase",
                "data": f"{API_PREFIX}/data/purchase",
                "betting": f"{API_PREFIX}/betting/fund",
                "tv": f"{API_PREFIX}/tv/subscribe",
                "transactions": f"{API_PREFIX}/transactions",
                "support": f"{API_PREFIX}/support/submit",
                "profile": f"{API_PREFIX}/profile",
                "docs": "/docs",
            },
        }

    @app.get(f"{API_PREFIX}/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "success": True,
            "message": "Pay4Me API is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return _error(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and exc.detail == "Not Found":
            return _error(404, f"Endpoint not found: {request.url.path}")
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        field = ""
        if errors and errors[0].get("type") != "json_invalid":
            field = ".".join(str(p) for p in errors[0].get("loc", ())[1:])
        message = f"Invalid value for {field}" if field else "Invalid request body"
        return _error(400, message)

    @app.exception_handler(Exception)
    async def internal_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error(500, "Internal server error. Please try again later")

    logger.info("Pay4Me data directory: %s", settings.data_dir)
    if app.state.services.echo_otp:
        logger.warning("OTP echo mode is ON - codes are returned in API responses")
    return app


app = create_app()

if __name__ == "__main__":
    settings = app.state.settings
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=False,
        log_level="info",
    )
