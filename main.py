from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Depends, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session

from app.config import settings
from app.core.email_service import EmailService
from app.core.logging_config import setup_logging, get_logger
from app.database.create_tables import create_tables
from app.database.session import Database, get_db
from app.routes import (
    auth_router,
    booking_router,
    car_router,
    customer_router,
    driver_router,
    payment_router,
    refund_router,
    waitlist_router,
)
from app.seed.seed_data import seed_all
from app.services.sms_service import SMSService
from app.utils.response_utils import ResponseWrapper

setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the per-process resources on startup and release them on shutdown"""
    logger.info(f"🌟 {settings.APP_NAME} starting up (env={settings.ENV})")
    database = getattr(app.state, "database", None)
    owns_database = database is None
    if owns_database:
        database = Database()
        app.state.database = database
    if settings.DB_AUTO_CREATE or database.url.startswith("sqlite"):
        create_tables(database)

    if getattr(app.state, "email_service", None) is None:
        app.state.email_service = EmailService()
    if getattr(app.state, "sms_service", None) is None:
        app.state.sms_service = SMSService()

    yield

    logger.info(f"🛑 {settings.APP_NAME} shutting down")
    if owns_database:
        database.dispose()
        del app.state.database


def create_app() -> FastAPI:
    app = FastAPI(
        title=f"{settings.APP_NAME} API",
        description="Bookings, payments, refunds and account recovery for the car rental service",
        version=settings.APP_VERSION,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    for router in (
        auth_router,
        customer_router,
        driver_router,
        car_router,
        booking_router,
        payment_router,
        refund_router,
        waitlist_router,
    ):
        app.include_router(router, prefix=settings.API_PREFIX)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        # Submitted values are left out; NaN and Infinity cannot be rendered as JSON
        errors = [
            {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=422,
            content={
                "detail": ResponseWrapper.error(
                    "Request validation failed", "REQUEST_VALIDATION_ERROR", {"errors": errors}
                )
            },
        )

    @app.get("/")
    async def root():
        return {"message": f"Welcome to {settings.APP_NAME} API"}

    @app.get("/health")
    async def health_check():
        return {"message": "I Am Alive!!"}

    @app.post("/seed-database")
    def seed_database(db: Session = Depends(get_db)):
        if not settings.DEBUG:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=ResponseWrapper.error("Seeding is disabled in this environment", "FORBIDDEN"),
            )
        logger.info("Starting database seeding...")
        try:
            seed_all(db)
        except Exception as e:
            db.rollback()
            logger.exception(f"Seeding failed: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=ResponseWrapper.error("Database seeding failed. Check server logs for details.", "SEED_FAILED"),
            ) from e
        logger.info("Database seeding completed successfully.")
        return ResponseWrapper.success(message="Database seeded successfully.")

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
