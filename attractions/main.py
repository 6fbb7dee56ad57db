import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from attractions.approvals.router import router as approvals_router
from attractions.auth.router import router as auth_router
from attractions.bookings.router import router as bookings_router
from attractions.catalogue.router import router as catalogue_router
from attractions.config import settings
from attractions.database import SessionLocal, create_tables, engine
from attractions.dependencies import Container
from attractions.exceptions import AttractionsError, VendorBookingFailed
from attractions.responses import get_tracking_id, send_response

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_tables(engine)
    owns_container = getattr(app.state, "container", None) is None
    if owns_container:
        app.state.container = Container(SessionLocal)
    logger.info("%s started (%s)", settings.PROJECT_NAME, settings.ENVIRONMENT)
    yield
    if owns_container:
        await app.state.container.close()
        app.state.container = None
    await engine.dispose()


# Create FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    description="Attractions reseller API",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Error envelope
@app.exception_handler(AttractionsError)
async def attractions_error_handler(request: Request, exc: AttractionsError):
    tracking_id = get_tracking_id(request)
    log = logger.error if exc.status_code >= 500 else logger.info
    log("%s %s failed [%s] (tracking id %r): %s", request.method, request.url.path, exc.error_code, tracking_id, exc.message)

    data = {"error": exc.message, "error_code": exc.error_code, "tracking_id": tracking_id}
    data.update(exc.data)
    if isinstance(exc, VendorBookingFailed):
        data["outcome_ambiguous"] = exc.outcome_ambiguous
    return send_response(False, exc.status_code, exc.message, data)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = f"Invalid request: {location} {first.get('msg', '')}".strip()
    return send_response(False, status.HTTP_400_BAD_REQUEST, message, {
        "error": message,
        "error_code": "INVALID_REQUEST",
        "tracking_id": get_tracking_id(request),
    })


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    tracking_id = get_tracking_id(request)
    logger.exception("Unhandled error on %s %s (tracking id %r)", request.method, request.url.path, tracking_id)
    return send_response(False, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error.", {
        "error": "Internal server error.",
        "error_code": "INTERNAL_ERROR",
        "tracking_id": tracking_id,
    })


# Include routers
app.include_router(
    auth_router,
    prefix=f"{settings.API_PREFIX}/auth",
    tags=["Authentication"]
)

app.include_router(
    catalogue_router,
    prefix=f"{settings.API_PREFIX}/event_packages",
    tags=["Catalogue"]
)

app.include_router(
    bookings_router,
    prefix=f"{settings.API_PREFIX}/event_packages",
    tags=["Bookings"]
)

app.include_router(
    approvals_router,
    prefix=f"{settings.API_PREFIX}/event_packages",
    tags=["Booking Approvals"]
)


@app.get("/")
def root():
    """Root endpoint"""
    return {
        "message": "Welcome to the Attraction API",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health")
def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
