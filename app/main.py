"""
Placement Tracker - Main Application

FastAPI backend with:
- MongoDB for placement records
- Validation engine for student submissions and recruiter verifications
- Aggregation engine for the recruiter view and analytics dashboard
- Excel export of any filtered view

Run: uvicorn app.main:app --reload
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException

from app.api.routes import api_router
from app.core.config import get_settings
from app.db.mongodb import close_mongo_client, init_mongo_indexes, ping_mongo
from app.schemas.schemas import ApiResponse, HealthResponse

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Placement Tracker",
    description="""
    Placement tracking backend.

    ## Features
    - **Students**: Submit placement records (company, package, feedback)
    - **Recruiters**: Set employment status and verify placements
    - **Analytics**: Filtered statistics by company, course and batch
    - **Export**: Two-sheet Excel workbooks of any filtered view

    Every JSON response uses the envelope `{success, data, message, error}`.
    """,
    version="1.0.0",
    debug=settings.debug,
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS middleware (allow all for development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router, prefix="/api")


# Error envelopes
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    body = ApiResponse(success=False, error=str(exc.detail))
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    fields = {
        ".".join(str(part) for part in err["loc"] if part != "body"): err["msg"]
        for err in exc.errors()
    }
    body = ApiResponse(success=False, error=". ".join(fields.values()), data=fields)
    return JSONResponse(status_code=422, content=body.model_dump())


@app.exception_handler(PyMongoError)
async def store_error_handler(request: Request, exc: PyMongoError):
    logger.error("Store operation failed on %s: %s", request.url.path, exc)
    body = ApiResponse(success=False, error="Placement records are temporarily unavailable")
    return JSONResponse(status_code=500, content=body.model_dump())


# Startup event
@app.on_event("startup")
async def startup_event():
    """Initialize MongoDB indexes on startup."""
    try:
        init_mongo_indexes()
        logger.info("MongoDB indexes initialized")
    except PyMongoError as e:
        logger.warning("MongoDB index initialization failed: %s", e)


@app.on_event("shutdown")
async def shutdown_event():
    close_mongo_client()


@app.get("/", tags=["Health"])
async def root():
    return {"status": "healthy", "app": "Placement Tracker", "message": "API is running. See /docs."}


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Detailed health check."""
    connected = ping_mongo()
    return HealthResponse(
        status="healthy" if connected else "degraded",
        mongodb="connected" if connected else "disconnected",
    )
