"""
BrainQuest API - Main Application
FILE: brainquest/main.py
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
import time

from brainquest.core.config import settings
from brainquest.db.mongodb import connect_to_mongo, close_mongo_connection, ping_mongo
from brainquest.services.question_source import close_trivia_client
from brainquest.services.session_registry import clear_session_registry
from brainquest.api.quiz import router as quiz_router
from brainquest.api.stats import router as stats_router

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    # Startup
    logger.info("🚀 Starting BrainQuest API...")

    try:
        await connect_to_mongo()
        logger.info("✓ MongoDB connected")
    except Exception as e:
        logger.error(f"❌ Startup error: {e}")
        raise

    yield

    # Shutdown
    logger.info("🛑 Shutting down BrainQuest API...")

    try:
        clear_session_registry()
        await close_trivia_client()
        await close_mongo_connection()
        logger.info("✓ Cleanup complete")

    except Exception as e:
        logger.error(f"❌ Shutdown error: {e}")


app = FastAPI(
    title="BrainQuest API",
    description="""
    Trivia quiz API backed by Open Trivia DB and MongoDB.

    ## Endpoints
    - **Quiz**: `/api/quiz/*` - configure, play and finalize quiz sessions
    - **Users**: `/api/users/*` - profiles, statistics and recent attempts
    - **Leaderboard**: `/api/leaderboard` - rankings by total, average or best score
    - **Health**: `/health` - service health check

    Requests that act on behalf of a user carry the `X-User-Id` header.
    """,
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)


# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request timing middleware
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Add processing time to response headers"""
    start_time = time.time()
    response = await call_next(request)
    process_time = (time.time() - start_time) * 1000  # Convert to ms
    response.headers["X-Process-Time-Ms"] = str(round(process_time, 2))
    return response


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all incoming requests"""
    logger.info(f"📨 {request.method} {request.url.path}")
    response = await call_next(request)
    logger.info(
        f"📤 {request.method} {request.url.path} - "
        f"Status: {response.status_code}"
    )
    return response


# ==================== INCLUDE ROUTERS ====================

app.include_router(quiz_router, tags=["Quiz"])
app.include_router(stats_router, tags=["Statistics"])


# ==================== ROOT ENDPOINTS ====================

@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information"""
    return {
        "message": "BrainQuest API",
        "version": "1.0.0",
        "status": "operational",
        "endpoints": {
            "docs": "/docs",
            "quiz_options": "/api/quiz/options",
            "sessions": "/api/quiz/sessions",
            "leaderboard": "/api/leaderboard",
            "health": "/health"
        }
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check for the API and its MongoDB connection

    Returns:
        Health status for all components
    """
    mongo_ok = await ping_mongo()

    health_status = {
        "status": "healthy" if mongo_ok else "degraded",
        "timestamp": time.time(),
        "components": {
            "mongodb": {
                "status": "healthy" if mongo_ok else "unhealthy",
                "message": "Connected and responsive" if mongo_ok else "Connection failed"
            }
        },
        "api": {
            "title": app.title,
            "version": app.version,
            "status": "operational"
        }
    }

    if not mongo_ok:
        logger.error("❌ MongoDB health check failed")

    return JSONResponse(
        status_code=200 if mongo_ok else 503,
        content=health_status
    )


# ==================== RUN APPLICATION ====================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "brainquest.main:app",
        host="0.0.0.0",
        port=8080,
        reload=True,
        log_level="info"
    )
