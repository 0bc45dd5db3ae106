# prepbolt/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.config import config
from .core.database import get_db_manager, close_db_manager
from .core.ai_services import get_ai_service, close_ai_service
from .core.exceptions import NotFoundError, PersistenceError, GenerationError
from .api.routes import router

# Setup logging
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    logger.info("🚀 PrepBolt API starting...")

    try:
        # Validate configuration
        validation = config.validate()
        if not validation["valid"]:
            raise Exception(f"Configuration invalid: {validation['issues']}")

        logger.info("✅ Configuration validated")

        # Initialize database manager
        logger.info("🔄 Initializing database...")
        db_health = get_db_manager().validate_connection()

        if not db_health["overall"]:
            raise Exception(f"Database validation failed: {db_health}")

        logger.info("✅ Database connected and validated")

        # Initialize AI service
        logger.info("🔄 Initializing AI service...")
        ai_health = get_ai_service().health_check()

        if ai_health["status"] != "healthy":
            raise Exception(f"AI service validation failed: {ai_health}")

        logger.info(f"✅ AI service ready ({ai_health['mode']} mode)")
        logger.info(f"📊 Marking: mock tests +{config.MOCK_TEST_MARKS}/-{config.MOCK_TEST_NEGATIVE_MARKS}, "
                    f"quizzes +{config.QUIZ_MARKS} with no negative marking")
        logger.info(f"🏆 Leaderboard weights: quiz {config.QUIZ_SCORE_WEIGHT}, "
                    f"mock test {config.MOCK_TEST_SCORE_WEIGHT}")

    except Exception as e:
        logger.error(f"❌ Startup failed: {e}")
        raise Exception(f"Application startup failed: {e}")

    yield

    # Cleanup on shutdown
    logger.info("👋 Shutting down...")
    try:
        close_ai_service()
        close_db_manager()
        logger.info("✅ Graceful shutdown completed")
    except Exception as e:
        logger.error(f"❌ Shutdown error: {e}")

# Create FastAPI application
app = FastAPI(
    title=config.API_TITLE,
    description=config.API_DESCRIPTION,
    version=config.API_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(router)

# Exception handlers
def error_response(status_code: int, error: str, message: str, error_type: str, **extra) -> JSONResponse:
    """Error envelope shared by every handler"""
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "message": message, "type": error_type, **extra}
    )

@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    logger.warning(f"Not found: {exc}")
    return error_response(404, "Resource Not Found", str(exc), "not_found_error")

@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    logger.warning(f"Validation error: {exc}")
    return error_response(400, "Validation Error", str(exc), "validation_error")

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies get the same 400 envelope as ValueError"""
    message = "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg', '')}"
        for error in exc.errors()
    )
    logger.warning(f"Request validation error: {message}")
    return error_response(400, "Validation Error", message, "validation_error")

@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError):
    """Storage failed after scoring; the computed result still goes back"""
    logger.error(f"❌ Persistence error: {exc}")
    extra = {"result": exc.result} if exc.result is not None else {}
    return error_response(500, "Persistence Error", str(exc), "persistence_error", **extra)

@app.exception_handler(GenerationError)
async def generation_error_handler(request: Request, exc: GenerationError):
    logger.error(f"❌ Generation error: {exc}")
    return error_response(502, "Generation Error", str(exc), "generation_error")

@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return error_response(500, "Internal Server Error", "An unexpected error occurred", "server_error")

# Health check endpoints
@app.get("/health")
async def health_check():
    """Comprehensive health check"""
    health_status = {
        "status": "healthy",
        "service": "prepbolt_api",
        "version": config.API_VERSION
    }

    try:
        health_status["ai_service"] = get_ai_service().health_check()["status"]
    except Exception as e:
        health_status["ai_service"] = "error"
        logger.warning(f"AI service health check failed: {e}")

    try:
        db_health = get_db_manager().validate_connection()
        health_status["database"] = "healthy" if db_health["overall"] else "degraded"
    except Exception as e:
        health_status["database"] = "error"
        logger.warning(f"Database health check failed: {e}")

    if health_status["database"] != "healthy":
        health_status["status"] = "degraded"
    return health_status

@app.get("/info")
async def api_info():
    """API information and capabilities"""
    return {
        "name": config.API_TITLE,
        "version": config.API_VERSION,
        "description": config.API_DESCRIPTION,
        "features": {
            "ai_content_generation": True,
            "negative_marking": True,
            "custom_mock_tests": True,
            "daily_streaks": True,
            "spaced_repetition": True
        },
        "configuration": {
            "mock_test_marks": config.MOCK_TEST_MARKS,
            "mock_test_negative_marks": config.MOCK_TEST_NEGATIVE_MARKS,
            "quiz_marks": config.QUIZ_MARKS,
            "quiz_score_weight": config.QUIZ_SCORE_WEIGHT,
            "mock_test_score_weight": config.MOCK_TEST_SCORE_WEIGHT,
            "custom_test_ttl_seconds": config.CUSTOM_TEST_TTL_SECONDS,
            "dummy_data": config.USE_DUMMY_DATA
        },
        "endpoints": {
            "quizzes": "/api/quiz",
            "mock_tests": "/api/mock-test",
            "daily_topics": "/api/daily-topic",
            "flashcards": "/api/flashcards",
            "leaderboard": "/api/leaderboard",
            "progress": "GET /api/user/progress",
            "health": "GET /health",
            "docs": "GET /docs"
        }
    }

if __name__ == "__main__":
    import uvicorn

    logger.info("🚀 Starting PrepBolt API")
    logger.info(f"🌐 Server: http://{config.API_HOST}:{config.API_PORT}")
    logger.info(f"📚 Docs: http://{config.API_HOST}:{config.API_PORT}/docs")

    uvicorn.run(
        "prepbolt.main:app",
        host=config.API_HOST,
        port=config.API_PORT,
        reload=config.DEBUG_MODE,
        log_level=config.LOG_LEVEL.lower(),
        access_log=config.DEBUG_MODE
    )
