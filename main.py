from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import structlog
from datetime import datetime
from app import __version__
from app.routers import ai_router, tools_router, history_router
from app.utils.config import settings
from app.models import HealthCheckResponse, ErrorResponse

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()

# Create FastAPI application
app = FastAPI(
    title="AI Study Assistant",
    description="Step-by-step solutions, explanations, summaries and practice questions",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify actual origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(ai_router.router)
app.include_router(tools_router.router)
app.include_router(history_router.router)


@app.get("/", response_model=dict)
async def root():
    """Root endpoint with API information"""
    return {
        "message": "Study Assistant API",
        "version": __version__,
        "description": "AI-powered study tools with saved study history",
        "endpoints": {
            "completion": "/ai",
            "summarizer": "/tools/summarize",
            "solver": "/tools/solve",
            "flashcards": "/tools/flashcards",
            "tools": "/tools/{feature}",
            "history": "/history",
            "health": "/health",
            "docs": "/docs"
        }
    }


@app.get("/health", response_model=HealthCheckResponse)
async def health_check():
    """Reports whether the external services are configured"""
    if settings.completion_provider == "edge_function":
        completion_ready = settings.supabase_configured
    else:
        completion_ready = bool(settings.groq_api_key)

    components_status = {
        "completion": "configured" if completion_ready else "missing configuration",
        "session_store": "configured" if settings.supabase_configured else "missing configuration",
        "response_parser": "healthy"
    }

    overall_status = "healthy" if completion_ready and settings.supabase_configured else "degraded"

    return HealthCheckResponse(
        status=overall_status,
        timestamp=datetime.now().isoformat(),
        version=__version__,
        components_status=components_status
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc):
    """Custom HTTP exception handler"""
    logger.warning("HTTP exception occurred",
                  status_code=exc.status_code,
                  detail=exc.detail,
                  path=request.url.path)

    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=str(exc.detail),
            error_code=str(exc.status_code)
        ).model_dump()
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc):
    """General exception handler"""
    logger.error("Unhandled exception occurred",
                error=str(exc),
                path=request.url.path)

    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error="Internal server error",
            error_code="500",
            details={"message": str(exc) if settings.debug else "An error occurred"}
        ).model_dump()
    )


@app.on_event("startup")
async def startup_event():
    """Application startup event"""
    logger.info("Starting AI Study Assistant",
               version=__version__,
               debug=settings.debug,
               completion_provider=settings.completion_provider)

    if not settings.supabase_configured:
        logger.warning("Supabase is not configured; study history will be unavailable")


@app.on_event("shutdown")
async def shutdown_event():
    """Application shutdown event"""
    logger.info("Shutting down AI Study Assistant")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
