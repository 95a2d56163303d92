"""
FastAPI backend for the Code Review Analyzer.

Takes language and code, returns bugs, performance, security and
best-practice findings, a rewritten version and complexity estimates.
"""

import time
from datetime import datetime, timezone
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

# Load environment variables
load_dotenv()

from core.analyzer import CodeAnalyzer
from core.config import settings, logger
from core.errors import (
    AnalysisError,
    ModelInvocationError,
    ModelTimeoutError,
    RateLimitedError,
    ValidationError,
    user_message,
)
from core.models import AnalysisMode, AnalysisRequest, AnalysisResult
from core.rules import SUPPORTED_LANGUAGES
from providers import default_model_available, model_name

__version__ = "1.0.0"


# Request/Response Models
class AnalyzeRequest(BaseModel):
    """Request model for a code submission."""
    language: str = Field(..., min_length=1, description="Programming language of the code")
    code: str = Field(
        ...,
        min_length=settings.MIN_CODE_LENGTH,
        max_length=settings.MAX_CODE_LENGTH,
        description="Code to analyze",
    )
    apiKey: Optional[str] = Field(default=None, description="Optional Groq API key, selects the alternate backend")
    mode: AnalysisMode = Field(default="review", description="review (all categories) or fix (errors only)")


class AnalyzeResponse(BaseModel):
    """Response model with the analysis result."""
    success: bool
    result: AnalysisResult | None = None
    error: str | None = None


# Initialize FastAPI
app = FastAPI(
    title="Code Review Analyzer",
    description="Review code for bugs, performance, security and best practices using an LLM",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials="*" not in settings.cors_origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Log validation errors without echoing submitted code."""
    error_details = [
        {"field": err.get("loc", [])[-1] if err.get("loc") else "unknown", "type": err.get("type")}
        for err in exc.errors()[:5]
    ]
    logger.warning("Validation error on %s %s: %s", request.method, request.url.path, error_details)
    return JSONResponse(
        status_code=422,
        content={"success": False, "error": "Invalid request format", "details": error_details},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Error responses share the {"success": false, "error": ...} envelope."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(
        "Unhandled exception on %s %s: %s: %s",
        request.method,
        request.url.path,
        type(exc).__name__,
        str(exc)[:200],
    )
    return JSONResponse(status_code=500, content={"success": False, "error": "Internal server error"})


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Code Review Analyzer API",
        "version": __version__,
        "endpoints": {
            "/analyze": "POST - Review code (input: language, code, optional apiKey and mode)",
            "/languages": "GET - Supported languages",
            "/health": "GET - Health check",
        },
    }


@app.get("/health")
async def health():
    """Health check."""
    model_ready = default_model_available()
    return {
        "status": "ok",
        "engine": settings.ANALYSIS_ENGINE,
        "model": model_name() if model_ready else None,
        "modelAvailable": model_ready,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.get("/languages")
async def languages():
    """Languages with language-specific rules."""
    return {"languages": list(SUPPORTED_LANGUAGES)}


async def run_analysis(request: AnalysisRequest) -> AnalysisResult:
    """Run the analyzer, retrying timeouts. Rate limits are never retried."""
    analyzer = CodeAnalyzer()
    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(settings.MODEL_RETRY_ATTEMPTS),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type(ModelTimeoutError),
        reraise=True,
    ):
        with attempt:
            return await analyzer.analyze(request)


@app.post("/analyze", response_model=AnalyzeResponse)
async def analyze_code(request: AnalyzeRequest):
    """
    Review code.

    Uses the caller's Groq key when given, the default model otherwise, and
    the offline heuristics when no model is configured.
    """
    request_id = datetime.now().strftime("%Y%m%d-%H%M%S-%f")
    start_time = time.time()

    logger.info(
        "[%s] REQUEST RECEIVED - language=%s mode=%s code length=%d chars",
        request_id,
        request.language,
        request.mode,
        len(request.code),
    )

    analysis_request = AnalysisRequest(
        language=request.language,
        code=request.code,
        credential=request.apiKey,
        mode=request.mode,
    )

    try:
        result = await run_analysis(analysis_request)
    except RateLimitedError as e:
        logger.warning("[%s] RATE LIMITED - %s", request_id, e)
        retry_after = int(e.retry_after or settings.RATE_LIMIT_COOLDOWN_SECONDS)
        raise HTTPException(status_code=429, detail=user_message(e), headers={"Retry-After": str(retry_after)})
    except ModelTimeoutError as e:
        logger.error("[%s] REQUEST TIMED OUT - %s", request_id, e)
        raise HTTPException(status_code=504, detail=user_message(e))
    except ModelInvocationError as e:
        logger.error("[%s] MODEL FAILED - %s", request_id, e)
        raise HTTPException(status_code=502, detail=user_message(e))
    except ValidationError as e:
        logger.warning("[%s] INVALID REQUEST - %s", request_id, e)
        raise HTTPException(status_code=422, detail=user_message(e))
    except AnalysisError as e:
        logger.error("[%s] REQUEST FAILED - %s", request_id, e)
        raise HTTPException(status_code=500, detail=user_message(e))

    elapsed_time = time.time() - start_time
    logger.info(
        "[%s] REQUEST COMPLETED - Time taken: %.3fs - engine=%s time=%s space=%s",
        request_id,
        elapsed_time,
        result.engine,
        result.timeComplexity,
        result.spaceComplexity,
    )

    return AnalyzeResponse(success=True, result=result)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "backend:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
