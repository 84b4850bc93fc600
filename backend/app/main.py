"""
FastAPI application for the Form Schema Extractor.
"""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from datetime import datetime
import logging

from app.config import Config
from app.models import HealthResponse
from app.routes import form_extractor, training
from app.services.form_schema_pipeline import (
    ConfigurationError, EmptyInputError, FormExtractionError
)
from app.utils.document_converter import UnsupportedFileTypeError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Form Schema Extractor API",
    description="API for extracting structured form definitions from documents",
    version="1.0.0"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(form_extractor.router)
app.include_router(training.router)

# Errors caused by the request itself
CLIENT_ERRORS = (EmptyInputError, UnsupportedFileTypeError)


@app.on_event("startup")
async def startup_event():
    """Validate configuration on startup."""
    try:
        Config.validate()
        logger.info("Configuration validated successfully")
    except ConfigurationError as e:
        # keep serving: extraction requests fail with 500 until it is fixed
        logger.error(f"Configuration error: {e}")


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="ok",
        timestamp=datetime.now()
    )


@app.exception_handler(FormExtractionError)
async def form_extraction_exception_handler(request: Request, exc: FormExtractionError):
    """Map extraction failures to a status code and their user-facing message."""
    status_code = 400 if isinstance(exc, CLIENT_ERRORS) else 500
    logger.error(f"Form extraction failed ({type(exc).__name__}): {exc}")
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": exc.user_message}
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render HTTP errors in the {success, error} envelope."""
    error = exc.detail
    if exc.status_code == 404 and error == "Not Found":
        error = "Endpoint not found"
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": error}
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Reject malformed request bodies."""
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": "Invalid request body"}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": str(exc) if Config.EXPOSE_ERROR_DETAILS else "Internal server error"
        }
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=Config.API_HOST,
        port=Config.API_PORT,
        reload=True
    )
