"""
FastAPI server for the exam lifecycle and grading backend
"""
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from exam_backend.api import router
from exam_backend.core.errors import AppError
from exam_backend.core.logger import get_error_logger, setup_logging
from exam_backend.core.middleware import LoggingMiddleware
from exam_backend.core.models import ErrorResponse

setup_logging()
error_logger = get_error_logger()

app = FastAPI(
    title="Exam Backend",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(LoggingMiddleware)

# CORS middleware for frontend communication
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def error_response(status_code: int, message: str, code: str, entity=None, details=None) -> JSONResponse:
    body = ErrorResponse(
        message=message,
        code=code,
        status_code=status_code,
        entity=entity,
        details=details,
    )
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        error_logger.error("%s %s -> %r", request.method, request.url.path, exc, exc_info=exc)
    return error_response(exc.status_code, exc.message, exc.code, exc.entity, exc.details)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    return error_response(
        400,
        "Invalid request",
        "VALIDATION_ERROR",
        details={"errors": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(PydanticValidationError)
async def pydantic_validation_error_handler(request: Request, exc: PydanticValidationError):
    return error_response(
        400,
        "Invalid request",
        "VALIDATION_ERROR",
        details={"errors": jsonable_encoder(exc.errors(include_url=False, include_context=False))},
    )


# Include API routes
app.include_router(router)
