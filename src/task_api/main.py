import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .errors import ApiError, AuthenticationError
from .logging_setup import setup_logging
from .routers import auth as auth_router
from .routers import tasks as tasks_router
from .settings import get_settings
from .validation import translate_errors

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "auth", "description": "Registration, login and bearer-token lifecycle."},
    {
        "name": "tasks",
        "description": "Task CRUD. Reads are public; create, update and delete need a bearer token "
        "and update/delete are restricted to the task owner.",
    },
]

_settings = get_settings()
setup_logging(level=_settings.log_level, log_file=_settings.log_file)

app = FastAPI(
    title="Task API",
    description="Task management REST API with token authentication and owner-only task mutation.",
    version="0.1.0",
    openapi_tags=openapi_tags,
)

# Configure CORS based on settings (CORS_ALLOW_ORIGINS), with '*' fallback
allow_all = (_settings.cors_allow_origins == ["*"]) or (len(_settings.cors_allow_origins) == 0)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_all else _settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    """
    Render service errors into the standard envelope.

    Response format:
        {
            "status": false,
            "message": "...",
            "errors": {"field": ["message", ...]}   # validation errors only
        }
    """
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_envelope(), headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Return the standard envelope for requests FastAPI could not parse.

    A malformed path parameter (e.g. /tasks/abc) cannot name an existing
    resource and is reported as 404.
    """
    errors = exc.errors()
    if any(err.get("loc", ())[:1] == ("path",) for err in errors):
        return JSONResponse(status_code=404, content={"status": False, "message": "Not Found"})
    return JSONResponse(
        status_code=422,
        content={"status": False, "message": "Request Failed", "errors": translate_errors(errors)},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """
    Envelope for routing-level errors: unknown endpoints and unsupported methods.
    """
    if exc.status_code == 404:
        message = "Invalid Endpoint"
    elif exc.status_code == 405:
        message = "Method not supported"
    else:
        message = str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"status": False, "message": message},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"status": False, "message": "Server Error"})


# PUBLIC_INTERFACE
@app.get("/", summary="Health Check", tags=["health"])
def health_check():
    """
    Health check endpoint.

    Returns:
        A JSON object indicating service health.
    """
    return {"status": True, "message": "Healthy", "backend": _settings.persistence_backend}


# Include routers
app.include_router(auth_router.router)
app.include_router(tasks_router.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
