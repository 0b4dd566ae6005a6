"""
This is the main FastAPI application file, which wires the database,
the generic table routes and the optional frontend shell together.
"""

from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request, status
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse, Response

from app.routers import frontend_router
from app.routers import tables_router as tables_router
from app.storage.database import Database
from app.utils.config_utils import get_config
from app.utils.errors_utils import ErrorDetail, ErrorTypes, StandardErrorResponse
from app.utils.logging_utils import get_logger, setup_logging

logger = get_logger(__name__)
config = get_config()

database = Database()


@asynccontextmanager
async def lifespan(_: FastAPI) -> Any:
    """Handles application startup and shutdown events."""
    setup_logging()

    # Configuration is read again so the database location can be changed
    # between application starts (for example by the test suite)
    await database.setup(get_config())

    yield

    # Cleanup during shutdown
    await database.aclose()


app = FastAPI(
    title="Dynamic Table CRUD API",
    description="Schema-driven CRUD operations over any table or view in the store.",
    lifespan=lifespan,
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=[config.get("general.frontend_url", "*")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Middleware to log incoming requests."""
    try:
        response = await call_next(request)

        # Log the request after successful processing
        logger.info(
            f"[{response.status_code}] {request.method} {request.url.path} - {request.query_params}"
            if request.query_params
            else f"[{response.status_code}] {request.method} {request.url.path}"
        )

        return response
    except Exception as e:
        logger.error(f"Middleware error for {request.method} {request.url.path}: {e}")
        raise


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch all unhandled exceptions and return a standardized 500 response."""
    logger.error(
        f"Unhandled exception for {request.method} {request.url}", exc_info=True
    )

    # Create standardized error response
    error_response = StandardErrorResponse(
        message="An internal server error occurred. Please try again later.",
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        details=ErrorDetail(
            error=ErrorTypes.INTERNAL_ERROR,
            message=f"Unhandled exception: {str(exc)}",
        ),
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response.model_dump(exclude_none=True),
    )


@app.get("/health", tags=["health"])
async def health() -> dict[str, str]:
    """Report whether the database connection is open."""
    return {"status": "ok" if database.is_connected else "starting"}


# Initialize router dependencies
tables_router.init_dependencies(database)

# Include routers
app.include_router(tables_router.router)

# The shell's catch-all route must come last
frontend_dir = config.get("general.frontend_dir")
if frontend_dir and Path(frontend_dir).is_dir():
    app.include_router(frontend_router.build_router(frontend_dir))
elif frontend_dir:
    logger.warning(f"Frontend directory {frontend_dir} not found - shell disabled")
