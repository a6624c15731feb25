"""Main FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from filepki.api.dependencies import get_config
from filepki.api.routes import authority, cert, crl
from filepki.exceptions import AlreadyExistsError, ArtifactNotFoundError, DecryptionError
from filepki.utils.logger import setup_logger

# Load configuration
config = get_config()

# Setup logging
setup_logger(config)
logger = logging.getLogger("filepki")

ERROR_STATUS_CODES = [
    (AlreadyExistsError, status.HTTP_409_CONFLICT),
    (ArtifactNotFoundError, status.HTTP_404_NOT_FOUND),
    (DecryptionError, status.HTTP_403_FORBIDDEN),
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan event handler."""
    logger.info(f"Starting {config.app.title} v{config.app.version}")
    logger.info(f"PKI data directory: {config.paths.pki_data}")

    Path(config.paths.pki_data).mkdir(parents=True, exist_ok=True)

    yield

    logger.info(f"Shutting down {config.app.title}")


app = FastAPI(
    title=config.app.title,
    version=config.app.version,
    debug=config.app.debug,
    description="""
    **FilePKI** - A small file-backed certificate authority.

    ## Features
    - Bootstrap a root authority with an optionally encrypted key
    - Issue server, client and CA certificates with Subject Alternative Names
    - Revoke certificates through the CRL of their issuer
    - View certificates decoded or in a human-readable text format
    """,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    """Map PKI and validation errors to HTTP status codes."""
    status_code = status.HTTP_400_BAD_REQUEST
    for error_type, code in ERROR_STATUS_CODES:
        if isinstance(exc, error_type):
            status_code = code
            break

    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


app.include_router(authority.router)
app.include_router(cert.router)
app.include_router(crl.router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": config.app.version}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="localhost", port=8000, reload=config.app.debug)
