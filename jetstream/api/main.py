"""
FastAPI application entry point.

Serves the job and log endpoints on top of a single in-process
DispatchService. Job state lives in memory and is lost on restart.

Optional API key authentication (API_AUTH_ENABLED / API_KEY).
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI

from jetstream import __version__
from jetstream.config import load_settings
from jetstream.infra.logging_config import setup_logging
from .routers import jobs, logs
from ._service_state import init_dispatch_service, shutdown_dispatch_service
from .dependencies.auth import verify_api_key, API_AUTH_ENABLED

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup: logging, dispatch service, server-started notification,
    reporting loops. Shutdown: cancel every task.
    """
    settings = load_settings()
    setup_logging(settings.log_level, settings.log_dir)
    logger.info(f"Starting JetStream {__version__} with {settings!r}")

    service = init_dispatch_service(settings)
    service.notify_server_started(settings.port)
    service.start_reporting()

    yield

    shutdown_dispatch_service()


tags_metadata = [
    {
        "name": "jobs",
        "description": "Paced dispatch jobs - upload a CSV batch, list, stop and delete jobs",
    },
    {
        "name": "logs",
        "description": "Rolling in-memory dispatch log (attempts, successes, errors, job lifecycle)",
    },
]

app = FastAPI(
    title="JetStream Dispatch API",
    lifespan=lifespan,
    description="""
## JetStream Dispatch API

Spreads a CSV batch of events evenly over a number of days and sends them,
one per interval, to the AppsFlyer in-app-event API.

### Authentication
When `API_AUTH_ENABLED=true`, all endpoints except `/health` require an
`X-API-Key` header matching the `API_KEY` environment variable.

### Usage
```bash
# Start server
uvicorn jetstream.api.main:app --host 0.0.0.0 --port 3000

# Start a job
curl -X POST http://localhost:3000/api/jobs \\
  -H "X-API-Key: your-api-key" \\
  -F bundle=com.example.app -F dev_key=XXXX -F days=2 -F file=@events.csv
```
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=tags_metadata,
)


# Health check - NO authentication (operational endpoint)
@app.get("/health")
async def health_check():
    """Health check endpoint. Not authenticated."""
    return {"status": "ok", "version": __version__}


auth_dependency = [Depends(verify_api_key)] if API_AUTH_ENABLED else []

app.include_router(
    jobs.router, prefix="/api/jobs", tags=["jobs"], dependencies=auth_dependency
)
app.include_router(
    logs.router, prefix="/api/logs", tags=["logs"], dependencies=auth_dependency
)


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    import uvicorn

    settings = load_settings()
    uvicorn.run(app, host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    run()
