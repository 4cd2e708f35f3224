"""FastAPI web application for DMS."""

import logging

from fastapi import APIRouter, FastAPI

from dms.api.errors import register_exception_handlers
from dms.api.routes import app_settings, auth, plants, task_instances, task_masters, users
from dms.database.database import init_db

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"
VERSION = "0.1.0"

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(plants.router, prefix="/plants", tags=["plants"])
api_router.include_router(task_masters.router, prefix="/task-masters", tags=["task-masters"])
api_router.include_router(task_instances.router, prefix="/task-instances", tags=["task-instances"])
api_router.include_router(app_settings.router, prefix="/app-settings", tags=["app-settings"])

# Initialize FastAPI app
app = FastAPI(
    title="DMS API",
    description="Manufacturing operations: recurring task assignment, plants, users and settings",
    version=VERSION,
)
register_exception_handlers(app)
app.include_router(api_router, prefix=API_PREFIX)


@app.on_event("startup")
def on_startup():
    init_db()
    logger.info("DMS API started")


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": VERSION}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
