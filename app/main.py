import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from starlette.responses import JSONResponse

from app.config import settings
from app.models.error import Error
from app.routers import cache, users
from app.services import scheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    logger.info("Starting scheduler...")
    scheduler.start()
    try:
        yield
    finally:
        logger.info("Shutting down scheduler...")
        scheduler.shutdown()

app = FastAPI(lifespan=lifespan)

@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.url.path}: {exc}")
    error = Error(name=type(exc).__name__, description=str(exc))
    return JSONResponse(status_code=500, content=error.model_dump())

@app.get("/")
async def read_root() -> dict[str, str]:
    return {"message": "You seem lost!"}


app.include_router(users.router, prefix="/users", tags=["users"])
app.include_router(cache.router, prefix="/cache", tags=["cache"])
