"""FastAPI application: helpdesk tickets, users and per-ticket chat."""
import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import Request
from starlette.responses import JSONResponse

from helpdesk.api import auth, chats, presence, tickets, users
from helpdesk.config import get_settings
from helpdesk.deps import get_db
from helpdesk.redis_client import close_redis, init_redis
from helpdesk.storage.db import close_db, execute_query, init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    await init_db()
    # Redis (optional: typing presence)
    await init_redis(settings.redis_url)
    try:
        yield
    finally:
        await close_redis()
        await close_db()


settings = get_settings()

app = FastAPI(
    title=f"{settings.app_name} API",
    description="Helpdesk ticketing backend with per-ticket chat",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.exception_handler(SQLAlchemyError)
async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error: %s", exc)
    return JSONResponse(
        status_code=503,
        content={
            "detail": "Service unavailable: database failure",
            "request_id": getattr(request.state, "request_id", None),
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Return 500 as JSON so CORS middleware adds headers; let HTTPException through."""
    if isinstance(exc, HTTPException):
        raise exc
    logger.exception("Unhandled error: %s", exc)
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "request_id": getattr(request.state, "request_id", None),
        },
    )


app.include_router(auth.router)
app.include_router(users.router)
app.include_router(tickets.router)
app.include_router(chats.router)
app.include_router(presence.router)


@app.get("/health")
async def health(session: AsyncSession = Depends(get_db)):
    try:
        await execute_query(session, "SELECT 1")
        db_status = "ok"
    except SQLAlchemyError:
        logger.warning("Health check: database unreachable")
        db_status = "error"
    return {"status": "ok", "database": db_status}


def run() -> None:
    """Entry point for `helpdesk-server`."""
    import uvicorn

    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=settings.log_level.upper(),
    )
    uvicorn.run("helpdesk.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
