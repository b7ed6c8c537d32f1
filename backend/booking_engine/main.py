from contextlib import asynccontextmanager
import logging

from fastapi import Depends, FastAPI
from redis import Redis

from .logging_setup import setup_logging
from .redis_client import get_redis
from .routers import appointments, businesses, slots, staff

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info("Booking engine started")
    yield


app = FastAPI(title="Booking Engine API", lifespan=lifespan)

app.include_router(slots.router)
app.include_router(appointments.router)
app.include_router(businesses.router)
app.include_router(staff.router)


@app.get("/health")
def health(redis: Redis = Depends(get_redis)):
    try:
        redis_ok = bool(redis.ping())
    except Exception as e:
        logger.warning(f"Redis ping failed: {e}")
        redis_ok = False
    return {"status": "ok", "redis": redis_ok}
