# shop/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI
import uvicorn

from shop.api import create_app
from shop.data.database import Base, engine
from shop.data.seed import seed
from shop.utils.logging import get_logger

# import all models before create_all
import shop.data.models  # noqa: F401

logger = get_logger(__name__)


def init_db():
    logger.info(f"Initializing database, tables: {list(Base.metadata.tables.keys())}")
    try:
        Base.metadata.create_all(bind=engine)
    except Exception as e:
        logger.error(f"Failed to create tables: {e}")
        raise
    logger.info("Database tables ready")
    seed()


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = create_app(lifespan=lifespan)

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
