# shop/api/routers/health.py
from fastapi import APIRouter, Depends, HTTPException
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shop.api.deps import get_session_store
from shop.data.database import get_db
from shop.services.session_store import SessionStore

router = APIRouter(tags=["health"])


@router.get("/health")
def health(db: Session = Depends(get_db), store: SessionStore = Depends(get_session_store)):
    try:
        db.execute(text("SELECT 1"))
        store.redis.ping()
    except (SQLAlchemyError, RedisError) as e:
        raise HTTPException(status_code=503, detail=f"unhealthy: {e}")
    return {"status": "ok"}
