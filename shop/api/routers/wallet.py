# shop/api/routers/wallet.py
from fastapi import APIRouter, Depends, HTTPException, Query
from redis.exceptions import RedisError
from sqlalchemy.orm import Session

from shop.api.deps import get_user_session
from shop.data.database import get_db
from shop.domain.errors import WalletNotFoundError
from shop.domain.schemas import WalletOut
from shop.services.session_store import UserSession
from shop.services.wallet_ledger import WalletLedger
from shop.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/wallet", tags=["wallet"])


@router.get("", response_model=WalletOut)
def get_wallet(
    user_id: str = Query(...),
    session: UserSession = Depends(get_user_session),
    db: Session = Depends(get_db),
):
    try:
        balance = WalletLedger(db).get_balance(user_id)
    except WalletNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    try:
        session.cache_wallet(balance)
    except RedisError as e:
        logger.warning(f"Could not refresh cached wallet for {user_id}: {e}")

    return {"user_id": user_id, "balance": balance}
