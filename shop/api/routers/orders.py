# shop/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from shop.data.database import get_db
from shop.domain.errors import InvalidStateError, OrderNotFoundError
from shop.domain.schemas import OrderOut, OrderStatsOut
from shop.services.order_store import OrderStore

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(db: Session):
    return OrderStore(db)


@router.get("/stats", response_model=OrderStatsOut)
def order_stats(db: Session = Depends(get_db)):
    svc = get_service(db)
    return {
        "order_count": svc.get_order_count(),
        "total_revenue": svc.get_total_revenue(),
    }


@router.get("", response_model=List[OrderOut])
def list_orders(user_id: str = Query(...), db: Session = Depends(get_db)):
    return get_service(db).list_orders_for_user(user_id)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    user_id: str = Query(...),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        order = svc.get_order(order_id)
    except OrderNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    if order.user_id != user_id:
        raise HTTPException(status_code=403, detail="No access to this order")
    return order


@router.post("/{order_id}/complete", response_model=OrderOut)
def complete_order(order_id: int, db: Session = Depends(get_db)):
    """
    Operator action: PENDING -> COMPLETED.
    """
    svc = get_service(db)
    try:
        return svc.complete_order(order_id)
    except OrderNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
