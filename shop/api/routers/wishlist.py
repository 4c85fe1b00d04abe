# shop/api/routers/wishlist.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from shop.api.deps import get_session_wishlist, get_user_session, session_store_errors
from shop.data.database import get_db
from shop.domain.schemas import WishlistIn, WishlistOut
from shop.domain.wishlist import Wishlist
from shop.repos.product_repo import ProductRepo
from shop.services.session_store import UserSession
from shop.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/wishlist", tags=["wishlist"])


def wishlist_out(wishlist: Wishlist) -> dict:
    return {
        "items": [i.model_dump() for i in wishlist.items],
        "count": wishlist.count_items(),
    }


@router.get("", response_model=WishlistOut)
def get_wishlist(wishlist: Wishlist = Depends(get_session_wishlist)):
    return wishlist_out(wishlist)


@router.post("/items", response_model=WishlistOut)
def add_to_wishlist(
    payload: WishlistIn,
    wishlist: Wishlist = Depends(get_session_wishlist),
    session: UserSession = Depends(get_user_session),
    db: Session = Depends(get_db),
):
    """
    Saves a product; saving one that is already listed changes nothing.
    """
    product = ProductRepo(db).get_product(payload.product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    if wishlist.add_item(product.id, product.name, product.price):
        with session_store_errors():
            session.save_wishlist(wishlist)
        logger.info(f"Product {product.id} saved to wishlist")
    return wishlist_out(wishlist)


@router.delete("/items/{product_id}", response_model=WishlistOut)
def remove_from_wishlist(
    product_id: int,
    wishlist: Wishlist = Depends(get_session_wishlist),
    session: UserSession = Depends(get_user_session),
):
    if not wishlist.remove_item(product_id):
        raise HTTPException(status_code=404, detail="Product not in wishlist")

    with session_store_errors():
        session.save_wishlist(wishlist)
    return wishlist_out(wishlist)
