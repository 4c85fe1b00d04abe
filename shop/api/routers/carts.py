#shop/api/routers/carts.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from shop.api.deps import get_session_cart, get_user_session, session_store_errors
from shop.data.database import get_db
from shop.domain.cart import Cart
from shop.domain.errors import InvalidInputError
from shop.domain.schemas import CartOut, ItemIn, QuantityIn
from shop.repos.product_repo import ProductRepo
from shop.services.session_store import UserSession
from shop.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/cart", tags=["cart"])


def cart_out(cart: Cart) -> dict:
    return {
        "items": [
            {
                "product_id": i.product_id,
                "quantity": i.quantity,
                "unit_price": i.unit_price,
                "discount": i.discount,
            }
            for i in cart.items
        ],
        "subtotal": cart.subtotal(),
        "discount_total": cart.discount_total(),
        "shipping_fee": cart.shipping_fee(),
        "total": cart.total(),
    }


@router.get("", response_model=CartOut)
def get_cart(cart: Cart = Depends(get_session_cart)):
    return cart_out(cart)


@router.post("/items", response_model=CartOut)
def add_item(
    payload: ItemIn,
    cart: Cart = Depends(get_session_cart),
    session: UserSession = Depends(get_user_session),
    db: Session = Depends(get_db),
):
    product = ProductRepo(db).get_product(payload.product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    try:
        cart.add_item(payload.product_id, payload.quantity, product.price, product.discount)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))

    with session_store_errors():
        session.save_cart(cart)
    logger.info(f"Added product {payload.product_id} x{payload.quantity} to session cart")
    return cart_out(cart)


@router.patch("/items/{product_id}", response_model=CartOut)
def update_item(
    product_id: int,
    payload: QuantityIn,
    cart: Cart = Depends(get_session_cart),
    session: UserSession = Depends(get_user_session),
):
    try:
        updated = cart.update_quantity(product_id, payload.quantity)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if not updated:
        raise HTTPException(status_code=404, detail="Product not in cart")

    with session_store_errors():
        session.save_cart(cart)
    return cart_out(cart)


@router.delete("/items/{product_id}", response_model=CartOut)
def remove_item(
    product_id: int,
    cart: Cart = Depends(get_session_cart),
    session: UserSession = Depends(get_user_session),
):
    if not cart.remove_item(product_id):
        logger.warning(f"Product {product_id} not found in cart")
        raise HTTPException(status_code=404, detail="Product not in cart")

    with session_store_errors():
        session.save_cart(cart)
    return cart_out(cart)
