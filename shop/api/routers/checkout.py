# shop/api/routers/checkout.py
from fastapi import APIRouter, Depends, Query, Response
from fastapi.encoders import jsonable_encoder

from shop.api.deps import get_checkout_service, get_session_cart, get_user_session
from shop.domain.cart import Cart
from shop.services.checkout_service import CheckoutService
from shop.services.session_store import UserSession

router = APIRouter(prefix="/checkout", tags=["checkout"])

# kind -> (http status, message1)
_OUTCOMES = {
    "success": (201, "Order placed successfully"),
    "validation_failed": (400, "Order failed"),
    "insufficient_funds": (402, "Insufficient wallet balance"),
    "order_creation_failed": (409, "Order failed, please try again"),
    "payment_settlement_failed": (500, "Payment could not be completed, our staff will contact you"),
    "checkout_partially_failed": (500, "Order needs review, our staff will contact you"),
}


def _message2(result) -> str | None:
    if result.kind == "insufficient_funds":
        return f"Required {result.required}, available {result.available}"
    for field in ("reason", "cause"):
        if hasattr(result, field):
            return getattr(result, field)
    return None


@router.post("")
def checkout(
    response: Response,
    user_id: str | None = Query(None),
    cart: Cart = Depends(get_session_cart),
    session: UserSession = Depends(get_user_session),
    svc: CheckoutService = Depends(get_checkout_service),
):
    """
    Places an order from the session cart, paid from the user's wallet.
    """
    result = svc.place_order(user_id, cart, session)

    status, message1 = _OUTCOMES[result.kind]
    body = jsonable_encoder(result)
    body["message1"] = message1
    body["message2"] = _message2(result)
    response.status_code = status
    return body
