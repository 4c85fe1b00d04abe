# shop/api/__init__.py
from fastapi import FastAPI
from shop.api.routers import carts, checkout, health, orders, wallet, wishlist


def create_app(lifespan=None) -> FastAPI:
    app = FastAPI(
        title="Perfume Shop",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.include_router(health.router)
    app.include_router(carts.router)
    app.include_router(checkout.router)
    app.include_router(orders.router)
    app.include_router(wallet.router)
    app.include_router(wishlist.router)

    return app
