# wholesale_cart/main.py
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from wholesale_cart.api.routers import carts, health
from wholesale_cart.data.store import build_store
from wholesale_cart.services.cart_registry import CartRegistry
from wholesale_cart.tasks.expire import CloseoutExpiryTask
from wholesale_cart.utils.logging import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if app.state.registry is None:
        app.state.registry = CartRegistry(build_store())

    expiry_task = CloseoutExpiryTask(app.state.registry.closeout_carts)
    app.state.expiry_task = expiry_task
    expiry_task.start()
    try:
        yield
    finally:
        #no timer may outlive the app
        await expiry_task.stop()


def create_app(registry: CartRegistry | None = None) -> FastAPI:
    app = FastAPI(
        title="Wholesale Cart Service",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.registry = registry
    app.state.expiry_task = None

    app.include_router(health.router)
    app.include_router(carts.router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
