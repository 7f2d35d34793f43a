# wholesale_cart/api/routers/health.py
from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health")
def health(request: Request):
    expiry_task = getattr(request.app.state, "expiry_task", None)
    return {
        "status": "ok",
        "expiry_sweep": bool(expiry_task and expiry_task.running),
    }
