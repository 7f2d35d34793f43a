# wholesale_cart/celery_worker.py
from celery import Celery

from wholesale_cart.utils.settings import (
    CELERY_BROKER_URL,
    CELERY_RESULT_BACKEND,
    EXPIRY_SWEEP_SECONDS,
)

celery_app = Celery(
    "wholesale_cart",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# tasks must be imported explicitly for celery to register them
celery_app.conf.imports = (
    "wholesale_cart.tasks.expire",
)

celery_app.conf.beat_schedule = {
    "expire-closeout-lines-every-minute": {
        "task": "wholesale_cart.tasks.expire.expire_closeout_lines_task",
        "schedule": EXPIRY_SWEEP_SECONDS,
    },
}

celery_app.conf.timezone = "UTC"
