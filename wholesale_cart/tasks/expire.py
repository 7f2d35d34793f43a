# wholesale_cart/tasks/expire.py
import asyncio
import contextlib
from typing import Callable, Iterable

from pydantic import ValidationError

from wholesale_cart.celery_worker import celery_app
from wholesale_cart.data.store import KeyValueStore, build_store
from wholesale_cart.domain.lines import Channel, CloseoutLineItem
from wholesale_cart.repos.cart_repo import CartRepo, CorruptSnapshot
from wholesale_cart.services.closeout_cart import CloseoutCart
from wholesale_cart.utils.clock import Clock, utcnow
from wholesale_cart.utils.settings import CART_KEY_PREFIX, EXPIRY_SWEEP_SECONDS
from wholesale_cart.utils.logging import get_logger

logger = get_logger(__name__)


class CloseoutExpiryTask:
    """
    Recurring sweep of live closeout carts, scheduled on the running event loop
    and executed in a worker thread.
    start()/stop() bind it to the owner's lifecycle; sweep_once() lets
    callers step it without waiting on the interval.
    """

    def __init__(
        self,
        carts: Callable[[], Iterable[CloseoutCart]],
        interval: float = EXPIRY_SWEEP_SECONDS,
    ):
        self.carts = carts
        self.interval = interval
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def sweep_once(self) -> int:
        evicted = 0
        for cart in self.carts():
            try:
                evicted += len(cart.sweep_expired())
            except Exception:
                #one broken store must not stop the sweep of the others
                logger.exception(f"Expiry sweep failed for {cart.repo.key}")
        return evicted

    def start(self) -> None:
        if self.running:
            return
        logger.info(f"Closeout expiry sweep started (every {self.interval}s)")
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Closeout expiry sweep stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            #store I/O and cart locks stay off the event loop
            await asyncio.to_thread(self.sweep_once)


def sweep_stored_closeout_carts(store: KeyValueStore, clock: Clock = utcnow) -> int:
    """
    Drop expired lines from every persisted closeout snapshot.

    Runs outside the API process, so each write is a compare-and-set against
    the snapshot it read: if the API saved the cart in between, the sweep
    backs off and leaves that cart to the API's own read-time sweep.
    """
    suffix = f":{Channel.CLOSEOUT.value}"
    keys = [k for k in store.keys(f"{CART_KEY_PREFIX}:") if k.endswith(suffix)]

    logger.info(f"Found {len(keys)} closeout carts to check")

    swept = 0
    for key in keys:
        repo = CartRepo(store, key, CloseoutLineItem)
        before = store.get(key)
        if before is None:
            continue

        try:
            lines = repo.decode(before)
        except (ValidationError, CorruptSnapshot) as e:
            #the owning cart discards it on its next load
            logger.warning(f"Skipping unreadable closeout snapshot {key}: {e}")
            continue

        now = clock()
        live = [i for i in lines if not i.is_expired_at(now)]
        if len(live) == len(lines):
            continue

        if repo.replace_if_unchanged(before, live):
            swept += 1
            logger.info(f"Closeout cart {key} swept, {len(live)} lines left")
        else:
            logger.info(f"Closeout cart {key} changed while sweeping, left to its owner")
    return swept


@celery_app.task(name="wholesale_cart.tasks.expire.expire_closeout_lines_task")
def expire_closeout_lines_task():
    logger.info("Expire closeout lines task started")
    return sweep_stored_closeout_carts(build_store())
