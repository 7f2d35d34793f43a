# wholesale_cart/data/store.py
import threading
from typing import Dict, List, Protocol

import redis
from sqlalchemy import select, update
from sqlalchemy.orm import sessionmaker

from wholesale_cart.data.models.kv_entry import KeyValueEntryModel
from wholesale_cart.utils.retry import redis_retry
from wholesale_cart.utils.settings import CART_STORE, REDIS_URL
from wholesale_cart.utils.logging import get_logger

logger = get_logger(__name__)


class KeyValueStore(Protocol):
    """
    Port for the per-channel snapshot storage.
    Values are opaque strings; the repo owns (de)serialization.
    """

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...

    def keys(self, prefix: str) -> List[str]: ...

    def compare_and_set(self, key: str, expected: str, value: str) -> bool:
        """Write only if the key still holds `expected`; False when someone wrote first."""
        ...


class InMemoryStore:
    def __init__(self):
        self._data: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self, prefix: str) -> List[str]:
        return sorted(k for k in list(self._data) if k.startswith(prefix))

    def compare_and_set(self, key: str, expected: str, value: str) -> bool:
        with self._lock:
            if self._data.get(key) != expected:
                return False
            self._data[key] = value
            return True


class SqlStore:
    """Key-value table on top of SQLAlchemy (sqlite by default)."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def get(self, key: str) -> str | None:
        with self.session_factory() as db:
            entry = db.get(KeyValueEntryModel, key)
            return entry.value if entry else None

    def set(self, key: str, value: str) -> None:
        with self.session_factory() as db:
            entry = db.get(KeyValueEntryModel, key)
            if entry:
                entry.value = value
            else:
                db.add(KeyValueEntryModel(key=key, value=value))
            db.commit()

    def delete(self, key: str) -> None:
        with self.session_factory() as db:
            entry = db.get(KeyValueEntryModel, key)
            if entry:
                db.delete(entry)
                db.commit()

    def keys(self, prefix: str) -> List[str]:
        with self.session_factory() as db:
            rows = db.execute(
                select(KeyValueEntryModel.key)
                .where(KeyValueEntryModel.key.startswith(prefix, autoescape=True))
                .order_by(KeyValueEntryModel.key)
            ).scalars().all()
            return list(rows)

    def compare_and_set(self, key: str, expected: str, value: str) -> bool:
        with self.session_factory() as db:
            result = db.execute(
                update(KeyValueEntryModel)
                .where(KeyValueEntryModel.key == key, KeyValueEntryModel.value == expected)
                .values(value=value)
            )
            db.commit()
            return result.rowcount == 1


class RedisStore:
    def __init__(self, url: str | None = None, client: redis.Redis | None = None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @redis_retry()
    def get(self, key: str) -> str | None:
        return self.redis.get(key)

    @redis_retry()
    def set(self, key: str, value: str) -> None:
        self.redis.set(key, value)

    @redis_retry()
    def delete(self, key: str) -> None:
        self.redis.delete(key)

    @redis_retry()
    def keys(self, prefix: str) -> List[str]:
        #SCAN instead of KEYS, does not block the server
        return sorted(self.redis.scan_iter(match=f"{prefix}*"))

    @redis_retry()
    def compare_and_set(self, key: str, expected: str, value: str) -> bool:
        with self.redis.pipeline() as pipe:
            try:
                pipe.watch(key)
                if pipe.get(key) != expected:
                    pipe.unwatch()
                    return False
                pipe.multi()
                pipe.set(key, value)
                pipe.execute()
                return True
            except redis.WatchError:
                logger.info(f"{key} changed during compare-and-set")
                return False


def build_store(kind: str | None = None) -> KeyValueStore:
    kind = (kind or CART_STORE).lower()
    logger.info(f"Using {kind} cart store")

    if kind == "memory":
        return InMemoryStore()

    if kind == "redis":
        return RedisStore()

    if kind == "sql":
        from wholesale_cart.data.database import Base, SessionLocal, engine

        Base.metadata.create_all(bind=engine)
        return SqlStore(SessionLocal)

    raise ValueError(f"Unknown cart store: {kind}")
