import pytest

from factories import FakeClock, make_repo
from wholesale_cart.data.store import InMemoryStore
from wholesale_cart.domain.lines import Channel
from wholesale_cart.services.at_once_cart import AtOnceCart
from wholesale_cart.services.closeout_cart import CloseoutCart
from wholesale_cart.services.notification_service import NotificationService
from wholesale_cart.services.prebook_cart import PrebookCart


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def notifier(clock):
    return NotificationService(clock=clock)


@pytest.fixture
def at_once_cart(store, notifier, clock):
    return AtOnceCart(make_repo(store, Channel.AT_ONCE, AtOnceCart.line_type), notifier=notifier, clock=clock)


@pytest.fixture
def prebook_cart(store, notifier, clock):
    return PrebookCart(make_repo(store, Channel.PREBOOK, PrebookCart.line_type), notifier=notifier, clock=clock)


@pytest.fixture
def closeout_cart(store, notifier, clock):
    return CloseoutCart(make_repo(store, Channel.CLOSEOUT, CloseoutCart.line_type), notifier=notifier, clock=clock)
