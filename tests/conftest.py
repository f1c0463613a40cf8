import pytest

from seva.auth import CallerContext
from tests.fakes import FakeStore, RecordingNotifier


@pytest.fixture
def store():
    """Yield an empty in-memory document store."""
    return FakeStore()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def alice():
    return CallerContext(uid="u-a", email="a@x.com", phone_number="555", name="A")


@pytest.fixture
def bob():
    return CallerContext(uid="u-b", email="b@x.com", phone_number="666", name="B")


@pytest.fixture
def admin():
    return CallerContext(uid="u-admin", email="admin@x.com", phone_number="777", name="Admin", is_admin=True)
