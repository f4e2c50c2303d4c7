import os
import tempfile
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

# Point the package at a throwaway database before anything imports shared_lists.env
_TEST_DATA_DIR = Path(tempfile.mkdtemp(prefix="shared-lists-test-"))
os.environ["DATA_DIR"] = str(_TEST_DATA_DIR)
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_DATA_DIR / 'test.db'}"

import pytest  # noqa: E402

from shared_lists.internal.db import Base, engine, init_db  # noqa: E402
from shared_lists.internal.store import Store  # noqa: E402
from shared_lists.models.lists import ListForm  # noqa: E402
from shared_lists.models.memberships import MembershipRole  # noqa: E402
from shared_lists.services.events.service import EventLog  # noqa: E402
from shared_lists.services.invites.service import InviteService  # noqa: E402
from shared_lists.services.lists.service import ListService  # noqa: E402
from shared_lists.services.memberships.service import MembershipService  # noqa: E402
from shared_lists.services.tasks.service import TaskService  # noqa: E402
from shared_lists.services.users.service import UserService  # noqa: E402


@pytest.fixture(autouse=True)
def database():
    """Fresh schema for every test."""
    init_db()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def store() -> Store:
    return Store()


@pytest.fixture()
def list_service(store) -> ListService:
    return ListService(store)


@pytest.fixture()
def membership_service(store) -> MembershipService:
    return MembershipService(store)


@pytest.fixture()
def invite_service(store) -> InviteService:
    return InviteService(store)


@pytest.fixture()
def task_service(store) -> TaskService:
    return TaskService(store)


@pytest.fixture()
def event_log(store) -> EventLog:
    return EventLog(store)


@pytest.fixture()
def user_service(store) -> UserService:
    return UserService(store)


@pytest.fixture()
def people(store) -> dict:
    """Users keyed by the part they play in the shared list below."""
    names = ["owner", "admin", "member", "other", "outsider"]
    return {
        name: store.users.insert_new_user(
            id=f"user-{name}", email=f"{name}@example.com", name=name.title()
        ).id
        for name in names
    }


@pytest.fixture()
def shared_list(store, list_service, people):
    """
    A list created by `owner`, with `admin` as admin and `member`/`other` as
    plain members. `outsider` has no membership.
    """
    created = list_service.create_list(people["owner"], ListForm(name="Groceries"))
    store.memberships.insert_new_membership(
        created.id, people["admin"], MembershipRole.ADMIN
    )
    store.memberships.insert_new_membership(
        created.id, people["member"], MembershipRole.MEMBER
    )
    store.memberships.insert_new_membership(
        created.id, people["other"], MembershipRole.MEMBER
    )
    return created


def _run_concurrently(calls: list) -> list:
    """
    Start every zero-argument callable at the same moment on its own thread.

    Returns one entry per call, in order: the return value, or the exception
    it raised.
    """
    barrier = threading.Barrier(len(calls))

    def run(call):
        barrier.wait(timeout=5)
        try:
            return call()
        except Exception as e:
            return e

    with ThreadPoolExecutor(max_workers=len(calls)) as executor:
        return list(executor.map(run, calls))


def _slowed(method, delay: float = 0.05):
    """Wrap a table method so concurrent callers overlap inside it."""

    def wrapper(*args, **kwargs):
        result = method(*args, **kwargs)
        time.sleep(delay)
        return result

    return wrapper


@pytest.fixture()
def run_concurrently():
    return _run_concurrently


@pytest.fixture()
def slowed():
    return _slowed
