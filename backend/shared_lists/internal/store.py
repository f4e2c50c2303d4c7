import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field

from shared_lists.env import SRC_LOG_LEVELS
from shared_lists.models.events import Events, EventsTable
from shared_lists.models.invites import Invites, InviteTable
from shared_lists.models.lists import Lists, ListsTable
from shared_lists.models.memberships import Memberships, MembershipsTable
from shared_lists.models.tasks import Tasks, TasksTable
from shared_lists.models.users import Users, UsersTable

log = logging.getLogger(__name__)
log.setLevel(SRC_LOG_LEVELS["DB"])

# Shared by every Store in the process, keyed by list id
_list_locks: dict[str, threading.RLock] = {}
_list_locks_guard = threading.Lock()


def get_list_lock(list_id: str) -> threading.RLock:
    with _list_locks_guard:
        lock = _list_locks.get(list_id)
        if lock is None:
            lock = threading.RLock()
            _list_locks[list_id] = lock
        return lock


def discard_list_lock(list_id: str) -> None:
    with _list_locks_guard:
        _list_locks.pop(list_id, None)


@dataclass
class Store:
    """
    The tables every service works against, plus per-list write locks.

    Services receive a Store instead of reaching for the module singletons, so
    tests and alternative backends can swap any table out. Locks are
    process-wide: two Store instances serialize on the same list.
    """

    users: UsersTable = field(default_factory=lambda: Users)
    lists: ListsTable = field(default_factory=lambda: Lists)
    memberships: MembershipsTable = field(default_factory=lambda: Memberships)
    invites: InviteTable = field(default_factory=lambda: Invites)
    tasks: TasksTable = field(default_factory=lambda: Tasks)
    events: EventsTable = field(default_factory=lambda: Events)

    @contextmanager
    def list_lock(self, list_id: str):
        """Serialize check-then-act sequences that touch the same list."""
        with get_list_lock(list_id):
            yield

    def release_list_lock(self, list_id: str) -> None:
        """Forget the lock of a list that no longer exists."""
        discard_list_lock(list_id)


_default_store = Store()


def get_store() -> Store:
    return _default_store
