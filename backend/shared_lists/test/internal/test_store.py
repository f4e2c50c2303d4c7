import threading

from shared_lists.internal import store as store_module
from shared_lists.internal.store import Store, get_list_lock


class TestListLock:
    """Per-list locks shared across the whole process."""

    def test_separate_stores_serialize_on_the_same_list(self):
        first, second = Store(), Store()
        held, release, entered = threading.Event(), threading.Event(), threading.Event()

        def hold():
            with first.list_lock("list-1"):
                held.set()
                release.wait(5)

        def enter():
            with second.list_lock("list-1"):
                entered.set()

        holder = threading.Thread(target=hold)
        holder.start()
        assert held.wait(5)

        waiter = threading.Thread(target=enter)
        waiter.start()
        try:
            assert not entered.wait(0.1)
        finally:
            release.set()
        assert entered.wait(5)

        holder.join(5)
        waiter.join(5)

    def test_other_lists_are_not_blocked(self):
        store = Store()
        with store.list_lock("list-1"):
            assert get_list_lock("list-2").acquire(blocking=False)
            get_list_lock("list-2").release()

    def test_lock_is_reentrant(self):
        store = Store()
        with store.list_lock("list-1"):
            with store.list_lock("list-1"):
                pass

    def test_deleting_a_list_drops_its_lock(self, list_service, shared_list, people):
        get_list_lock(shared_list.id)
        assert shared_list.id in store_module._list_locks

        list_service.delete_list(people["owner"], shared_list.id)

        assert shared_list.id not in store_module._list_locks
