import logging
from typing import Optional

from shared_lists.env import (
    EVENTS_PAGE_SIZE_DEFAULT,
    EVENTS_PAGE_SIZE_MAX,
    SRC_LOG_LEVELS,
)
from shared_lists.internal.store import Store, get_store
from shared_lists.models.events import EventModel, EventPage, EventResponse, EventType
from shared_lists.services.permissions import Action, require

log = logging.getLogger(__name__)
log.setLevel(SRC_LOG_LEVELS["SERVICES"])


class EventLog:
    """
    Append-only activity history per list.

    The log is diagnostic: a failed append is logged and swallowed so the
    mutation that triggered it still stands.
    """

    def __init__(self, store: Optional[Store] = None):
        self.store = store or get_store()

    def append(
        self,
        list_id: str,
        type: EventType,
        data: Optional[dict] = None,
        actor_id: Optional[str] = None,
    ) -> Optional[EventModel]:
        try:
            return self.store.events.insert_new_event(
                list_id=list_id, type=type, data=data, actor_id=actor_id
            )
        except Exception as e:
            log.exception(f"Failed to append {type} event for list {list_id}: {e}")
            return None

    def page(
        self,
        actor_id: str,
        list_id: str,
        page: int = 1,
        page_size: int = EVENTS_PAGE_SIZE_DEFAULT,
    ) -> EventPage:
        """
        Newest-first page of a list's events, each enriched with the actor's
        current name and email.
        """
        require(actor_id, list_id, Action.EVENTS_VIEW, store=self.store)

        page = max(1, int(page or 1))
        page_size = min(max(1, int(page_size or EVENTS_PAGE_SIZE_DEFAULT)), EVENTS_PAGE_SIZE_MAX)

        total = self.store.events.count_events_by_list_id(list_id)
        events = self.store.events.get_events_by_list_id(
            list_id, skip=(page - 1) * page_size, limit=page_size
        )

        actor_ids = [e.actor_id for e in events if e.actor_id]
        actors = {u.id: u for u in self.store.users.get_users_by_user_ids(actor_ids)}

        items = []
        for event in events:
            actor = actors.get(event.actor_id) if event.actor_id else None
            items.append(
                EventResponse(
                    **event.model_dump(),
                    actor_name=actor.name if actor else None,
                    actor_email=actor.email if actor else None,
                )
            )

        return EventPage(items=items, total=total, page=page, page_size=page_size)
