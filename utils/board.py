import logging
import threading
from dataclasses import dataclass, asdict
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional

from db.store import StoreError, SubscriptionStore
from utils.formatting import format_renewal_date, parse_renewal_date
from utils.renewals import RenewalWatcher, Scheduler, find_upcoming_renewals, run_now

logger = logging.getLogger(__name__)


@dataclass
class Toast:
    kind: str  # success / error / renewal
    message: str
    title: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _sort_key(sub: Mapping[str, Any]) -> date:
    return parse_renewal_date(sub.get("renewal_date")) or date.max


class SubscriptionBoard:
    """
    Holds the working set of subscriptions plus pending toasts, and re-runs
    the renewal watcher every time the set is reloaded from the store.
    """

    def __init__(
        self,
        store: SubscriptionStore,
        watcher: RenewalWatcher,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.watcher = watcher
        self.clock = clock
        self.subscriptions: List[Dict[str, Any]] = []
        self.loading = True
        self._toasts: List[Toast] = []
        self._lock = threading.Lock()
        self._generation = 0
        self._applied_generation = 0

    def _push(self, toast: Toast):
        with self._lock:
            self._toasts.append(toast)

    def drain_toasts(self) -> List[Toast]:
        with self._lock:
            toasts, self._toasts = self._toasts, []
        return toasts

    def refresh(self, schedule: Scheduler = run_now) -> bool:
        with self._lock:
            self._generation += 1
            token = self._generation

        try:
            data = self.store.list()
        except StoreError as e:
            logger.error(f"Error fetching subscriptions: {e}")
            self._push(Toast("error", "Failed to fetch subscriptions"))
            with self._lock:
                self.loading = False
            return False

        with self._lock:
            if token < self._applied_generation:
                # A newer reload already landed; this response is stale
                logger.debug(f"Discarding stale subscription list (generation {token})")
                return True
            self._applied_generation = token
            self.subscriptions = sorted(data, key=_sort_key)
            self.loading = False
            current = list(self.subscriptions)

        upcoming = self.watcher.observe(current, now=self.clock(), schedule=schedule)
        for sub in upcoming:
            self._push(
                Toast(
                    "renewal",
                    f"Renewal due on {format_renewal_date(sub.get('renewal_date'))}",
                    title=sub.get("company_name"),
                )
            )
        return True

    def add(self, draft: Mapping[str, Any], schedule: Scheduler = run_now) -> bool:
        try:
            self.store.insert(draft)
        except StoreError as e:
            logger.error(f"Error adding subscription: {e}")
            self._push(Toast("error", "Failed to add subscription"))
            return False

        logger.info(f"Added subscription {draft.get('company_name')}")
        self._push(Toast("success", "Subscription added successfully"))
        self.refresh(schedule)
        return True

    def delete(self, id: str, schedule: Scheduler = run_now) -> bool:
        try:
            self.store.delete(id)
        except StoreError as e:
            logger.error(f"Error deleting subscription: {e}")
            self._push(Toast("error", "Failed to delete subscription"))
            return False

        logger.info(f"Deleted subscription {id}")
        self._push(Toast("success", "Subscription deleted successfully"))
        self.refresh(schedule)
        return True

    def upcoming(self, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
        with self._lock:
            current = list(self.subscriptions)
        return find_upcoming_renewals(current, now or self.clock(), self.watcher.window)
