"""
Renewal detection and notification dispatch.

find_upcoming_renewals is a pure filter over the working set; RenewalWatcher
is the hook the board calls after every reload to dispatch one notification
per subscription that falls inside the renewal window.
"""
import logging
import threading
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Callable, List, Optional, Sequence

from db.store import StoreError
from utils.formatting import format_renewal_date
from utils.notify import DeliveryError, NotificationSender, RENEWAL_SUBJECT

logger = logging.getLogger(__name__)

RENEWAL_WINDOW = timedelta(hours=24)

Scheduler = Callable[..., None]


def _field(sub: Any, name: str, default: Any = None) -> Any:
    if isinstance(sub, dict):
        return sub.get(name, default)
    return getattr(sub, name, default)


def _renewal_instant(value: Any, now: datetime) -> Optional[datetime]:
    """
    Convert a renewal date to an instant comparable with ``now``.
    A plain calendar date means midnight at the start of that day.
    """
    if isinstance(value, datetime):
        instant = value
    elif isinstance(value, date):
        instant = datetime.combine(value, time.min)
    elif isinstance(value, str):
        try:
            instant = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if now.tzinfo is not None and instant.tzinfo is None:
        instant = instant.replace(tzinfo=now.tzinfo)
    elif now.tzinfo is None and instant.tzinfo is not None:
        instant = instant.astimezone(timezone.utc).replace(tzinfo=None)
    return instant


def find_upcoming_renewals(
    subscriptions: Sequence[Any],
    now: datetime,
    window: timedelta = RENEWAL_WINDOW,
) -> List[Any]:
    """
    Return the subscriptions whose renewal_date lies in [now, now + window],
    both bounds inclusive, in input order. Unparseable dates are skipped.
    """
    end = now + window
    upcoming = []
    for sub in subscriptions:
        instant = _renewal_instant(_field(sub, "renewal_date"), now)
        if instant is None:
            continue
        try:
            if now <= instant <= end:
                upcoming.append(sub)
        except TypeError:
            continue
    return upcoming


def is_overdue(sub: Any, now: datetime) -> bool:
    instant = _renewal_instant(_field(sub, "renewal_date"), now)
    if instant is None:
        return False
    try:
        return instant < now
    except TypeError:
        return False


def renewal_message(sub: Any) -> str:
    return (
        f"Your subscription for {_field(sub, 'company_name')} is due for renewal "
        f"on {format_renewal_date(_field(sub, 'renewal_date'))}."
    )


def notify_renewal(sub: Any, sender: NotificationSender, email: str) -> bool:
    """
    Send one renewal reminder for ``sub``. Delivery failures are logged and
    swallowed; returns True when the endpoint accepted the request.
    """
    try:
        sender.send(email, RENEWAL_SUBJECT, renewal_message(sub))
        return True
    except DeliveryError as e:
        logger.error(f"Error sending notification for {_field(sub, 'company_name')}: {e}")
        return False


def run_now(func: Callable[..., Any], *args: Any) -> None:
    func(*args)


def run_in_thread(func: Callable[..., Any], *args: Any) -> threading.Thread:
    thread = threading.Thread(target=func, args=args, daemon=True)
    thread.start()
    return thread


class RenewalWatcher:
    def __init__(
        self,
        sender: NotificationSender,
        email: str,
        window: timedelta = RENEWAL_WINDOW,
        store=None,
        deduplicate: bool = False,
    ):
        self.sender = sender
        self.email = email
        self.window = window
        self.store = store
        self.deduplicate = deduplicate

    def observe(
        self,
        subscriptions: Sequence[Any],
        now: Optional[datetime] = None,
        schedule: Scheduler = run_now,
    ) -> List[Any]:
        """
        Classify ``subscriptions`` against the renewal window and schedule a
        dispatch for each one due. Returns the due subscriptions.
        """
        if now is None:
            now = datetime.now(timezone.utc)

        upcoming = find_upcoming_renewals(subscriptions, now, self.window)
        for sub in upcoming:
            if self.deduplicate and _field(sub, "notification_sent"):
                logger.debug(f"Skipping already-notified subscription {_field(sub, 'id')}")
                continue
            schedule(self.dispatch, sub)

        if upcoming:
            logger.info(f"{len(upcoming)} subscription(s) due for renewal within {self.window}")
        return upcoming

    def dispatch(self, sub: Any) -> None:
        delivered = notify_renewal(sub, self.sender, self.email)
        if not (delivered and self.deduplicate and self.store is not None):
            return
        try:
            self.store.mark_notified(_field(sub, "id"))
        except StoreError as e:
            logger.error(f"Error marking subscription {_field(sub, 'id')} as notified: {e}")
