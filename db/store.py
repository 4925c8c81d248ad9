import logging
from typing import Any, Dict, List, Mapping

from sqlalchemy import asc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from models.subscription import Subscription
from utils.formatting import coerce_amount, normalize_amount, parse_renewal_date

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Any failure while listing, inserting or deleting subscriptions."""


def _row_to_dict(sub: Subscription) -> Dict[str, Any]:
    item = {c.name: getattr(sub, c.name) for c in sub.__table__.columns}
    # Ensure amount is always a number
    item["amount"] = normalize_amount(item.get("amount"))
    item["description"] = item.get("description") or ""
    item["notification_sent"] = bool(item.get("notification_sent"))
    return item


class SubscriptionStore:
    """
    Persistence for the software_subscriptions table.
    Every operation opens its own session and wraps database failures in StoreError.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def list(self) -> List[Dict[str, Any]]:
        db = self.session_factory()
        try:
            rows = (
                db.query(Subscription)
                .order_by(asc(Subscription.renewal_date), asc(Subscription.created_at))
                .all()
            )
            return [_row_to_dict(r) for r in rows]
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to list subscriptions: {e}") from e
        finally:
            db.close()

    def insert(self, draft: Mapping[str, Any]) -> str:
        """
        Insert a new subscription. ``amount`` is coerced to a number and
        ``renewal_date`` to a calendar date before the row is written.
        Returns the id assigned to the new row.
        """
        renewal_date = parse_renewal_date(draft.get("renewal_date"))
        if renewal_date is None:
            raise ValueError(f"renewal_date is not a valid date: {draft.get('renewal_date')!r}")
        company_name = (draft.get("company_name") or "").strip()
        if not company_name:
            raise ValueError("company_name is required")

        s = Subscription(
            company_name=company_name,
            description=draft.get("description") or "",
            amount=coerce_amount(draft.get("amount")),
            renewal_date=renewal_date,
        )

        db = self.session_factory()
        try:
            db.add(s)
            db.commit()
            db.refresh(s)
            return s.id
        except SQLAlchemyError as e:
            db.rollback()
            raise StoreError(f"Failed to insert subscription: {e}") from e
        finally:
            db.close()

    def delete(self, id: str) -> None:
        # No existence check: deleting an unknown id is not an error
        db = self.session_factory()
        try:
            deleted = db.query(Subscription).filter(Subscription.id == id).delete()
            db.commit()
            if not deleted:
                logger.info(f"Delete of unknown subscription id {id} matched no rows")
        except SQLAlchemyError as e:
            db.rollback()
            raise StoreError(f"Failed to delete subscription {id}: {e}") from e
        finally:
            db.close()

    def mark_notified(self, id: str) -> None:
        db = self.session_factory()
        try:
            db.query(Subscription).filter(Subscription.id == id).update(
                {Subscription.notification_sent: True}
            )
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise StoreError(f"Failed to mark subscription {id} as notified: {e}") from e
        finally:
            db.close()
