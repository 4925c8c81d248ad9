import uuid

from sqlalchemy import Column, String, Text, Date, Boolean, Numeric, TIMESTAMP, func
from db.init import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class Subscription(Base):
    __tablename__ = "software_subscriptions"

    id = Column(String(36), primary_key=True, index=True, default=_new_id)
    company_name = Column(String(255), nullable=False)
    description = Column(Text, default="")
    amount = Column(Numeric(10, 2), nullable=False)
    renewal_date = Column(Date, nullable=False, index=True)
    notification_sent = Column(Boolean, nullable=False, default=False)
    created_at = Column(TIMESTAMP, server_default=func.now())
