from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

from sqlalchemy import Boolean, CheckConstraint, DateTime, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from donation_api.db.base import Base


# helpers
def now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid4().hex


STATUS_PENDING = "pending"
STATUS_COMPLETED = "completed"
STATUS_TEST = "test"
DONATION_STATUSES = (STATUS_PENDING, STATUS_COMPLETED, STATUS_TEST)


class Donation(Base):
    __tablename__ = "donations"
    __table_args__ = (
        CheckConstraint("status IN ('pending', 'completed', 'test')", name="ck_donations_status"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), default="")
    email: Mapped[str] = mapped_column(String(255), default="")
    contact: Mapped[str] = mapped_column(String(64), default="")
    address: Mapped[str] = mapped_column(Text, default="")
    pincode: Mapped[str] = mapped_column(String(16), default="")
    message: Mapped[str] = mapped_column(Text, default="")
    # rupees; the gateway sees the converted minor-unit amount
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    is_recurring: Mapped[bool] = mapped_column(Boolean, default=False)
    order_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    subscription_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    payment_id: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    status: Mapped[str] = mapped_column(String(16), default=STATUS_PENDING)  # pending | completed | test
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=now, index=True)
