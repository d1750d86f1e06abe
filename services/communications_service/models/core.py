import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.communications_service.models.enums import EmailStatus, enum_values
from sqlalchemy import DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column


class EmailLog(Base):
    """Audit row for every send-email invocation."""

    __tablename__ = "email_logs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    recipient: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    order_id: Mapped[Optional[str]] = mapped_column(
        String(64), nullable=True, index=True
    )
    order_number: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    subject: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    status: Mapped[EmailStatus] = mapped_column(
        SAEnum(
            EmailStatus,
            name="email_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
    )
    provider_id: Mapped[Optional[str]] = mapped_column(
        String(100), nullable=True
    )  # Resend message id
    error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    def __repr__(self):
        return f"<EmailLog {self.email_type} to={self.recipient} {self.status}>"
