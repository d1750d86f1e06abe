from services.communications_service.models.core import EmailLog
from services.communications_service.models.enums import EmailStatus, OrderEmailType

__all__ = ["EmailLog", "EmailStatus", "OrderEmailType"]
