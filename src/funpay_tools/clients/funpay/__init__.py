"""FunPay marketplace client: page retrieval, HTML extraction, and actions."""

from funpay_tools.clients.funpay.client import Action, FunPayClient
from funpay_tools.clients.funpay.exceptions import FunPayError, FunPayTransportError
from funpay_tools.clients.funpay.extractor import extract
from funpay_tools.clients.funpay.models import (
    Chat,
    ChatMessage,
    Order,
    Profile,
    RecordKind,
    Resource,
)

__all__ = [
    "Action",
    "Chat",
    "ChatMessage",
    "FunPayClient",
    "FunPayError",
    "FunPayTransportError",
    "Order",
    "Profile",
    "RecordKind",
    "Resource",
    "extract",
]
