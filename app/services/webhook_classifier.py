"""
Classify TipTopPay notifications.

Field names and casing drift between gateway versions, so payloads are read
as untyped maps: keys are compared case-insensitively with ``_`` and ``-``
ignored. Classification is an ordered list of ``(predicate, kind)`` rules;
the first match wins.
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from sqlmodel import Session

from app.errors import NotFoundError, ValidationError
from app.models.order import Order

logger = logging.getLogger(__name__)


class NotificationKind(str, Enum):
    CHECK = "Check"
    PAY = "Pay"
    FAIL = "Fail"
    CONFIRM = "Confirm"
    REFUND = "Refund"
    CANCEL = "Cancel"
    UNKNOWN = "Unknown"


def _normalize_key(key: str) -> str:
    return str(key).replace("_", "").replace("-", "").lower()


class Payload:
    """Case-insensitive read-only view over a flat notification body."""

    def __init__(self, raw: Mapping[str, Any]):
        self.raw = dict(raw)
        self._index = {_normalize_key(k): v for k, v in self.raw.items()}

    def get(self, *names: str) -> Optional[Any]:
        for name in names:
            value = self._index.get(_normalize_key(name))
            if value is not None and value != "":
                return value
        return None

    def has(self, *names: str) -> bool:
        return self.get(*names) is not None

    def text(self, *names: str) -> str:
        value = self.get(*names)
        return str(value).strip().lower() if value is not None else ""

    @property
    def status(self) -> str:
        return self.text("Status")

    @property
    def operation(self) -> str:
        return self.text("OperationType")

    @property
    def has_auth_code(self) -> bool:
        return self.has("AuthCode")


def _is_fail(p: Payload) -> bool:
    return p.has("Reason", "ReasonCode")


def _is_check(p: Payload) -> bool:
    if p.operation != "payment":
        return False
    return p.status == "authorized" or (p.status == "completed" and not p.has_auth_code)


def _is_pay(p: Payload) -> bool:
    return p.status == "completed" and p.operation == "payment" and p.has_auth_code


def _is_confirm(p: Payload) -> bool:
    # the completed/payment/auth-code shape is already taken by Pay above
    return p.operation == "confirm" or _is_pay(p)


def _is_refund(p: Payload) -> bool:
    return p.operation == "refund" or p.has("PaymentTransactionId")


def _is_cancel(p: Payload) -> bool:
    return p.operation == "cancel"


CLASSIFICATION_RULES: List[Tuple[Callable[[Payload], bool], NotificationKind]] = [
    (_is_fail, NotificationKind.FAIL),
    (_is_check, NotificationKind.CHECK),
    (_is_pay, NotificationKind.PAY),
    (_is_confirm, NotificationKind.CONFIRM),
    (_is_refund, NotificationKind.REFUND),
    (_is_cancel, NotificationKind.CANCEL),
]


def classify_payload(raw: Mapping[str, Any]) -> NotificationKind:
    payload = raw if isinstance(raw, Payload) else Payload(raw)
    for predicate, kind in CLASSIFICATION_RULES:
        if predicate(payload):
            return kind
    return NotificationKind.UNKNOWN


@dataclass
class Notification:
    kind: NotificationKind
    order_id: int
    transaction_id: Optional[str] = None
    amount: Optional[Decimal] = None
    raw: Dict[str, Any] = field(default_factory=dict)


def parse_invoice_id(payload: Payload) -> int:
    invoice_id = payload.get("InvoiceId")
    if invoice_id is None:
        raise ValidationError("InvoiceId is missing")
    try:
        return int(str(invoice_id).strip())
    except ValueError:
        raise ValidationError(f"InvoiceId {invoice_id!r} is not a valid order id")


def parse_amount(payload: Payload) -> Optional[Decimal]:
    amount = payload.get("Amount")
    if amount is None:
        return None
    try:
        value = Decimal(str(amount).strip().replace(",", "."))
    except InvalidOperation:
        logger.warning(f"Unparseable notification amount: {amount!r}")
        return None
    if not value.is_finite():
        logger.warning(f"Non-numeric notification amount: {amount!r}")
        return None
    return value


def classify_notification(session: Session, raw: Mapping[str, Any]) -> Notification:
    """
    Classify a raw notification and resolve the order it refers to.
    Raises ValidationError for a missing/garbled InvoiceId and
    NotFoundError when no such order exists.
    """
    payload = Payload(raw)
    order_id = parse_invoice_id(payload)

    if session.get(Order, order_id) is None:
        raise NotFoundError(f"Order {order_id} not found")

    kind = classify_payload(payload)
    transaction_id = payload.get("TransactionId")

    notification = Notification(
        kind=kind,
        order_id=order_id,
        transaction_id=str(transaction_id) if transaction_id is not None else None,
        amount=parse_amount(payload),
        raw=payload.raw,
    )
    logger.info(
        f"TipTopPay notification for order {order_id} classified as {kind.value} "
        f"(transaction={notification.transaction_id})"
    )
    return notification
