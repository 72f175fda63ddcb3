"""
Apply classified TipTopPay notifications to orders.

One webhook delivery is one unit of work. The order row is read with
``FOR UPDATE`` so that concurrent deliveries for the same order are
serialized by the database; every transition writes absolute values, so
replays converge on the same state.
"""
import logging
from decimal import Decimal
from enum import IntEnum
from typing import Any, Mapping, Optional

from sqlmodel import Session, select

from app.config import Settings
from app.database import unit_of_work
from app.errors import NotFoundError, ValidationError
from app.models.order import Order, OrderStatus, PaymentStatus
from app.models.order_event import OrderEventActor
from app.services.order_event_service import log_order_event
from app.utils.clock import utc_now
from app.services.tiptoppay_client import TipTopPayClient
from app.services.webhook_classifier import (
    Notification,
    NotificationKind,
    classify_notification,
)

logger = logging.getLogger(__name__)

AMOUNT_TOLERANCE = Decimal("0.01")


class WebhookCode(IntEnum):
    ACCEPTED = 0
    UNKNOWN_ORDER = 10
    AMOUNT_MISMATCH = 12
    REJECTED = 13


def _lock_order(session: Session, order_id: int) -> Order:
    order = session.exec(
        select(Order).where(Order.id == order_id).with_for_update()
    ).first()
    if not order:
        raise NotFoundError(f"Order {order_id} not found")
    return order


def _set(order: Order, **fields) -> bool:
    changed = False
    for name, value in fields.items():
        if getattr(order, name) != value:
            setattr(order, name, value)
            changed = True
    return changed


def _check_amount(order: Order, notification: Notification) -> WebhookCode:
    if notification.amount is None:
        logger.warning(f"Check for order {order.id} carries no amount")
        return WebhookCode.AMOUNT_MISMATCH

    if abs(notification.amount - Decimal(order.total_kzt)) > AMOUNT_TOLERANCE:
        logger.warning(
            f"Amount mismatch for order {order.id}: "
            f"notified {notification.amount}, expected {order.total_kzt}"
        )
        return WebhookCode.AMOUNT_MISMATCH

    return WebhookCode.ACCEPTED


def apply_notification(session: Session, notification: Notification) -> WebhookCode:
    """Apply one notification inside the caller's transaction."""
    order = _lock_order(session, notification.order_id)
    kind = notification.kind

    if kind == NotificationKind.CHECK:
        return _check_amount(order, notification)

    if kind in (NotificationKind.PAY, NotificationKind.CONFIRM):
        fields = {
            "payment_status": PaymentStatus.SUCCESS,
            "status": OrderStatus.PAID,
        }
        if notification.transaction_id:
            fields["tiptoppay_transaction_id"] = notification.transaction_id
        changed = _set(order, **fields)

    elif kind == NotificationKind.FAIL:
        if order.payment_status == PaymentStatus.SUCCESS:
            # late Fail must not undo a confirmed payment
            logger.warning(
                f"Ignoring Fail for already paid order {order.id} "
                f"(transaction={notification.transaction_id})"
            )
            return WebhookCode.ACCEPTED
        changed = _set(order, payment_status=PaymentStatus.FAILED)

    elif kind in (NotificationKind.REFUND, NotificationKind.CANCEL):
        changed = _set(order, payment_status=PaymentStatus.CANCELLED)

    else:
        logger.info(f"Unknown notification for order {order.id}: {notification.raw}")
        return WebhookCode.ACCEPTED

    if changed:
        order.updated_at = utc_now()
        session.add(order)
        log_order_event(
            session,
            order_id=order.id,
            event_type=f"PAYMENT_{kind.value.upper()}",
            label=f"TipTopPay {kind.value} notification",
            created_by=OrderEventActor.webhook,
            transaction_id=notification.transaction_id,
            meta={
                "status": order.status.value,
                "payment_status": order.payment_status.value,
            },
        )

    logger.info(
        f"Order {order.id} after {kind.value}: status={order.status.value}, "
        f"payment_status={order.payment_status.value if order.payment_status else None}"
    )
    return WebhookCode.ACCEPTED


def handle_webhook(
    session: Session,
    payload: Mapping[str, Any],
    signature: Optional[str],
    client: TipTopPayClient,
    settings: Settings,
) -> WebhookCode:
    """
    Full webhook delivery: signature check, classification, transition.
    Errors from the taxonomy are mapped onto gateway codes; anything else
    propagates so the route can still answer with a rejection.
    """
    if not client.verify_notification_signature(dict(payload), signature):
        if settings.tiptoppay_enforce_signature:
            logger.error("Rejecting TipTopPay notification with invalid signature")
            return WebhookCode.REJECTED
        logger.warning("TipTopPay notification signature invalid or missing; processing anyway")

    try:
        with unit_of_work(session):
            notification = classify_notification(session, payload)
            return apply_notification(session, notification)
    except NotFoundError as e:
        logger.warning(f"TipTopPay notification rejected: {e.message}")
        return WebhookCode.UNKNOWN_ORDER
    except ValidationError as e:
        logger.warning(f"TipTopPay notification rejected: {e.message}")
        return WebhookCode.REJECTED
