"""
Order creation and owner/admin order transitions.

Every write entry point runs inside exactly one unit of work: the order row,
its items, the timeline event and (for the basket path) the basket clear are
committed together or not at all.
"""
import logging
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.orm import selectinload
from sqlmodel import Session, select, func

from app.config import Settings
from app.database import unit_of_work
from app.errors import NotFoundError, ValidationError
from app.models.order import Order, OrderStatus, PaymentStatus, PaymentMethod
from app.models.order_item import OrderItem
from app.models.order_event import OrderEventActor
from app.models.product import Product
from app.schemas.order_schemas import GuestOrderItem
from app.services.basket_service import get_basket_snapshot, delete_basket_items
from app.services.order_event_service import log_order_event
from app.utils.clock import utc_now
from app.utils.pagination import paginate

logger = logging.getLogger(__name__)

PAYMENT_CURRENCY = "KZT"


def _require_recipient(recipient_name: Optional[str], recipient_address: Optional[str]):
    if not (recipient_name or "").strip() or not (recipient_address or "").strip():
        raise ValidationError("Recipient name and address are required")


def _compute_totals(lines: Iterable[Tuple[Product, int]]) -> Tuple[int, int]:
    total_kzt = 0
    total_usd = 0
    for product, quantity in lines:
        total_kzt += product.price_kzt * quantity
        total_usd += product.price_usd * quantity
    return total_kzt, total_usd


def _persist_order(
    session: Session,
    *,
    user_id: Optional[int],
    recipient_name: str,
    recipient_address: str,
    recipient_phone: Optional[str],
    recipient_email: Optional[str],
    notes: Optional[str],
    lines: List[Tuple[Product, int, Optional[int], Optional[int]]],
    source: str,
) -> Order:
    total_kzt, total_usd = _compute_totals((p, q) for p, q, _, _ in lines)

    order = Order(
        user_id=user_id,
        recipient_name=recipient_name.strip(),
        recipient_address=recipient_address.strip(),
        recipient_phone=recipient_phone,
        recipient_email=recipient_email,
        payment_method=PaymentMethod.TIPTOP_PAY,
        status=OrderStatus.CREATED,
        payment_status=PaymentStatus.PENDING,
        total_kzt=total_kzt,
        total_usd=total_usd,
        notes=notes or None,
    )
    session.add(order)
    session.flush()

    for product, quantity, color_id, size_id in lines:
        session.add(
            OrderItem(
                order_id=order.id,
                product_id=product.id,
                selected_color_id=color_id,
                selected_size_id=size_id,
                quantity=quantity,
                price_kzt=product.price_kzt,
                price_usd=product.price_usd,
            )
        )

    log_order_event(
        session,
        order_id=order.id,
        event_type="ORDER_CREATED",
        label="Order placed",
        created_by=OrderEventActor.user if user_id else OrderEventActor.guest,
        meta={"source": source, "total_kzt": total_kzt, "total_usd": total_usd},
    )
    return order


def create_order_from_basket(
    session: Session,
    *,
    user_id: int,
    recipient_name: Optional[str],
    recipient_address: Optional[str],
    notes: Optional[str] = None,
) -> Order:
    _require_recipient(recipient_name, recipient_address)

    with unit_of_work(session):
        basket = get_basket_snapshot(session, user_id, for_update=True)
        if not basket:
            raise ValidationError("Basket is empty")

        lines = []
        for line in basket:
            if line.product is None:
                raise NotFoundError(f"Product {line.item.product_id} not found")
            lines.append((
                line.product,
                line.item.quantity,
                line.item.selected_color_id,
                line.item.selected_size_id,
            ))

        order = _persist_order(
            session,
            user_id=user_id,
            recipient_name=recipient_name,
            recipient_address=recipient_address,
            recipient_phone=None,
            recipient_email=None,
            notes=notes,
            lines=lines,
            source="basket",
        )

        delete_basket_items(session, basket)

    logger.info(
        f"Order {order.id} created from basket of user {user_id}: "
        f"{order.total_kzt} KZT / {order.total_usd} USD"
    )
    return get_order(session, order.id)


def create_guest_order(
    session: Session,
    *,
    user_id: Optional[int],
    recipient_name: Optional[str],
    recipient_address: Optional[str],
    recipient_phone: Optional[str] = None,
    recipient_email: Optional[str] = None,
    notes: Optional[str] = None,
    items: List[GuestOrderItem],
) -> Order:
    _require_recipient(recipient_name, recipient_address)

    if user_id is None and (not recipient_phone or not recipient_email):
        raise ValidationError("Phone and email are required for guest orders")

    if not items:
        raise ValidationError("Order items are required")

    with unit_of_work(session):
        lines = []
        for item in items:
            if item.quantity < 1:
                raise ValidationError("Quantity must be at least 1")

            product = session.get(Product, item.product_id)
            if not product:
                raise NotFoundError(f"Product {item.product_id} not found")

            if not product.is_available:
                raise ValidationError(f"Product {product.name} is not available")

            lines.append((product, item.quantity, item.selected_color_id, item.selected_size_id))

        order = _persist_order(
            session,
            user_id=user_id,
            recipient_name=recipient_name,
            recipient_address=recipient_address,
            recipient_phone=recipient_phone,
            recipient_email=recipient_email,
            notes=notes,
            lines=lines,
            source="items",
        )

    logger.info(
        f"Guest order {order.id} created (user={user_id}): "
        f"{order.total_kzt} KZT / {order.total_usd} USD"
    )
    return get_order(session, order.id)


def build_payment_data(order: Order, settings: Settings) -> dict:
    """Parameters the client hands to the gateway payment widget."""
    return {
        "public_id": settings.tiptoppay_public_id,
        "order_id": order.id,
        "amount": order.total_kzt,
        "currency": PAYMENT_CURRENCY,
        "description": f"Оплата заказа #{order.id}",
    }


# ---------- reads ----------

def _order_query():
    return select(Order).options(selectinload(Order.items))


def get_order(session: Session, order_id: int) -> Order:
    order = session.exec(_order_query().where(Order.id == order_id)).first()
    if not order:
        raise NotFoundError("Order not found")
    return order


def get_user_order(session: Session, user_id: int, order_id: int) -> Order:
    order = session.exec(
        _order_query().where(Order.id == order_id, Order.user_id == user_id)
    ).first()
    if not order:
        raise NotFoundError("Order not found")
    return order


def list_user_orders(
    session: Session,
    user_id: int,
    *,
    page: int = 1,
    limit: int = 10,
    status: Optional[OrderStatus] = None,
) -> dict:
    query = _order_query().where(Order.user_id == user_id)
    if status:
        query = query.where(Order.status == status)

    return paginate(
        session=session,
        query=query.order_by(Order.created_at.desc(), Order.id.desc()),
        page=page,
        limit=limit,
    )


def list_orders(
    session: Session,
    *,
    page: int = 1,
    limit: int = 20,
    status: Optional[OrderStatus] = None,
    user_id: Optional[int] = None,
    payment_method: Optional[PaymentMethod] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> dict:
    query = _order_query()

    if status:
        query = query.where(Order.status == status)
    if user_id:
        query = query.where(Order.user_id == user_id)
    if payment_method:
        query = query.where(Order.payment_method == payment_method)
    if start_date:
        query = query.where(Order.created_at >= start_date)
    if end_date:
        query = query.where(Order.created_at <= end_date)

    return paginate(
        session=session,
        query=query.order_by(Order.created_at.desc(), Order.id.desc()),
        page=page,
        limit=limit,
    )


def get_order_stats(
    session: Session,
    *,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> dict:
    filters = []
    if start_date:
        filters.append(Order.created_at >= start_date)
    if end_date:
        filters.append(Order.created_at <= end_date)

    total_orders = session.exec(
        select(func.count(Order.id)).where(*filters)
    ).one()

    by_status = session.exec(
        select(Order.status, func.count(Order.id)).where(*filters).group_by(Order.status)
    ).all()

    revenue_kzt, revenue_usd = session.exec(
        select(
            func.coalesce(func.sum(Order.total_kzt), 0),
            func.coalesce(func.sum(Order.total_usd), 0),
        ).where(*filters)
    ).one()

    by_payment = session.exec(
        select(Order.payment_method, func.count(Order.id))
        .where(*filters)
        .group_by(Order.payment_method)
    ).all()

    return {
        "totalOrders": total_orders,
        "ordersByStatus": [{"status": s.value, "count": c} for s, c in by_status],
        "totalRevenue": {"totalKZT": int(revenue_kzt), "totalUSD": int(revenue_usd)},
        "ordersByPayment": [{"paymentMethod": m.value, "count": c} for m, c in by_payment],
    }


# ---------- transitions outside the payment webhook ----------

def cancel_order(session: Session, *, user_id: int, order_id: int) -> Order:
    """Owner cancel; allowed only while the order is still CREATED."""
    with unit_of_work(session):
        order = session.exec(
            select(Order).where(Order.id == order_id, Order.user_id == user_id)
        ).first()

        if not order:
            raise NotFoundError("Order not found")

        if order.status != OrderStatus.CREATED:
            raise ValidationError("Only orders with CREATED status can be cancelled")

        order.status = OrderStatus.CANCELLED
        order.updated_at = utc_now()
        session.add(order)

        log_order_event(
            session,
            order_id=order.id,
            event_type="ORDER_CANCELLED",
            label="Order cancelled by customer",
            created_by=OrderEventActor.user,
        )

    logger.info(f"Order {order_id} cancelled by user {user_id}")
    return get_order(session, order_id)


def update_order_status(
    session: Session,
    *,
    order_id: int,
    status: OrderStatus,
    notes: Optional[str] = None,
) -> Order:
    """Admin override of the fulfillment status; payment status is left alone."""
    if status is None:
        raise ValidationError("Status is required")

    try:
        status = OrderStatus(status)
    except ValueError:
        raise ValidationError("Invalid status")

    with unit_of_work(session):
        order = session.get(Order, order_id)
        if not order:
            raise NotFoundError("Order not found")

        previous = order.status
        order.status = status
        if notes is not None:
            order.notes = notes
        order.updated_at = utc_now()
        session.add(order)

        log_order_event(
            session,
            order_id=order.id,
            event_type="STATUS_CHANGED",
            label=f"Status changed to {status.value}",
            created_by=OrderEventActor.admin,
            meta={"from": previous.value, "to": status.value},
        )

    logger.info(f"Order {order_id} status {previous.value} -> {status.value}")
    return get_order(session, order_id)
