# app/services/order_event_service.py

from typing import List, Optional
from uuid import uuid4
from sqlmodel import Session, select
from app.models.order_event import OrderEvent, OrderEventActor
from app.utils.clock import utc_now


def log_order_event(
    session: Session,
    order_id: int,
    event_type: str,
    label: str,
    created_by: OrderEventActor = OrderEventActor.system,
    meta: Optional[dict] = None,
    transaction_id: Optional[str] = None,
):
    """
    Append-only event log for order timeline.
    Joins the caller's unit of work; never commits.
    """

    event = OrderEvent(
        id=str(uuid4()),
        order_id=order_id,
        event_type=event_type,
        label=label,
        transaction_id=transaction_id,
        meta=meta,
        created_by=created_by,
        created_at=utc_now(),
    )

    session.add(event)
    return event


def list_order_events(session: Session, order_id: int) -> List[OrderEvent]:
    return session.exec(
        select(OrderEvent)
        .where(OrderEvent.order_id == order_id)
        .order_by(OrderEvent.created_at)
    ).all()
