import logging
from datetime import date, datetime, time, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.concurrency import run_in_threadpool
from sqlmodel import Session

from app.config import settings
from app.database import get_session
from app.dependencies.admin import require_admin
from app.dependencies.payments import get_payment_client
from app.models.order import OrderStatus, PaymentMethod
from app.models.user import User
from app.schemas.order_schemas import (
    GuestOrderCreate,
    OrderCreatedResponse,
    OrderFromBasketCreate,
    OrderRead,
    OrderStatusUpdate,
    PaymentData,
)
from app.services import order_service
from app.services.order_event_service import list_order_events
from app.services.order_reconciler import WebhookCode, handle_webhook
from app.services.tiptoppay_client import TipTopPayClient
from app.utils.token import get_current_user, get_optional_user

logger = logging.getLogger(__name__)

router = APIRouter()


def _order_out(order) -> dict:
    return OrderRead.model_validate(order).model_dump(by_alias=True, mode="json")


def _day_bounds(start_date: Optional[date], end_date: Optional[date]):
    start = datetime.combine(start_date, time.min, tzinfo=timezone.utc) if start_date else None
    end = datetime.combine(end_date, time.max, tzinfo=timezone.utc) if end_date else None
    return start, end


def _page_out(page: dict) -> dict:
    return {
        "orders": [_order_out(o) for o in page["results"]],
        "totalCount": page["totalCount"],
        "currentPage": page["currentPage"],
        "totalPages": page["totalPages"],
    }


def _created_out(order) -> dict:
    response = OrderCreatedResponse(
        message="Order created successfully",
        order=OrderRead.model_validate(order),
        payment_data=PaymentData(**order_service.build_payment_data(order, settings)),
    )
    return response.model_dump(by_alias=True, mode="json")


# ---------- customer ----------

@router.post("/create")
def create_order(
    data: OrderFromBasketCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    order = order_service.create_order_from_basket(
        session,
        user_id=current_user.id,
        recipient_name=data.recipient_name,
        recipient_address=data.recipient_address,
        notes=data.notes,
    )
    return _created_out(order)


@router.post("/guest")
def create_guest_order(
    data: GuestOrderCreate,
    session: Session = Depends(get_session),
    current_user: Optional[User] = Depends(get_optional_user),
):
    order = order_service.create_guest_order(
        session,
        user_id=current_user.id if current_user else None,
        recipient_name=data.recipient_name,
        recipient_address=data.recipient_address,
        recipient_phone=data.recipient_phone,
        recipient_email=data.recipient_email,
        notes=data.notes,
        items=data.items,
    )
    return _created_out(order)


@router.get("/my-orders")
def my_orders(
    page: int = 1,
    limit: int = 10,
    status: Optional[OrderStatus] = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    data = order_service.list_user_orders(
        session, current_user.id, page=page, limit=limit, status=status
    )
    return _page_out(data)


@router.get("/my-orders/{order_id}")
def my_order(
    order_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return _order_out(order_service.get_user_order(session, current_user.id, order_id))


@router.patch("/my-orders/{order_id}/cancel")
def cancel_my_order(
    order_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    order = order_service.cancel_order(session, user_id=current_user.id, order_id=order_id)
    return {"message": "Order cancelled successfully", "order": _order_out(order)}


# ---------- gateway ----------

async def _read_notification(request: Request) -> dict:
    content_type = request.headers.get("content-type", "")
    if "application/json" in content_type:
        body = await request.json()
        return body if isinstance(body, dict) else {}

    form = await request.form()
    return {key: value for key, value in form.items()}


@router.post("/webhook/tiptoppay")
async def tiptoppay_webhook(
    request: Request,
    session: Session = Depends(get_session),
    client: TipTopPayClient = Depends(get_payment_client),
):
    """
    Gateway notification endpoint. Always answers HTTP 200 with
    ``{"code": N}``: 0 accepted, 10 unknown order, 12 amount mismatch,
    13 rejected.
    """
    try:
        payload = await _read_notification(request)
        signature = request.headers.get("x-content-hmac") or request.headers.get("content-hmac")
        code = await run_in_threadpool(
            handle_webhook, session, payload, signature, client, settings
        )
    except Exception:
        logger.exception("TipTopPay webhook failed")
        code = WebhookCode.REJECTED

    return {"code": int(code)}


# ---------- admin ----------

@router.get("/")
def list_orders(
    page: int = 1,
    limit: int = 20,
    status: Optional[OrderStatus] = None,
    user_id: Optional[int] = Query(None, alias="userId"),
    payment_method: Optional[PaymentMethod] = Query(None, alias="paymentMethod"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    start, end = _day_bounds(start_date, end_date)
    data = order_service.list_orders(
        session,
        page=page,
        limit=limit,
        status=status,
        user_id=user_id,
        payment_method=payment_method,
        start_date=start,
        end_date=end,
    )
    return _page_out(data)


@router.get("/stats/overview")
def order_stats(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    start, end = _day_bounds(start_date, end_date)
    return order_service.get_order_stats(session, start_date=start, end_date=end)


@router.get("/{order_id}")
def order_details(
    order_id: int,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    return _order_out(order_service.get_order(session, order_id))


@router.get("/{order_id}/events")
def order_timeline(
    order_id: int,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    order = order_service.get_order(session, order_id)
    return [
        {
            "eventType": e.event_type,
            "label": e.label,
            "transactionId": e.transaction_id,
            "meta": e.meta,
            "createdBy": e.created_by,
            "createdAt": e.created_at,
        }
        for e in list_order_events(session, order.id)
    ]


@router.patch("/{order_id}/status")
def update_order_status(
    order_id: int,
    data: OrderStatusUpdate,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    order = order_service.update_order_status(
        session, order_id=order_id, status=data.status, notes=data.notes
    )
    return {"message": "Order status updated successfully", "order": _order_out(order)}
