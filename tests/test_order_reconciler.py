import pytest
from sqlmodel import select

from app.config import settings
from app.models.order import OrderStatus, PaymentStatus
from app.models.order_event import OrderEvent
from app.services.order_reconciler import WebhookCode, handle_webhook


def _deliver(session, gateway, payload, signature=None, conf=settings):
    return handle_webhook(session, payload, signature, gateway, conf)


def _pay(order, transaction_id="tx-100"):
    return {
        "InvoiceId": str(order.id),
        "TransactionId": transaction_id,
        "Amount": f"{order.total_kzt}.00",
        "OperationType": "Payment",
        "Status": "Completed",
        "AuthCode": "A1B2C3",
    }


def test_check_within_tolerance_accepts_without_mutation(session, gateway, make_order):
    order = make_order(total_kzt=10000)
    payload = {"InvoiceId": str(order.id), "Amount": "10000.005", "OperationType": "Payment", "Status": "Authorized"}

    assert _deliver(session, gateway, payload) == WebhookCode.ACCEPTED

    session.refresh(order)
    assert order.status == OrderStatus.CREATED
    assert order.payment_status == PaymentStatus.PENDING


def test_check_amount_mismatch_rejects_without_mutation(session, gateway, make_order):
    order = make_order(total_kzt=10000)
    payload = {"InvoiceId": str(order.id), "Amount": "9999.98", "OperationType": "Payment", "Status": "Completed"}

    assert _deliver(session, gateway, payload) == WebhookCode.AMOUNT_MISMATCH

    session.refresh(order)
    assert order.status == OrderStatus.CREATED
    assert order.payment_status == PaymentStatus.PENDING


def test_check_without_amount_is_a_mismatch(session, gateway, make_order):
    order = make_order()
    payload = {"InvoiceId": str(order.id), "OperationType": "Payment", "Status": "Authorized"}

    assert _deliver(session, gateway, payload) == WebhookCode.AMOUNT_MISMATCH


@pytest.mark.parametrize("amount", ["NaN", "sNaN", "Infinity", "abc"])
def test_check_with_non_numeric_amount_is_a_mismatch(session, gateway, make_order, amount):
    order = make_order()
    payload = {"InvoiceId": str(order.id), "Amount": amount, "OperationType": "Payment", "Status": "Authorized"}

    assert _deliver(session, gateway, payload) == WebhookCode.AMOUNT_MISMATCH


def test_pay_marks_order_paid(session, gateway, make_order):
    order = make_order()

    assert _deliver(session, gateway, _pay(order)) == WebhookCode.ACCEPTED

    session.refresh(order)
    assert order.status == OrderStatus.PAID
    assert order.payment_status == PaymentStatus.SUCCESS
    assert order.tiptoppay_transaction_id == "tx-100"


def test_pay_replay_is_idempotent(session, gateway, make_order):
    order = make_order()

    assert _deliver(session, gateway, _pay(order)) == WebhookCode.ACCEPTED
    assert _deliver(session, gateway, _pay(order)) == WebhookCode.ACCEPTED

    session.refresh(order)
    assert order.status == OrderStatus.PAID
    assert order.payment_status == PaymentStatus.SUCCESS

    events = session.exec(select(OrderEvent).where(OrderEvent.order_id == order.id)).all()
    assert len(events) == 1


def test_pay_replay_keeps_last_transaction_id(session, gateway, make_order):
    order = make_order()

    _deliver(session, gateway, _pay(order, "tx-1"))
    _deliver(session, gateway, _pay(order, "tx-2"))

    session.refresh(order)
    assert order.tiptoppay_transaction_id == "tx-2"


def test_confirm_behaves_like_pay(session, gateway, make_order):
    order = make_order()
    payload = {"InvoiceId": str(order.id), "TransactionId": "tx-9", "OperationType": "Confirm"}

    assert _deliver(session, gateway, payload) == WebhookCode.ACCEPTED

    session.refresh(order)
    assert order.status == OrderStatus.PAID
    assert order.payment_status == PaymentStatus.SUCCESS
    assert order.tiptoppay_transaction_id == "tx-9"


def test_fail_marks_payment_failed_only(session, gateway, make_order):
    order = make_order()
    payload = {"InvoiceId": str(order.id), "ReasonCode": "5051", "Reason": "InsufficientFunds"}

    assert _deliver(session, gateway, payload) == WebhookCode.ACCEPTED

    session.refresh(order)
    assert order.status == OrderStatus.CREATED
    assert order.payment_status == PaymentStatus.FAILED


def test_late_fail_does_not_undo_successful_payment(session, gateway, make_order):
    order = make_order()
    _deliver(session, gateway, _pay(order))

    payload = {"InvoiceId": str(order.id), "ReasonCode": "5"}
    assert _deliver(session, gateway, payload) == WebhookCode.ACCEPTED

    session.refresh(order)
    assert order.status == OrderStatus.PAID
    assert order.payment_status == PaymentStatus.SUCCESS


def test_refund_and_cancel_leave_fulfillment_status(session, gateway, make_order):
    refunded = make_order(status=OrderStatus.PAID, payment_status=PaymentStatus.SUCCESS)
    cancelled = make_order()

    _deliver(session, gateway, {"InvoiceId": str(refunded.id), "OperationType": "Refund"})
    _deliver(session, gateway, {"InvoiceId": str(cancelled.id), "OperationType": "Cancel"})

    session.refresh(refunded)
    session.refresh(cancelled)
    assert refunded.status == OrderStatus.PAID
    assert refunded.payment_status == PaymentStatus.CANCELLED
    assert cancelled.status == OrderStatus.CREATED
    assert cancelled.payment_status == PaymentStatus.CANCELLED


def test_unknown_notification_is_acknowledged(session, gateway, make_order):
    order = make_order()

    assert _deliver(session, gateway, {"InvoiceId": str(order.id), "Status": "Odd"}) == WebhookCode.ACCEPTED

    session.refresh(order)
    assert order.payment_status == PaymentStatus.PENDING


def test_unknown_order_gets_code_10(session, gateway):
    payload = {"InvoiceId": "31337", "OperationType": "Payment", "Status": "Completed", "AuthCode": "X"}
    assert _deliver(session, gateway, payload) == WebhookCode.UNKNOWN_ORDER


def test_missing_invoice_is_rejected(session, gateway):
    assert _deliver(session, gateway, {"OperationType": "Refund"}) == WebhookCode.REJECTED


def test_bad_signature_is_advisory_by_default(session, gateway, make_order):
    order = make_order()

    assert _deliver(session, gateway, _pay(order), signature="nope") == WebhookCode.ACCEPTED

    session.refresh(order)
    assert order.status == OrderStatus.PAID


def test_bad_signature_rejected_when_enforced(session, gateway, make_order):
    order = make_order()
    strict = settings.model_copy(update={"tiptoppay_enforce_signature": True})

    assert _deliver(session, gateway, _pay(order), signature="nope", conf=strict) == WebhookCode.REJECTED

    session.refresh(order)
    assert order.status == OrderStatus.CREATED

    payload = _pay(order)
    signature = gateway.generate_signature(payload)
    assert _deliver(session, gateway, payload, signature=signature, conf=strict) == WebhookCode.ACCEPTED
