import logging
from datetime import timedelta
from uuid import uuid4

from sqlmodel import Session, select, func

from app.database import unit_of_work
from app.models.basket import BasketItem
from app.models.order import Order
from app.models.user import User, UserRole
from app.utils.clock import utc_now

logger = logging.getLogger(__name__)


def create_guest_user(session: Session) -> User:
    with unit_of_work(session):
        user = User(
            role=UserRole.USER,
            is_guest=True,
            guest_session_id=uuid4().hex,
        )
        session.add(user)

    session.refresh(user)
    logger.info(f"Guest user {user.id} created")
    return user


def cleanup_old_guests(session: Session, days_old: int = 30) -> dict:
    """
    Delete guest users older than ``days_old`` that have neither orders nor
    basket items. Guests with history are kept.
    """
    cutoff = utc_now() - timedelta(days=days_old)

    with unit_of_work(session):
        guests = session.exec(
            select(User)
            .where(User.is_guest == True)  # noqa: E712
            .where(User.created_at < cutoff)
        ).all()

        deleted = 0
        skipped = 0
        for guest in guests:
            orders_count = session.exec(
                select(func.count(Order.id)).where(Order.user_id == guest.id)
            ).one()
            basket_count = session.exec(
                select(func.count(BasketItem.id)).where(BasketItem.user_id == guest.id)
            ).one()

            if orders_count or basket_count:
                skipped += 1
                continue

            session.delete(guest)
            deleted += 1

    logger.info(f"Guest cleanup before {cutoff.isoformat()}: deleted={deleted}, skipped={skipped}")
    return {"deleted": deleted, "skipped": skipped}
