import logging
from datetime import timedelta

import pytest
from sqlmodel import select

from app.errors import NotFoundError, ValidationError
from app.jobs.cleanup_guests import cleanup_guests
from app.models.product import ProductStatus
from app.models.user import User
from app.services import basket_service
from app.services.guest_service import cleanup_old_guests, create_guest_user
from app.utils.clock import utc_now


def test_same_selection_increments_quantity(session, user, make_product):
    product = make_product()

    first = basket_service.add_to_basket(session, user.id, product.id, selected_color_id=1, selected_size_id=2)
    second = basket_service.add_to_basket(session, user.id, product.id, selected_color_id=1, selected_size_id=2)

    assert first.id == second.id
    assert second.quantity == 2


def test_same_selection_without_color_or_size_increments(session, user, make_product):
    product = make_product()

    basket_service.add_to_basket(session, user.id, product.id)
    item = basket_service.add_to_basket(session, user.id, product.id, quantity=4)

    assert item.quantity == 5
    assert len(basket_service.get_basket_snapshot(session, user.id)) == 1


def test_different_selection_gets_own_line(session, user, make_product):
    product = make_product()

    basket_service.add_to_basket(session, user.id, product.id, selected_size_id=1)
    basket_service.add_to_basket(session, user.id, product.id, selected_size_id=2)

    assert len(basket_service.get_basket_snapshot(session, user.id)) == 2


def test_unavailable_product_cannot_be_added(session, user, make_product):
    product = make_product(status=ProductStatus.DELETED)

    with pytest.raises(ValidationError):
        basket_service.add_to_basket(session, user.id, product.id)


def test_summary_totals(session, user, make_product):
    shirt = make_product(price_kzt=5000, price_usd=10)
    scarf = make_product(price_kzt=1000, price_usd=2, name="Scarf")
    basket_service.add_to_basket(session, user.id, shirt.id, quantity=2)
    basket_service.add_to_basket(session, user.id, scarf.id)

    summary = basket_service.get_basket_summary(session, user.id)

    assert summary["totalKZT"] == 11000
    assert summary["totalUSD"] == 22
    assert summary["itemsCount"] == 3


def test_update_quantity_validates_and_checks_owner(session, user, make_user, make_product):
    other = make_user(email="other@example.com")
    item = basket_service.add_to_basket(session, user.id, make_product().id)

    with pytest.raises(ValidationError):
        basket_service.update_basket_quantity(session, user.id, item.id, 0)

    with pytest.raises(NotFoundError):
        basket_service.update_basket_quantity(session, other.id, item.id, 3)

    assert basket_service.update_basket_quantity(session, user.id, item.id, 3).quantity == 3


def test_remove_and_clear(session, user, make_product):
    a = basket_service.add_to_basket(session, user.id, make_product().id)
    basket_service.add_to_basket(session, user.id, make_product(name="Belt").id)

    basket_service.remove_from_basket(session, user.id, a.id)
    assert basket_service.get_basket_count(session, user.id) == 1

    assert basket_service.clear_basket(session, user.id) == 1
    assert basket_service.get_basket_count(session, user.id) == 0


def test_cleanup_removes_only_stale_guests_without_history(session, make_product, make_order):
    stale = create_guest_user(session)
    with_basket = create_guest_user(session)
    with_order = create_guest_user(session)
    fresh = create_guest_user(session)

    for guest in (stale, with_basket, with_order):
        guest.created_at = utc_now() - timedelta(days=45)
        session.add(guest)
    session.commit()

    stale_id, kept_ids = stale.id, {with_basket.id, with_order.id, fresh.id}
    basket_service.add_to_basket(session, with_basket.id, make_product().id)
    make_order(user_id=with_order.id)

    result = cleanup_old_guests(session, days_old=30)

    assert result == {"deleted": 1, "skipped": 2}
    remaining = {u.id for u in session.exec(select(User)).all()}
    assert stale_id not in remaining
    assert kept_ids <= remaining


def test_cleanup_job_logs_outcome(session, caplog):
    stale = create_guest_user(session)
    stale.created_at = utc_now() - timedelta(days=45)
    session.add(stale)
    session.commit()

    with caplog.at_level(logging.INFO, logger="app.jobs.cleanup_guests"):
        result = cleanup_guests()

    assert result == {"deleted": 1, "skipped": 0}
    assert "Removed 1 stale guest users, kept 0" in caplog.text
