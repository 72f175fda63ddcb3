import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlmodel import Session, select, func

from app.database import unit_of_work
from app.errors import NotFoundError, ValidationError
from app.models.basket import BasketItem
from app.models.product import Product

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BasketLine:
    """One basket row with its product (None when the product row is gone)."""
    item: BasketItem
    product: Optional[Product]


def get_basket_snapshot(
    session: Session, user_id: int, for_update: bool = False
) -> List[BasketLine]:
    query = (
        select(BasketItem, Product)
        .join(Product, BasketItem.product_id == Product.id, isouter=True)
        .where(BasketItem.user_id == user_id)
        .order_by(BasketItem.id)
    )
    if for_update:
        query = query.with_for_update(of=BasketItem)
    rows = session.exec(query).all()
    return [BasketLine(item=item, product=product) for item, product in rows]


def delete_basket_items(session: Session, lines: List[BasketLine]) -> int:
    """
    Remove exactly the given snapshot rows inside the caller's transaction.
    Rows added after the snapshot was read stay in the basket.
    """
    for line in lines:
        session.delete(line.item)

    return len(lines)


def get_basket_summary(session: Session, user_id: int) -> dict:
    lines = get_basket_snapshot(session, user_id)

    total_kzt = 0
    total_usd = 0
    items_count = 0
    items = []

    for line in lines:
        if line.product:
            total_kzt += line.product.price_kzt * line.item.quantity
            total_usd += line.product.price_usd * line.item.quantity
        items_count += line.item.quantity

        items.append({
            "id": line.item.id,
            "productId": line.item.product_id,
            "productName": line.product.name if line.product else None,
            "priceKZT": line.product.price_kzt if line.product else None,
            "priceUSD": line.product.price_usd if line.product else None,
            "selectedColorId": line.item.selected_color_id,
            "selectedSizeId": line.item.selected_size_id,
            "quantity": line.item.quantity,
        })

    return {
        "items": items,
        "totalKZT": total_kzt,
        "totalUSD": total_usd,
        "itemsCount": items_count,
    }


def add_to_basket(
    session: Session,
    user_id: int,
    product_id: int,
    quantity: int = 1,
    selected_color_id: Optional[int] = None,
    selected_size_id: Optional[int] = None,
) -> BasketItem:
    if quantity < 1:
        raise ValidationError("Quantity must be at least 1")

    with unit_of_work(session):
        product = session.get(Product, product_id)
        if not product:
            raise NotFoundError(f"Product {product_id} not found")

        if not product.is_available:
            raise ValidationError(f"Product {product.name} is not available")

        existing_item = session.exec(
            select(BasketItem).where(
                BasketItem.user_id == user_id,
                BasketItem.product_id == product_id,
                BasketItem.selected_color_id == selected_color_id,
                BasketItem.selected_size_id == selected_size_id,
            )
        ).first()

        if existing_item:
            existing_item.quantity += quantity
            session.add(existing_item)
            item = existing_item
        else:
            item = BasketItem(
                user_id=user_id,
                product_id=product_id,
                selected_color_id=selected_color_id,
                selected_size_id=selected_size_id,
                quantity=quantity,
            )
            session.add(item)

    session.refresh(item)
    logger.info(f"Basket of user {user_id}: product {product_id} x{item.quantity}")
    return item


def _get_own_item(session: Session, user_id: int, item_id: int) -> BasketItem:
    item = session.get(BasketItem, item_id)
    if not item or item.user_id != user_id:
        raise NotFoundError("Basket item not found")
    return item


def update_basket_quantity(session: Session, user_id: int, item_id: int, quantity: int) -> BasketItem:
    if quantity is None or quantity < 1:
        raise ValidationError("Quantity must be at least 1")

    with unit_of_work(session):
        item = _get_own_item(session, user_id, item_id)
        item.quantity = quantity
        session.add(item)

    session.refresh(item)
    return item


def remove_from_basket(session: Session, user_id: int, item_id: int) -> None:
    with unit_of_work(session):
        item = _get_own_item(session, user_id, item_id)
        session.delete(item)


def clear_basket(session: Session, user_id: int) -> int:
    with unit_of_work(session):
        removed = delete_basket_items(session, get_basket_snapshot(session, user_id))
    return removed


def get_basket_count(session: Session, user_id: int) -> int:
    total = session.exec(
        select(func.coalesce(func.sum(BasketItem.quantity), 0))
        .where(BasketItem.user_id == user_id)
    ).one()
    return int(total)
