from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.database import get_session
from app.models.user import User
from app.schemas.basket_schemas import BasketAddRequest, BasketUpdateRequest
from app.services import basket_service
from app.utils.token import get_current_user  # JWT dependency


router = APIRouter()


def _item_out(item) -> dict:
    return {
        "id": item.id,
        "productId": item.product_id,
        "selectedColorId": item.selected_color_id,
        "selectedSizeId": item.selected_size_id,
        "quantity": item.quantity,
    }


@router.get("")
def get_basket(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    return basket_service.get_basket_summary(session, current_user.id)


@router.get("/count")
def get_basket_count(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    return {"count": basket_service.get_basket_count(session, current_user.id)}


@router.post("/add")
def add_to_basket(
    data: BasketAddRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    item = basket_service.add_to_basket(
        session,
        current_user.id,
        data.product_id,
        quantity=data.quantity,
        selected_color_id=data.selected_color_id,
        selected_size_id=data.selected_size_id,
    )
    return {"message": "Added to basket", "item": _item_out(item)}


@router.delete("/clear")
def clear_basket(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    removed = basket_service.clear_basket(session, current_user.id)
    return {"message": "Basket cleared", "removed": removed}


@router.put("/{item_id}")
def update_basket_item(
    item_id: int,
    data: BasketUpdateRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    item = basket_service.update_basket_quantity(session, current_user.id, item_id, data.quantity)
    return {"message": "Quantity updated", "item": _item_out(item)}


@router.delete("/{item_id}")
def remove_basket_item(
    item_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    basket_service.remove_from_basket(session, current_user.id, item_id)
    return {"message": "Item removed from basket"}
