from fastapi import APIRouter, Depends
from sqlmodel import Session
from app.database import get_session
from app.models.user import User
from app.services.guest_service import create_guest_user
from app.utils.token import create_access_token, get_current_user

router = APIRouter()


def _user_out(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "role": user.role,
        "isGuest": user.is_guest,
        "createdAt": user.created_at,
    }


# -------- GUEST SESSION --------

@router.post("/guest")
def create_guest_session(session: Session = Depends(get_session)):
    user = create_guest_user(session)
    token = create_access_token({"user_id": user.id, "guest_session_id": user.guest_session_id})
    return {"token": token, "user": _user_out(user)}


# -------- USER PROFILE --------

@router.get("/me")
def get_my_profile(current_user: User = Depends(get_current_user)):
    return _user_out(current_user)
