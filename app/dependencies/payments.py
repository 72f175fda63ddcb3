from app.config import settings
from app.services.tiptoppay_client import TipTopPayClient


def get_payment_client() -> TipTopPayClient:
    return TipTopPayClient(settings)
