import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from app.database import create_db_and_tables
from app.config import settings
from app.errors import AppError
from app.routes import (
    basket,
    orders,
    users,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Run DB creation ONLY in local
    if settings.env == "local":
        create_db_and_tables()
    yield

app = FastAPI(title="Storefront API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


app.include_router(users.router, prefix="/user", tags=["Users"])
app.include_router(basket.router, prefix="/basket", tags=["Basket"])
app.include_router(orders.router, prefix="/order", tags=["Orders"])


@app.get("/")
def root():
    return {
        "user_endpoints": [
            "/user/guest", "/user/me"
        ],
        "basket_endpoints": [
            "/basket", "/basket/add", "/basket/{item_id}",
            "/basket/clear", "/basket/count"
        ],
        "order_endpoints": [
            "/order/create", "/order/guest", "/order/my-orders",
            "/order/my-orders/{order_id}", "/order/my-orders/{order_id}/cancel",
            "/order/webhook/tiptoppay"
        ],
        "admin_order_endpoints": [
            "/order/", "/order/{order_id}", "/order/{order_id}/status",
            "/order/{order_id}/events", "/order/stats/overview"
        ],
    }
