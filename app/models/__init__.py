from app.models.user import User, UserRole
from app.models.product import Product, ProductStatus, Color, Size
from app.models.basket import BasketItem
from app.models.order import Order, OrderStatus, PaymentStatus, PaymentMethod
from app.models.order_item import OrderItem
from app.models.order_event import OrderEvent, OrderEventActor

# add ALL models here
