import logging
from contextlib import asynccontextmanager
from typing import Annotated, List, Optional

from fastapi import FastAPI, Depends, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, EmailStr, Field

import catalog
import config
import database
import orders
import security
from errors import install_error_handlers
from payments import PaymentGateway, get_payment_gateway
from rate_limit import FixedWindowLimiter, RateLimitMiddleware
from schemas import MAX_QUANTITY, Fooditem, FooditemUpdate, PaymentDetails

logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if database.db is not None:
        database.ensure_indexes()
    else:
        logger.warning("DATABASE_URL / DATABASE_NAME not set; persistence is unavailable")
    yield


app = FastAPI(title="Food Ordering API", version="1.0.0", lifespan=lifespan)

rate_limiter = FixedWindowLimiter(config.RATE_LIMIT_MAX, config.RATE_LIMIT_WINDOW * 60)

app.add_middleware(RateLimitMiddleware, limiter=rate_limiter)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
install_error_handlers(app)

CurrentUser = Annotated[dict, Depends(security.get_current_user)]
AdminUser = Annotated[dict, Depends(security.require_admin)]


# ============ Request models ==========
class CredentialsRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class OrderItemRequest(BaseModel):
    food: str = Field(..., description="Food item _id")
    quantity: int = Field(..., ge=1, le=MAX_QUANTITY)


class CreateOrderRequest(BaseModel):
    items: List[OrderItemRequest] = []
    address: str = ""
    payment: str = Field("card", min_length=1)
    paymentDetails: Optional[PaymentDetails] = None


class UpdateOrderStatusRequest(BaseModel):
    status: str


class PaymentIntentRequest(BaseModel):
    amount: int = Field(..., strict=True, gt=0, description="Amount in minor units (cents)")


# ===================== Public Endpoints =====================
@app.get("/")
def root():
    return {"message": "Food ordering API running"}


# ===================== Auth =====================
@app.post("/auth/register", status_code=201)
def register(payload: CredentialsRequest, response: Response):
    user, token = security.register(payload.email, payload.password)
    security.set_session_cookie(response, token, config.REGISTER_TOKEN_TTL)
    return {"user": user, "token": token}


@app.post("/auth/login")
def login(payload: CredentialsRequest, response: Response):
    user, token = security.login(payload.email, payload.password)
    security.set_session_cookie(response, token, config.LOGIN_TOKEN_TTL)
    return {"user": user, "token": token}


@app.post("/auth/logout")
def logout(response: Response):
    security.clear_session_cookie(response)
    return {"message": "Logged out successfully"}


@app.get("/auth/session")
def check_session(user: CurrentUser):
    return {"user": user}


# ===================== Food Items =====================
@app.get("/food")
def list_food(category: Optional[str] = None, search: Optional[str] = None):
    return catalog.list_items(category=category, search=search)


@app.get("/food/{item_id}")
def get_food(item_id: str):
    return catalog.get_item(item_id)


@app.post("/food", status_code=201)
def create_food(payload: Fooditem, admin: AdminUser):
    return catalog.create_item(payload)


@app.put("/food/{item_id}")
def update_food(item_id: str, payload: FooditemUpdate, admin: AdminUser):
    return catalog.update_item(item_id, payload)


@app.delete("/food/{item_id}")
def delete_food(item_id: str, admin: AdminUser):
    catalog.delete_item(item_id)
    return {"message": "Food deleted"}


# ===================== Orders =====================
@app.post("/orders", status_code=201)
def create_order(payload: CreateOrderRequest, user: CurrentUser,
                 gateway: PaymentGateway = Depends(get_payment_gateway)):
    return orders.create_order(
        user,
        [(i.food, i.quantity) for i in payload.items],
        payload.address,
        payload.payment,
        payload.paymentDetails,
        gateway,
    )


@app.get("/orders")
def list_orders(user: CurrentUser):
    return orders.list_orders_for_user(user)


@app.get("/orders/{order_id}")
def get_order(order_id: str, user: CurrentUser):
    return orders.get_order(user, order_id)


# ===================== Admin =====================
@app.get("/admin/orders")
def list_all_orders(admin: AdminUser):
    return orders.list_all_orders()


@app.put("/admin/orders/{order_id}")
def update_order_status(order_id: str, payload: UpdateOrderStatusRequest, admin: AdminUser):
    return orders.update_order_status(order_id, payload.status)


# ===================== Payment =====================
@app.post("/payment/create-payment-intent")
def create_payment_intent(payload: PaymentIntentRequest, gateway: PaymentGateway = Depends(get_payment_gateway)):
    return {"clientSecret": gateway.create_payment_intent(payload.amount)}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
