"""
Database Schemas for the Food Ordering Service

Each Pydantic model below corresponds to a MongoDB collection.
The collection name is the lowercase class name (e.g., User -> "user").
"""
from typing import List, Optional, Literal
from pydantic import BaseModel, ConfigDict, Field, EmailStr

MAX_QUANTITY = 1000
ORDER_STATUSES = ("preparing", "delivering", "completed")
PAYMENT_STATUSES = ("pending", "paid", "failed")

OrderStatus = Literal["preparing", "delivering", "completed"]
PaymentStatus = Literal["pending", "paid", "failed"]


class User(BaseModel):
    email: EmailStr = Field(..., description="Unique email address")
    password_hash: str = Field(..., description="BCrypt password hash")
    is_admin: bool = Field(False, description="Admin privileges")


class Fooditem(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, description="Item name")
    description: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    image: str = Field(..., min_length=1, description="Image URL or path")
    category: str = Field(..., min_length=1, description="Free-text tag, e.g. burger")


class FooditemUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    price: Optional[float] = Field(None, ge=0)
    image: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = Field(None, min_length=1)


class PaymentDetails(BaseModel):
    """Opaque record from the card processor; every field is optional."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    payment_intent_id: Optional[str] = Field(None, alias="paymentIntentId")
    last4: Optional[str] = None
    brand: Optional[str] = None
    receipt: Optional[str] = Field(None, description="Receipt URL or reference")


class LineItem(BaseModel):
    # snapshot of the food item at order time
    food_id: str
    name: str
    price: float = Field(..., ge=0)
    image: Optional[str] = None
    quantity: int = Field(..., ge=1, le=MAX_QUANTITY)


class Order(BaseModel):
    user_id: str = Field(..., description="Owner, never changes")
    items: List[LineItem] = Field(..., min_length=1)
    address: str = Field(..., min_length=1, description="Delivery address")
    payment: str = Field(..., min_length=1, description="Payment method tag, e.g. card")
    payment_status: PaymentStatus = "paid"
    payment_details: dict = Field(default_factory=dict)
    payment_intent_id: Optional[str] = None
    status: OrderStatus = "preparing"
    total: float = 0.0
