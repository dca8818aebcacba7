"""
Order lifecycle.

An order is written once, as a single document, after payment is confirmed.
Line items are snapshots of the menu at order time so later menu edits or
deletions never change order history. Fulfillment status only moves forward
one step at a time: preparing -> delivering -> completed.
"""
import logging
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from pymongo.errors import DuplicateKeyError

import database
from errors import NotFound, PaymentFailed, ValidationError
from payments import PaymentGateway, to_minor_units
from schemas import MAX_QUANTITY, ORDER_STATUSES, LineItem, Order, PaymentDetails

logger = logging.getLogger(__name__)

COLLECTION = "order"
NEWEST_FIRST = [("created_at", -1), ("_id", -1)]


def _snapshot_items(items: Iterable[Tuple[str, int]]) -> List[LineItem]:
    line_items = []
    for food_id, quantity in items:
        if not 1 <= quantity <= MAX_QUANTITY:
            raise ValidationError(f"Quantity must be between 1 and {MAX_QUANTITY}")
        food = database.get_document_by_id("fooditem", food_id)
        if not food:
            raise ValidationError(f"Unknown food item {food_id}")
        line_items.append(LineItem(
            food_id=food["_id"],
            name=food["name"],
            price=food["price"],
            image=food.get("image"),
            quantity=quantity,
        ))
    return line_items


def order_total(items: Iterable[LineItem]) -> float:
    total = sum((Decimal(str(i.price)) * i.quantity for i in items), Decimal("0"))
    return float(total.quantize(Decimal("0.01")))


def _existing_for_intent(user: dict, intent_id: str) -> Optional[dict]:
    existing = database.find_document(COLLECTION, {"payment_intent_id": intent_id})
    if existing and existing["user_id"] != user["_id"]:
        raise PaymentFailed("Payment already used for another order")
    return existing


def create_order(user: dict, items: List[Tuple[str, int]], address: str, payment: str,
                 payment_details: Optional[PaymentDetails], gateway: PaymentGateway) -> dict:
    """Persist a paid order for `user`.

    `items` is a list of (food id, quantity). When the gateway is configured the
    payment intent named in `payment_details` must have succeeded for exactly the
    order total; placing the same intent twice returns the first order.
    """
    address = (address or "").strip()
    if not address:
        raise ValidationError("Address is required")
    if not items:
        raise ValidationError("Order must contain at least one item")
    payment = (payment or "").strip()
    if not payment:
        raise ValidationError("Payment method is required")

    details = payment_details or PaymentDetails()
    intent_id = details.payment_intent_id
    if intent_id:
        existing = _existing_for_intent(user, intent_id)
        if existing:
            logger.info("Order %s already placed for payment intent %s", existing["_id"], intent_id)
            return existing

    line_items = _snapshot_items(items)
    total = order_total(line_items)

    if gateway.configured:
        gateway.verify_payment(intent_id, to_minor_units(total))
    else:
        logger.warning("Payment gateway not configured; accepting client payment confirmation for user %s", user["_id"])

    order = Order(
        user_id=user["_id"],
        items=line_items,
        address=address,
        payment=payment,
        payment_status="paid",
        payment_details=details.model_dump(exclude={"payment_intent_id"}, exclude_none=True),
        payment_intent_id=intent_id,
        total=total,
    )
    doc = order.model_dump()
    if not intent_id:
        # sparse unique index: leave the field out rather than storing null
        doc.pop("payment_intent_id")
    try:
        order_id = database.create_document(COLLECTION, doc)
    except DuplicateKeyError:
        existing = _existing_for_intent(user, intent_id)
        if existing:
            return existing
        raise
    logger.info("Created order %s for user %s, total %.2f", order_id, user["_id"], total)
    return database.get_document_by_id(COLLECTION, order_id)


def list_orders_for_user(user: dict) -> List[dict]:
    return database.get_documents(COLLECTION, {"user_id": user["_id"]}, sort=NEWEST_FIRST)


def list_all_orders() -> List[dict]:
    orders = database.get_documents(COLLECTION, {}, sort=NEWEST_FIRST)
    owner_ids = [oid for oid in {database.to_object_id(o["user_id"]) for o in orders} if oid is not None]
    owners = {}
    if owner_ids:
        for u in database.get_documents("user", {"_id": {"$in": owner_ids}}):
            owners[u["_id"]] = {"_id": u["_id"], "email": u["email"]}
    for o in orders:
        o["user"] = owners.get(o["user_id"])
    return orders


def get_order(user: dict, order_id: str) -> dict:
    order = database.get_document_by_id(COLLECTION, order_id)
    # other users' orders look exactly like missing ones
    if not order or (order["user_id"] != user["_id"] and not user["is_admin"]):
        raise NotFound("Order not found")
    return order


def check_transition(current: str, new_status: str) -> None:
    if new_status not in ORDER_STATUSES:
        raise ValidationError(f"Invalid status '{new_status}'. Expected one of: {', '.join(ORDER_STATUSES)}")
    if ORDER_STATUSES.index(new_status) != ORDER_STATUSES.index(current) + 1:
        raise ValidationError(f"Cannot change status from {current} to {new_status}")


def update_order_status(order_id: str, new_status: str) -> dict:
    order = database.get_document_by_id(COLLECTION, order_id)
    if not order:
        raise NotFound("Order not found")
    current = order["status"]
    if new_status == current:
        return order
    check_transition(current, new_status)
    updated = database.update_document(COLLECTION, order_id, {"status": new_status}, expected={"status": current})
    if not updated:
        raise ValidationError("Order status changed concurrently, reload and retry")
    logger.info("Order %s status %s -> %s", order_id, current, new_status)
    return updated
