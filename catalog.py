"""Menu item CRUD. Reads are public, writes are gated by the routes."""
import logging
import re
from typing import List, Optional

import database
from errors import NotFound, ValidationError
from schemas import Fooditem, FooditemUpdate

logger = logging.getLogger(__name__)

COLLECTION = "fooditem"


def list_items(category: Optional[str] = None, search: Optional[str] = None) -> List[dict]:
    filter_q = {}
    if category:
        filter_q["category"] = category
    if search:
        filter_q["name"] = {"$regex": re.escape(search), "$options": "i"}
    return database.get_documents(COLLECTION, filter_q, sort=[("_id", 1)])


def get_item(item_id: str) -> dict:
    item = database.get_document_by_id(COLLECTION, item_id)
    if not item:
        raise NotFound("Food not found")
    return item


def create_item(item: Fooditem) -> dict:
    item_id = database.create_document(COLLECTION, item)
    logger.info("Created food item %s (%s)", item_id, item.name)
    return get_item(item_id)


def update_item(item_id: str, changes: FooditemUpdate) -> dict:
    get_item(item_id)
    fields = changes.model_dump(exclude_none=True)
    if not fields:
        raise ValidationError("No fields to update")
    item = database.update_document(COLLECTION, item_id, fields)
    if not item:
        raise NotFound("Food not found")
    logger.info("Updated food item %s: %s", item_id, ", ".join(sorted(fields)))
    return item


def delete_item(item_id: str) -> None:
    if not database.delete_document(COLLECTION, item_id):
        raise NotFound("Food not found")
    logger.info("Deleted food item %s", item_id)
