import logging
import re
from typing import List, Optional, Protocol

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from app.core.errors import CategoryInUse, DuplicateCategory, InvalidColor, NotFound, ValidationError
from app.db import CATEGORIES, parse_object_id, utcnow
from models import CategoryRecord

logger = logging.getLogger(__name__)

DEFAULT_COLOR = "#3B82F6"
MAX_NAME_LENGTH = 50
COLOR_RE = re.compile(r"^#[0-9A-F]{6}$", re.IGNORECASE)


class TodoReferenceQuery(Protocol):
    """Read-only view of todos needed before a category can be deleted."""

    async def count_referencing(self, user_id: str, category_name: str) -> int:
        ...


def clean_name(name: Optional[str]) -> str:
    name = (name or "").strip()
    if not name or len(name) > MAX_NAME_LENGTH:
        raise ValidationError(f"Category name must be 1-{MAX_NAME_LENGTH} characters")
    return name


def check_color(color: str) -> str:
    if not isinstance(color, str) or not COLOR_RE.match(color):
        raise InvalidColor()
    return color


class CategoryStore:
    def __init__(self, db: AsyncIOMotorDatabase, todo_refs: TodoReferenceQuery):
        self.collection = db[CATEGORIES]
        self.todo_refs = todo_refs

    def _owned(self, user_id: str, category_id: str) -> Optional[dict]:
        """Filter matching ``category_id`` owned by ``user_id``, or None for malformed ids."""
        uid, cid = parse_object_id(user_id), parse_object_id(category_id)
        if uid is None or cid is None:
            return None
        return {"_id": cid, "user_id": uid}

    async def _name_taken(self, user_id: str, name: str, exclude_id=None) -> bool:
        query = {"name": name, "user_id": parse_object_id(user_id)}
        if exclude_id is not None:
            query["_id"] = {"$ne": exclude_id}
        return await self.collection.find_one(query, {"_id": 1}) is not None

    async def exists(self, user_id: str, name: str) -> bool:
        return await self._name_taken(user_id, name)

    async def create(self, user_id: str, name: str, color: Optional[str] = None) -> CategoryRecord:
        name = clean_name(name)
        color = check_color(color) if color is not None else DEFAULT_COLOR
        if await self._name_taken(user_id, name):
            raise DuplicateCategory()

        doc = {
            "user_id": parse_object_id(user_id),
            "name": name,
            "color": color,
            "created_at": utcnow(),
        }
        try:
            result = await self.collection.insert_one(doc)
        except DuplicateKeyError:
            raise DuplicateCategory()
        doc["_id"] = result.inserted_id
        return CategoryRecord(**doc)

    async def list(self, user_id: str) -> List[CategoryRecord]:
        cursor = self.collection.find({"user_id": parse_object_id(user_id)}).sort("name", ASCENDING)
        return [CategoryRecord(**doc) for doc in await cursor.to_list(length=None)]

    async def get_by_id(self, user_id: str, category_id: str) -> CategoryRecord:
        query = self._owned(user_id, category_id)
        doc = await self.collection.find_one(query) if query else None
        if not doc:
            raise NotFound("Category not found")
        return CategoryRecord(**doc)

    async def update(self, user_id: str, category_id: str, patch: dict) -> CategoryRecord:
        current = await self.get_by_id(user_id, category_id)
        query = self._owned(user_id, category_id)

        fields = {}
        if patch.get("name") is not None:
            fields["name"] = clean_name(patch["name"])
            if await self._name_taken(user_id, fields["name"], exclude_id=query["_id"]):
                raise DuplicateCategory()
        if patch.get("color") is not None:
            fields["color"] = check_color(patch["color"])

        if not fields:
            return current
        try:
            doc = await self.collection.find_one_and_update(
                query, {"$set": fields}, return_document=ReturnDocument.AFTER
            )
        except DuplicateKeyError:
            raise DuplicateCategory()
        if not doc:
            raise NotFound("Category not found")
        return CategoryRecord(**doc)

    async def delete(self, user_id: str, category_id: str) -> None:
        # The in-use check and the delete are separate operations; a todo
        # created in between keeps a dangling category name.
        category = await self.get_by_id(user_id, category_id)
        if await self.todo_refs.count_referencing(user_id, category.name) > 0:
            raise CategoryInUse()

        result = await self.collection.delete_one(self._owned(user_id, category_id))
        if not result.deleted_count:
            raise NotFound("Category not found")
        logger.info("Deleted category %s for user %s", category_id, user_id)
