import logging
import re
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, ReturnDocument

from app.core.errors import CategoryNotFound, NotFound, ValidationError
from app.db import TODOS, parse_object_id, touch_updated_at, utcnow
from app.stores.categories import CategoryStore
from models import TodoCreate, TodoFilters, TodoRecord, TodoUpdate

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 1000
MAX_CATEGORY_LENGTH = 50

# Fields an update may clear by sending null or an empty string.
CLEARABLE = ("description", "due_date", "category")


def clean_title(title: Optional[str]) -> str:
    title = (title or "").strip()
    if not title:
        raise ValidationError("Title is required")
    if len(title) > MAX_TITLE_LENGTH:
        raise ValidationError(f"Title must be {MAX_TITLE_LENGTH} characters or less")
    return title


def clean_description(description: Optional[str]) -> Optional[str]:
    description = (description or "").strip()
    if len(description) > MAX_DESCRIPTION_LENGTH:
        raise ValidationError(f"Description must be {MAX_DESCRIPTION_LENGTH} characters or less")
    return description or None


class TodoReferences:
    """Counts todos that reference a category by name."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db[TODOS]

    async def count_referencing(self, user_id: str, category_name: str) -> int:
        return await self.collection.count_documents(
            {"user_id": parse_object_id(user_id), "category": category_name}
        )


class TodoStore:
    def __init__(self, db: AsyncIOMotorDatabase, categories: CategoryStore):
        self.collection = db[TODOS]
        self.categories = categories

    def _owned(self, user_id: str, todo_id: str) -> Optional[dict]:
        uid, tid = parse_object_id(user_id), parse_object_id(todo_id)
        if uid is None or tid is None:
            return None
        return {"_id": tid, "user_id": uid}

    async def _clean_category(self, user_id: str, category: Optional[str]) -> Optional[str]:
        """Validate a category reference; empty means no category."""
        category = (category or "").strip()
        if not category:
            return None
        if len(category) > MAX_CATEGORY_LENGTH or not await self.categories.exists(user_id, category):
            raise CategoryNotFound()
        return category

    async def create(self, user_id: str, data: TodoCreate) -> TodoRecord:
        now = utcnow()
        doc = {
            "user_id": parse_object_id(user_id),
            "title": clean_title(data.title),
            "priority": data.priority,
            "status": "pending",
            "created_at": now,
            "updated_at": now,
        }
        description = clean_description(data.description)
        if description:
            doc["description"] = description
        if data.due_date is not None:
            doc["due_date"] = data.due_date
        category = await self._clean_category(user_id, data.category)
        if category:
            doc["category"] = category

        result = await self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return TodoRecord(**doc)

    async def list(self, user_id: str, filters: Optional[TodoFilters] = None) -> List[TodoRecord]:
        filters = filters or TodoFilters()
        query = {"user_id": parse_object_id(user_id)}

        if filters.status:
            query["status"] = filters.status
        if filters.priority:
            query["priority"] = filters.priority
        if filters.category:
            query["category"] = filters.category

        if filters.due_date_start or filters.due_date_end:
            query["due_date"] = {}
            if filters.due_date_start:
                query["due_date"]["$gte"] = filters.due_date_start
            if filters.due_date_end:
                query["due_date"]["$lte"] = filters.due_date_end

        if filters.search:
            pattern = re.escape(filters.search)
            query["$or"] = [
                {"title": {"$regex": pattern, "$options": "i"}},
                {"description": {"$regex": pattern, "$options": "i"}},
            ]

        cursor = self.collection.find(query).sort([("created_at", DESCENDING), ("_id", DESCENDING)])
        return [TodoRecord(**doc) for doc in await cursor.to_list(length=None)]

    async def list_overdue(self, user_id: str) -> List[TodoRecord]:
        cursor = self.collection.find(
            {
                "user_id": parse_object_id(user_id),
                "status": "pending",
                "due_date": {"$lt": utcnow()},
            }
        ).sort("due_date", ASCENDING)
        return [TodoRecord(**doc) for doc in await cursor.to_list(length=None)]

    async def _find_owned(self, user_id: str, todo_id: str) -> dict:
        query = self._owned(user_id, todo_id)
        doc = await self.collection.find_one(query) if query else None
        if not doc:
            raise NotFound("Todo not found")
        return doc

    async def get_by_id(self, user_id: str, todo_id: str) -> TodoRecord:
        return TodoRecord(**await self._find_owned(user_id, todo_id))

    async def update(self, user_id: str, todo_id: str, data: TodoUpdate) -> TodoRecord:
        current = await self._find_owned(user_id, todo_id)
        patch = data.model_dump(exclude_unset=True)

        fields, cleared = {}, {}
        for name in CLEARABLE:
            if name in patch and patch[name] in (None, ""):
                cleared[name] = ""
        if patch.get("title") is not None:
            fields["title"] = clean_title(patch["title"])
        if patch.get("description"):
            description = clean_description(patch["description"])
            if description:
                fields["description"] = description
            else:
                cleared["description"] = ""
        if patch.get("due_date") is not None:
            fields["due_date"] = patch["due_date"]
        if patch.get("category"):
            category = await self._clean_category(user_id, patch["category"])
            if category:
                fields["category"] = category
            else:
                cleared["category"] = ""
        for name in ("priority", "status"):
            if patch.get(name) is not None:
                fields[name] = patch[name]

        update = {"$set": touch_updated_at(fields, current.get("updated_at"))}
        if cleared:
            update["$unset"] = cleared
        doc = await self.collection.find_one_and_update(
            {"_id": current["_id"], "user_id": current["user_id"]},
            update,
            return_document=ReturnDocument.AFTER,
        )
        if not doc:
            raise NotFound("Todo not found")
        return TodoRecord(**doc)

    async def delete(self, user_id: str, todo_id: str) -> None:
        query = self._owned(user_id, todo_id)
        result = await self.collection.delete_one(query) if query else None
        if not result or not result.deleted_count:
            raise NotFound("Todo not found")

    async def toggle_status(self, user_id: str, todo_id: str) -> TodoRecord:
        current = await self._find_owned(user_id, todo_id)
        status = "completed" if current.get("status", "pending") == "pending" else "pending"
        doc = await self.collection.find_one_and_update(
            {"_id": current["_id"], "user_id": current["user_id"]},
            {"$set": touch_updated_at({"status": status}, current.get("updated_at"))},
            return_document=ReturnDocument.AFTER,
        )
        if not doc:
            raise NotFound("Todo not found")
        logger.debug("Todo %s is now %s", todo_id, status)
        return TodoRecord(**doc)
