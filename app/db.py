"""
MongoDB access: client construction, collection names and indexes.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING

logger = logging.getLogger(__name__)

USERS = "users"
CATEGORIES = "categories"
TODOS = "todos"


def create_client(uri: str) -> AsyncIOMotorClient:
    return AsyncIOMotorClient(uri)


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    """Create the unique indexes that back email and category-name uniqueness."""
    await db[USERS].create_index([("email", ASCENDING)], unique=True)
    await db[CATEGORIES].create_index([("name", ASCENDING), ("user_id", ASCENDING)], unique=True)
    await db[TODOS].create_index([("user_id", ASCENDING), ("created_at", ASCENDING)])
    logger.info("MongoDB indexes ensured on %s", db.name)


def parse_object_id(value) -> Optional[ObjectId]:
    """Return ``value`` as an ObjectId, or None when it is not a valid id."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def utcnow() -> datetime:
    # BSON dates keep milliseconds only; truncate so stored and returned values agree.
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def to_utc_naive(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def touch_updated_at(fields: dict, previous: Optional[datetime] = None) -> dict:
    """Stamp ``updated_at`` on a pending write.

    The new value is always later than ``previous`` so successive writes to
    the same document stay ordered even within one millisecond.
    """
    now = utcnow()
    if previous is not None and now <= previous:
        now = previous + timedelta(milliseconds=1)
    fields["updated_at"] = now
    return fields
