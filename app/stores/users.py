import logging

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError
from starlette.concurrency import run_in_threadpool

from app.core.errors import DuplicateEmail, InvalidCredentials, NotFound, ValidationError
from app.core.security import hash_password, verify_password
from app.db import USERS, parse_object_id, utcnow
from models import UserRecord

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
DUMMY_PASSWORD_HASH = hash_password("not-a-real-account")


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def with_hashed_password(doc: dict, password: str) -> dict:
    """Return ``doc`` with ``password_hash`` derived from ``password``."""
    doc["password_hash"] = hash_password(password)
    return doc


class UserStore:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db[USERS]

    async def _email_taken(self, email: str) -> bool:
        return await self.collection.find_one({"email": email}, {"_id": 1}) is not None

    async def register(self, email: str, password: str, name: str) -> UserRecord:
        email = normalize_email(email)
        name = (name or "").strip()
        if not email or not password or not name:
            raise ValidationError("Email, password, and name are required")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

        if await self._email_taken(email):
            raise DuplicateEmail()

        doc = {"email": email, "name": name, "created_at": utcnow()}
        # bcrypt is CPU bound; keep it off the event loop.
        doc = await run_in_threadpool(with_hashed_password, doc, password)
        try:
            result = await self.collection.insert_one(doc)
        except DuplicateKeyError:
            raise DuplicateEmail()
        doc["_id"] = result.inserted_id
        logger.info("Registered user %s", doc["_id"])
        return UserRecord(**doc)

    async def authenticate(self, email: str, password: str) -> UserRecord:
        doc = await self.collection.find_one({"email": normalize_email(email)})
        if not password:
            raise InvalidCredentials()
        # Unknown emails are checked against a dummy hash so both failures
        # cost one bcrypt round and return the same error.
        password_hash = doc["password_hash"] if doc else DUMMY_PASSWORD_HASH
        valid = await run_in_threadpool(verify_password, password, password_hash)
        if not doc or not valid:
            raise InvalidCredentials()
        return UserRecord(**doc)

    async def find_by_id(self, user_id: str) -> UserRecord:
        oid = parse_object_id(user_id)
        doc = await self.collection.find_one({"_id": oid}) if oid else None
        if not doc:
            raise NotFound("User not found")
        return UserRecord(**doc)
