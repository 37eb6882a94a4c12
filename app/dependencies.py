"""
Dependency wiring for the FastAPI app, including the authentication gate.
"""

import logging
from typing import Optional

from fastapi import Depends, Header
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from app.core.config import get_settings
from app.core.errors import MissingToken, NotFound, UnknownUser
from app.core.security import TokenService
from app.db import create_client
from app.stores.categories import CategoryStore
from app.stores.todos import TodoReferences, TodoStore
from app.stores.users import UserStore
from models import RequestContext

logger = logging.getLogger(__name__)

_client: Optional[AsyncIOMotorClient] = None
_token_service: Optional[TokenService] = None


def get_database() -> AsyncIOMotorDatabase:
    """
    Return the application database from a process-wide Motor client.
    """
    global _client
    settings = get_settings()
    if _client is None:
        _client = create_client(settings.mongodb_uri)
    return _client[settings.mongodb_db]


def close_client() -> None:
    global _client
    if _client is not None:
        _client.close()
        _client = None


def get_token_service() -> TokenService:
    global _token_service
    if _token_service:
        return _token_service

    settings = get_settings()
    _token_service = TokenService(
        secret=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        expires_in=settings.jwt_expires_in,
    )
    return _token_service


def get_user_store(db: AsyncIOMotorDatabase = Depends(get_database)) -> UserStore:
    return UserStore(db)


def get_category_store(db: AsyncIOMotorDatabase = Depends(get_database)) -> CategoryStore:
    return CategoryStore(db, TodoReferences(db))


def get_todo_store(
    db: AsyncIOMotorDatabase = Depends(get_database),
    categories: CategoryStore = Depends(get_category_store),
) -> TodoStore:
    return TodoStore(db, categories)


def extract_bearer_token(authorization: Optional[str]) -> str:
    scheme, _, token = (authorization or "").partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise MissingToken()
    return token


async def get_current_user(
    authorization: Optional[str] = Header(None),
    tokens: TokenService = Depends(get_token_service),
    users: UserStore = Depends(get_user_store),
) -> RequestContext:
    """Resolve the bearer token on the request to the calling user.

    Missing token -> 401, bad or expired token -> 403, token for a user that
    no longer exists -> 401. Route handlers get the caller only from here.
    """
    token = extract_bearer_token(authorization)
    claims = tokens.verify(token)
    try:
        user = await users.find_by_id(claims.user_id)
    except NotFound:
        logger.warning("Token references unknown user %s", claims.user_id)
        raise UnknownUser()
    return RequestContext(user=user)
