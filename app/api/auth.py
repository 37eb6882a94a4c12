import logging

from fastapi import APIRouter, Depends

from app.core.security import TokenService
from app.dependencies import get_current_user, get_token_service, get_user_store
from app.stores.users import UserStore
from models import RequestContext, UserLogin, UserRegister

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/register", status_code=201)
async def register(payload: UserRegister, users: UserStore = Depends(get_user_store)):
    user = await users.register(payload.email, payload.password, payload.name)
    return {"message": "User registered successfully", "user": user}


@router.post("/login")
async def login(
    payload: UserLogin,
    users: UserStore = Depends(get_user_store),
    tokens: TokenService = Depends(get_token_service),
):
    user = await users.authenticate(payload.email, payload.password)
    logger.info("Login successful for user %s", user.id)
    return {
        "message": "Login successful",
        "user": user.model_dump(exclude={"created_at"}),
        **tokens.issue(user).model_dump(),
    }


@router.get("/me")
async def me(ctx: RequestContext = Depends(get_current_user)):
    return {"user": ctx.user}
