import binascii
import logging
from datetime import datetime, timedelta, timezone

import jwt  # PyJWT
from jwt.utils import base64url_decode, base64url_encode
from passlib.context import CryptContext

from app.core.errors import InvalidToken
from models import AuthTokens, TokenClaims, UserRecord

logger = logging.getLogger(__name__)

BCRYPT_ROUNDS = 12
# Reported to clients on login. Not derived from the configured lifetime.
EXPIRES_IN_SECONDS = 7 * 24 * 60 * 60

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def is_canonical_segment(segment: str) -> bool:
    """True when re-encoding the decoded segment gives back the same text.

    Base64url ignores the spare low bits of a final character, so several
    spellings decode to the same bytes. Only the one the signer wrote is valid.
    """
    try:
        return base64url_encode(base64url_decode(segment)) == segment.encode("ascii")
    except (binascii.Error, ValueError, TypeError):
        return False


class TokenService:
    """Issues and verifies signed bearer tokens.

    The service is stateless: the secret is the only thing it holds, so
    changing the secret invalidates every token issued before.
    """

    def __init__(self, secret: str, algorithm: str = "HS256", expires_in: int = EXPIRES_IN_SECONDS):
        self.secret = secret
        self.algorithm = algorithm
        self.expires_in = timedelta(seconds=expires_in)

    def issue(self, user: UserRecord) -> AuthTokens:
        now = datetime.now(timezone.utc)
        payload = {
            "user_id": user.id,
            "email": user.email,
            "iat": now,
            "exp": now + self.expires_in,
        }
        access_token = jwt.encode(payload, self.secret, algorithm=self.algorithm)
        return AuthTokens(access_token=access_token, token_type="Bearer", expires_in=EXPIRES_IN_SECONDS)

    def verify(self, token: str) -> TokenClaims:
        segments = token.split(".") if isinstance(token, str) else []
        if len(segments) != 3 or not all(is_canonical_segment(s) for s in segments):
            logger.info("Rejected malformed token")
            raise InvalidToken()
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "user_id"]},
            )
        except jwt.ExpiredSignatureError:
            logger.info("Rejected expired token")
            raise InvalidToken()
        except jwt.InvalidTokenError as exc:
            logger.info("Rejected token: %s", exc)
            raise InvalidToken()
        return TokenClaims(user_id=str(payload["user_id"]), email=payload.get("email"))
