import string
import unittest

import jwt
from bson import ObjectId

from app.core.errors import InvalidToken
from app.core.security import (
    EXPIRES_IN_SECONDS,
    TokenService,
    hash_password,
    is_canonical_segment,
    verify_password,
)
from app.db import utcnow
from models import UserRecord

B64URL = string.ascii_letters + string.digits + "-_"


def make_user() -> UserRecord:
    return UserRecord(id=str(ObjectId()), email="a@x.com", name="A", created_at=utcnow())


def mutate(token: str, index: int) -> str:
    ch = token[index]
    replacement = next(c for c in B64URL if c != ch)
    return token[:index] + replacement + token[index + 1:]


class PasswordHashTests(unittest.TestCase):
    def test_hash_is_salted_and_verifies(self):
        first = hash_password("secret1")
        second = hash_password("secret1")
        self.assertNotEqual(first, "secret1")
        self.assertNotEqual(first, second)
        self.assertTrue(first.startswith("$2b$12$"))
        self.assertTrue(verify_password("secret1", first))
        self.assertFalse(verify_password("secret2", first))


class TokenServiceTests(unittest.TestCase):
    def setUp(self):
        self.tokens = TokenService(secret="unit-test-secret")
        self.user = make_user()

    def test_issue_then_verify_returns_same_user(self):
        issued = self.tokens.issue(self.user)
        self.assertEqual(issued.token_type, "Bearer")
        claims = self.tokens.verify(issued.access_token)
        self.assertEqual(claims.user_id, self.user.id)
        self.assertEqual(claims.email, "a@x.com")

    def test_expiry_defaults_to_seven_days(self):
        token = self.tokens.issue(self.user).access_token
        payload = jwt.decode(token, "unit-test-secret", algorithms=["HS256"])
        self.assertEqual(payload["exp"] - payload["iat"], 7 * 24 * 60 * 60)

    def test_reported_expires_in_ignores_configured_lifetime(self):
        short = TokenService(secret="unit-test-secret", expires_in=60)
        self.assertEqual(short.issue(self.user).expires_in, EXPIRES_IN_SECONDS)

    def test_expired_token_is_rejected(self):
        expired = TokenService(secret="unit-test-secret", expires_in=-10)
        token = expired.issue(self.user).access_token
        with self.assertRaises(InvalidToken):
            self.tokens.verify(token)

    def test_other_secret_is_rejected(self):
        token = TokenService(secret="rotated").issue(self.user).access_token
        with self.assertRaises(InvalidToken):
            self.tokens.verify(token)

    def test_malformed_token_is_rejected(self):
        for token in ("", "abc", "a.b.c", "not a token at all"):
            with self.assertRaises(InvalidToken):
                self.tokens.verify(token)

    def test_token_without_user_is_rejected(self):
        token = jwt.encode({"email": "a@x.com", "exp": 9999999999}, "unit-test-secret", algorithm="HS256")
        with self.assertRaises(InvalidToken):
            self.tokens.verify(token)

    def test_last_character_spellings_with_same_bytes_are_rejected(self):
        token = self.tokens.issue(self.user).access_token
        head, _, signature = token.rpartition(".")
        # A 32-byte HS256 signature leaves two unused bits in its final character.
        for ch in B64URL:
            if ch == signature[-1]:
                continue
            with self.subTest(ch=ch):
                with self.assertRaises(InvalidToken):
                    self.tokens.verify(f"{head}.{signature[:-1]}{ch}")

    def test_canonical_segments(self):
        self.assertTrue(is_canonical_segment("YWJj"))
        self.assertTrue(is_canonical_segment("YWI"))
        self.assertFalse(is_canonical_segment("YWJ"))
        self.assertFalse(is_canonical_segment("Y"))
        self.assertFalse(is_canonical_segment("YW=="))

    def test_single_character_mutation_is_rejected(self):
        token = self.tokens.issue(self.user).access_token
        for index in range(len(token)):
            with self.subTest(index=index):
                with self.assertRaises(InvalidToken):
                    self.tokens.verify(mutate(token, index))


if __name__ == "__main__":
    unittest.main()
