import unittest
from unittest.mock import patch

from bson import ObjectId

from app.core.errors import ConflictError, DuplicateEmail, InvalidCredentials, NotFound, ValidationError
from app.db import USERS, ensure_indexes
from app.stores import users as users_module
from app.stores.users import DUMMY_PASSWORD_HASH, UserStore
from support import make_db


class UserStoreTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.db = make_db()
        await ensure_indexes(self.db)
        self.users = UserStore(self.db)

    async def test_register_stores_hash_not_password(self):
        user = await self.users.register("  A@X.com ", "secret1", " A ")
        self.assertEqual(user.email, "a@x.com")
        self.assertEqual(user.name, "A")

        stored = await self.db[USERS].find_one({"_id": ObjectId(user.id)})
        self.assertNotEqual(stored["password_hash"], "secret1")
        self.assertNotIn("password", stored)
        self.assertNotIn("password_hash", user.model_dump())

    async def test_reregistering_in_any_case_conflicts(self):
        await self.users.register("a@x.com", "secret1", "A")
        with self.assertRaises(DuplicateEmail) as ctx:
            await self.users.register("A@X.COM", "another1", "B")
        self.assertIsInstance(ctx.exception, ConflictError)
        self.assertEqual(await self.db[USERS].count_documents({}), 1)

    async def test_unique_index_rejects_duplicate_missed_by_lookup(self):
        await self.users.register("a@x.com", "secret1", "A")
        with patch.object(self.users, "_email_taken", return_value=False):
            with self.assertRaises(DuplicateEmail):
                await self.users.register("A@x.com", "another1", "B")
        self.assertEqual(await self.db[USERS].count_documents({}), 1)

    async def test_register_validates_input(self):
        with self.assertRaises(ValidationError):
            await self.users.register("a@x.com", "12345", "A")
        with self.assertRaises(ValidationError):
            await self.users.register("a@x.com", "secret1", "   ")
        with self.assertRaises(ValidationError):
            await self.users.register("", "secret1", "A")

    async def test_authenticate(self):
        created = await self.users.register("a@x.com", "secret1", "A")
        user = await self.users.authenticate("A@x.com", "secret1")
        self.assertEqual(user.id, created.id)
        self.assertTrue(user.password_hash)

    async def test_authenticate_failures_are_indistinguishable(self):
        await self.users.register("a@x.com", "secret1", "A")
        with self.assertRaises(InvalidCredentials) as wrong_password:
            await self.users.authenticate("a@x.com", "wrong-password")
        with self.assertRaises(InvalidCredentials) as unknown_email:
            await self.users.authenticate("nobody@x.com", "secret1")
        self.assertEqual(wrong_password.exception.message, unknown_email.exception.message)
        self.assertEqual(wrong_password.exception.message, "Invalid credentials")

    async def test_unknown_email_still_runs_password_check(self):
        with patch.object(users_module, "verify_password", wraps=users_module.verify_password) as check:
            with self.assertRaises(InvalidCredentials):
                await self.users.authenticate("nobody@x.com", "secret1")
        check.assert_called_once_with("secret1", DUMMY_PASSWORD_HASH)

    async def test_find_by_id(self):
        created = await self.users.register("a@x.com", "secret1", "A")
        self.assertEqual((await self.users.find_by_id(created.id)).email, "a@x.com")
        with self.assertRaises(NotFound):
            await self.users.find_by_id(str(ObjectId()))
        with self.assertRaises(NotFound):
            await self.users.find_by_id("not-an-id")


if __name__ == "__main__":
    unittest.main()
