from bson import ObjectId
from mongomock_motor import AsyncMongoMockClient

from app.stores.categories import CategoryStore
from app.stores.todos import TodoReferences, TodoStore


def make_db():
    return AsyncMongoMockClient()["todo_test"]


def make_stores(db):
    categories = CategoryStore(db, TodoReferences(db))
    return categories, TodoStore(db, categories)


def new_user_id() -> str:
    return str(ObjectId())
