"""
db/user_store.py
User Aggregate Store (``users`` collection) and admin registry (``admins`` collection).

Counters live under ``request_counts`` and are only ever changed with ``$inc``;
the document is never replaced wholesale.
"""
from typing import Dict, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from certdesk.models.user_model import UserProfile
from certdesk.utils.helpers import utcnow

COUNTER_FIELDS = ("pending", "signed", "rejected")


def _counter_path(field: str) -> str:
    if field not in COUNTER_FIELDS:
        raise ValueError(f"Unknown counter field: {field}")
    return f"request_counts.{field}"


class UserStore:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.users
        self.admins = db.admins

    async def ensure_indexes(self) -> None:
        await self.collection.create_index("user_id", unique=True)
        await self.admins.create_index("user_id", unique=True)

    async def get(self, user_id: str) -> Optional[UserProfile]:
        doc = await self.collection.find_one({"user_id": user_id}, {"_id": 0})
        return UserProfile.from_document(doc) if doc else None

    async def exists(self, user_id: str) -> bool:
        return await self.collection.count_documents({"user_id": user_id}, limit=1) > 0

    async def create_if_absent(self, user_id: str, name: str = "", email: str = "") -> bool:
        """Insert a profile with zero counters. Returns True if a new document was created."""
        result = await self.collection.update_one(
            {"user_id": user_id},
            {"$setOnInsert": _new_profile_fields(user_id, name, email)},
            upsert=True,
        )
        return result.upserted_id is not None

    async def apply_delta(
        self,
        user_id: str,
        deltas: Dict[str, int],
        create_if_absent: bool = False,
        name: str = "",
        email: str = "",
    ) -> bool:
        """
        Atomically add ``deltas`` to the user's counters.

        With ``create_if_absent`` a missing user is created with zero counters
        before the deltas apply. Returns False if the user does not exist
        and was not created.
        """
        update: dict = {"$inc": {_counter_path(field): delta for field, delta in deltas.items()}}
        if create_if_absent:
            on_insert = _new_profile_fields(user_id, name, email)
            counts = on_insert.pop("request_counts")
            for field, value in counts.items():
                if field not in deltas:
                    on_insert[_counter_path(field)] = value
            update["$setOnInsert"] = on_insert

        result = await self.collection.update_one(
            {"user_id": user_id}, update, upsert=create_if_absent
        )
        return result.matched_count == 1 or result.upserted_id is not None

    async def is_admin(self, user_id: str) -> bool:
        return await self.admins.find_one({"user_id": user_id}) is not None


def _new_profile_fields(user_id: str, name: str, email: str) -> dict:
    return {
        "user_id": user_id,
        "name": name,
        "email": email,
        "created_at": utcnow(),
        "request_counts": {field: 0 for field in COUNTER_FIELDS},
    }
