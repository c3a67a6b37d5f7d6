"""
db/request_store.py
Request Store backed by the ``requests`` MongoDB collection.

Status changes go through ``update_if_unchanged`` / ``delete_if_unchanged``:
the write only lands if the document still carries the ``version`` the caller
read, and every successful update bumps that version.
"""
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from certdesk.models.request_model import CertificateRequest, RequestStatus

_NO_ID = {"_id": 0}
# createdAt descending, ties broken by id ascending
NEWEST_FIRST = [("created_at", -1), ("request_id", 1)]


class RequestStore:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.requests

    async def ensure_indexes(self) -> None:
        await self.collection.create_index("request_id", unique=True)
        await self.collection.create_index("status")
        await self.collection.create_index([("requester_id", 1), ("created_at", -1)])
        await self.collection.create_index(NEWEST_FIRST)

    async def create(self, request: CertificateRequest) -> None:
        await self.collection.insert_one(request.to_dict())

    async def get(self, request_id: str) -> Optional[CertificateRequest]:
        doc = await self.collection.find_one({"request_id": request_id}, _NO_ID)
        return CertificateRequest.from_document(doc) if doc else None

    async def update_if_unchanged(
        self,
        request_id: str,
        expected_status: str,
        expected_version: int,
        changes: dict,
    ) -> bool:
        """Apply ``changes`` only if status and version are still as read. Returns True on success."""
        result = await self.collection.update_one(
            {
                "request_id": request_id,
                "status": expected_status,
                "version": expected_version,
            },
            {"$set": changes, "$inc": {"version": 1}},
        )
        return result.modified_count == 1

    async def delete_if_unchanged(
        self,
        request_id: str,
        requester_id: str,
        expected_status: str,
        expected_version: int,
    ) -> bool:
        result = await self.collection.delete_one(
            {
                "request_id": request_id,
                "requester_id": requester_id,
                "status": expected_status,
                "version": expected_version,
            }
        )
        return result.deleted_count == 1

    async def list_by_status(self, status: str) -> List[CertificateRequest]:
        cursor = self.collection.find({"status": status}, _NO_ID).sort("request_id", 1)
        return [CertificateRequest.from_document(doc) async for doc in cursor]

    async def list_by_requester(self, requester_id: str) -> List[CertificateRequest]:
        cursor = self.collection.find({"requester_id": requester_id}, _NO_ID).sort(NEWEST_FIRST)
        return [CertificateRequest.from_document(doc) async for doc in cursor]

    async def list_recent_reviewed(self, limit: int) -> List[CertificateRequest]:
        """Most recent ``limit`` requests that are no longer pending."""
        cursor = (
            self.collection.find({"status": {"$ne": RequestStatus.PENDING.value}}, _NO_ID)
            .sort(NEWEST_FIRST)
            .limit(limit)
        )
        records = await cursor.to_list(length=limit)
        return [CertificateRequest.from_document(doc) for doc in records]
