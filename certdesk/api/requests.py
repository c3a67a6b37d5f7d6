"""
api/requests.py
FastAPI router for certificate request commands and listings.
"""
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query, status

from certdesk.api.deps import get_actor, get_engine, get_query_service
from certdesk.core.config import settings
from certdesk.models.request_model import (
    CertificatePayload,
    CertificateRequest,
    SignRequestBody,
)
from certdesk.models.user_model import Actor
from certdesk.services.lifecycle_engine import LifecycleEngine, template_ref_for
from certdesk.services.query_service import (
    QueryService,
    count_by_status,
    filter_by_status,
)
from certdesk.utils.helpers import to_title_case

router = APIRouter(prefix="/api/requests", tags=["Requests"])

StatusFilter = Literal["all", "pending", "signed", "rejected"]


def _listing(requests: List[CertificateRequest], status_filter: str) -> dict:
    """Filtered records plus per-status counts of the unfiltered set."""
    return {
        "requests": [r.model_dump() for r in filter_by_status(requests, status_filter)],
        "counts": count_by_status(requests),
    }


# ── Submit ─────────────────────────────────────────────────────────────────────

@router.post("", status_code=status.HTTP_201_CREATED)
async def submit_request(
    payload: CertificatePayload,
    actor: Actor = Depends(get_actor),
    engine: LifecycleEngine = Depends(get_engine),
):
    """Submit a new certificate request for the calling user."""
    request_id = await engine.submit(actor, payload)
    return {"request_id": request_id, "status": "pending"}


# ── Listings ───────────────────────────────────────────────────────────────────

@router.get("/pending")
async def list_pending(
    status_filter: StatusFilter = Query("all", alias="status"),
    actor: Actor = Depends(get_actor),
    queries: QueryService = Depends(get_query_service),
):
    """Admin review queue."""
    return _listing(await queries.list_pending(actor), status_filter)


@router.get("/mine")
async def list_mine(
    status_filter: StatusFilter = Query("all", alias="status"),
    actor: Actor = Depends(get_actor),
    queries: QueryService = Depends(get_query_service),
):
    return _listing(await queries.list_for_user(actor, actor.user_id), status_filter)


@router.get("/user/{user_id}")
async def list_for_user(
    user_id: str,
    status_filter: StatusFilter = Query("all", alias="status"),
    actor: Actor = Depends(get_actor),
    queries: QueryService = Depends(get_query_service),
):
    return _listing(await queries.list_for_user(actor, user_id), status_filter)


@router.get("/reviewed")
async def list_recent_reviewed(
    limit: int = Query(settings.RECENT_REVIEWED_LIMIT, ge=1, le=500),
    status_filter: StatusFilter = Query("all", alias="status"),
    actor: Actor = Depends(get_actor),
    queries: QueryService = Depends(get_query_service),
):
    """Last ``limit`` signed or rejected requests across all users."""
    return _listing(await queries.list_recent_reviewed(actor, limit), status_filter)


@router.get("/{request_id}")
async def get_request(
    request_id: str,
    actor: Actor = Depends(get_actor),
    queries: QueryService = Depends(get_query_service),
):
    request = await queries.get_request(actor, request_id)
    return request.model_dump()


# ── Review ─────────────────────────────────────────────────────────────────────

@router.post("/{request_id}/sign")
async def sign_request(
    request_id: str,
    body: Optional[SignRequestBody] = None,
    actor: Actor = Depends(get_actor),
    engine: LifecycleEngine = Depends(get_engine),
):
    """Sign a pending request with the selected (or given) template."""
    signer_name = to_title_case(actor.name or "Admin")
    template = template_ref_for(body.template) if body and body.template else None
    url = await engine.approve_and_sign(actor, request_id, signer_name, template)
    return {
        "message": "Certificate signed successfully.",
        "request_id": request_id,
        "signed_document_ref": url,
    }


@router.post("/{request_id}/reject")
async def reject_request(
    request_id: str,
    actor: Actor = Depends(get_actor),
    engine: LifecycleEngine = Depends(get_engine),
):
    await engine.reject(actor, request_id)
    return {"message": "Request rejected.", "request_id": request_id}


@router.delete("/{request_id}")
async def delete_request(
    request_id: str,
    actor: Actor = Depends(get_actor),
    engine: LifecycleEngine = Depends(get_engine),
):
    """Owner deletes a request that has not been reviewed yet."""
    await engine.delete_own(actor, request_id)
    return {"message": "Request deleted.", "request_id": request_id}
