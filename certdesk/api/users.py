"""
api/users.py
FastAPI router for the calling user's profile and request counters.
"""
from fastapi import APIRouter, Depends

from certdesk.api.deps import get_actor, get_engine, get_query_service
from certdesk.models.user_model import Actor
from certdesk.services.lifecycle_engine import LifecycleEngine
from certdesk.services.query_service import QueryService

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.post("/me")
async def ensure_my_profile(
    actor: Actor = Depends(get_actor),
    engine: LifecycleEngine = Depends(get_engine),
):
    """Called after sign-in; creates the user document the first time."""
    created = await engine.ensure_profile(actor)
    return {"user_id": actor.user_id, "created": created, "is_admin": actor.is_admin}


@router.get("/me/counts")
async def my_counts(
    actor: Actor = Depends(get_actor),
    queries: QueryService = Depends(get_query_service),
):
    counts = await queries.get_counts(actor.user_id)
    return counts.model_dump()
