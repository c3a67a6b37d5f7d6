"""
api/templates.py
FastAPI router for uploading, listing, deleting and choosing signing templates.
"""
from fastapi import APIRouter, Depends, File, UploadFile

from certdesk.api.deps import get_actor, get_engine, get_query_service, get_settings_store
from certdesk.db.settings_store import SettingsStore
from certdesk.models.request_model import TemplateSelection
from certdesk.models.user_model import Actor
from certdesk.services.lifecycle_engine import LifecycleEngine
from certdesk.services.query_service import QueryService

router = APIRouter(prefix="/api/templates", tags=["Templates"])


# ── Template files ─────────────────────────────────────────────────────────────

@router.get("")
async def list_templates(
    actor: Actor = Depends(get_actor),
    templates: SettingsStore = Depends(get_settings_store),
    queries: QueryService = Depends(get_query_service),
):
    """Admin only. Uploaded templates and the one currently selected."""
    return {
        "templates": [t.model_dump() for t in await queries.list_templates(actor)],
        "selected": await templates.get_selected_template(),
    }


@router.post("/upload")
async def upload_template(
    file: UploadFile = File(...),
    actor: Actor = Depends(get_actor),
    engine: LifecycleEngine = Depends(get_engine),
):
    """Upload a .docx template; a file with the same name is replaced."""
    content = await file.read()
    replaced = await engine.upload_template(actor, file.filename or "", content)
    return {
        "message": "Template replaced." if replaced else "Template uploaded successfully.",
        "template": file.filename,
        "replaced": replaced,
    }


@router.delete("/{template_name}")
async def delete_template(
    template_name: str,
    actor: Actor = Depends(get_actor),
    engine: LifecycleEngine = Depends(get_engine),
    queries: QueryService = Depends(get_query_service),
):
    await engine.delete_template(actor, template_name)
    return {"message": "Template deleted.", "template_ref": await queries.get_template_ref()}


# ── Selection ──────────────────────────────────────────────────────────────────

@router.get("/selected")
async def get_selected_template(
    actor: Actor = Depends(get_actor),
    templates: SettingsStore = Depends(get_settings_store),
    queries: QueryService = Depends(get_query_service),
):
    return {
        "template": await templates.get_selected_template(),
        "template_ref": await queries.get_template_ref(),
    }


@router.put("/selected")
async def select_template(
    selection: TemplateSelection,
    actor: Actor = Depends(get_actor),
    engine: LifecycleEngine = Depends(get_engine),
    queries: QueryService = Depends(get_query_service),
):
    """Admin only. A null template reverts to the default one."""
    await engine.select_template(actor, selection.template)
    return {"message": "Template updated.", "template_ref": await queries.get_template_ref()}
