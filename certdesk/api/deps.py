"""
api/deps.py
FastAPI dependencies: database handle, stores, services and the acting user.
"""
from fastapi import Depends, Header
from motor.motor_asyncio import AsyncIOMotorDatabase

from certdesk.db.request_store import RequestStore
from certdesk.db.settings_store import SettingsStore
from certdesk.db.template_store import TemplateStore
from certdesk.db.user_store import UserStore
from certdesk.models.user_model import Actor
from certdesk.services.lifecycle_engine import LifecycleEngine
from certdesk.services.query_service import QueryService
from certdesk.services.signing_client import SigningClient


def get_db() -> AsyncIOMotorDatabase:
    """Lazy import to avoid circular dependency."""
    from certdesk.main import db
    return db


def get_signing_client() -> SigningClient:
    from certdesk.main import signing_client
    return signing_client


def get_request_store(db: AsyncIOMotorDatabase = Depends(get_db)) -> RequestStore:
    return RequestStore(db)


def get_user_store(db: AsyncIOMotorDatabase = Depends(get_db)) -> UserStore:
    return UserStore(db)


def get_settings_store(db: AsyncIOMotorDatabase = Depends(get_db)) -> SettingsStore:
    return SettingsStore(db)


def get_template_store() -> TemplateStore:
    return TemplateStore()


def get_engine(
    requests: RequestStore = Depends(get_request_store),
    users: UserStore = Depends(get_user_store),
    templates: SettingsStore = Depends(get_settings_store),
    signer: SigningClient = Depends(get_signing_client),
    files: TemplateStore = Depends(get_template_store),
) -> LifecycleEngine:
    return LifecycleEngine(requests, users, templates, signer, files)


def get_query_service(
    requests: RequestStore = Depends(get_request_store),
    users: UserStore = Depends(get_user_store),
    templates: SettingsStore = Depends(get_settings_store),
    files: TemplateStore = Depends(get_template_store),
) -> QueryService:
    return QueryService(requests, users, templates, files)


async def get_actor(
    x_user_id: str = Header(...),
    x_user_email: str = Header(""),
    x_user_name: str = Header(""),
    users: UserStore = Depends(get_user_store),
) -> Actor:
    """Identity comes from the auth proxy headers; admin rights from the admins collection."""
    return Actor(
        user_id=x_user_id,
        email=x_user_email,
        name=x_user_name,
        is_admin=await users.is_admin(x_user_id),
    )
