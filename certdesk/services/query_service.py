"""
services/query_service.py
Read-only views over requests and user counters used by the listing screens.
"""
from typing import Dict, Iterable, List, Union

from certdesk.core.config import settings
from certdesk.core.errors import NotFoundError, PermissionDeniedError
from certdesk.db.request_store import RequestStore
from certdesk.db.settings_store import SettingsStore
from certdesk.db.template_store import TemplateStore
from certdesk.db.user_store import UserStore
from certdesk.models.request_model import (
    STATUS_ALL,
    CertificateRequest,
    RequestStatus,
    TemplateFile,
)
from certdesk.models.user_model import Actor, RequestCounts
from certdesk.services.lifecycle_engine import require_admin, template_ref_for
from certdesk.utils.helpers import get_logger

logger = get_logger(__name__)


def filter_by_status(
    requests: Iterable[CertificateRequest],
    status: Union[RequestStatus, str],
) -> List[CertificateRequest]:
    """Keep requests with ``status``; ``"all"`` keeps everything."""
    if status == STATUS_ALL:
        return list(requests)
    wanted = RequestStatus(status).value
    return [r for r in requests if r.status == wanted]


def sort_newest_first(requests: Iterable[CertificateRequest]) -> List[CertificateRequest]:
    """createdAt descending, ties broken by id ascending."""
    by_id = sorted(requests, key=lambda r: r.request_id)
    return sorted(by_id, key=lambda r: r.created_at, reverse=True)


def count_by_status(requests: Iterable[CertificateRequest]) -> Dict[str, int]:
    """Tallies for the history tabs: all, pending, signed, rejected."""
    counts = {STATUS_ALL: 0, **{s.value: 0 for s in RequestStatus}}
    for request in requests:
        counts[STATUS_ALL] += 1
        counts[request.status] += 1
    return counts


class QueryService:
    def __init__(
        self,
        requests: RequestStore,
        users: UserStore,
        templates: SettingsStore,
        files: TemplateStore,
    ):
        self.requests = requests
        self.users = users
        self.templates = templates
        self.files = files

    async def list_pending(self, actor: Actor) -> List[CertificateRequest]:
        """Admin review queue."""
        require_admin(actor)
        return await self.requests.list_by_status(RequestStatus.PENDING.value)

    async def list_for_user(self, actor: Actor, user_id: str) -> List[CertificateRequest]:
        if actor.user_id != user_id and not actor.is_admin:
            raise PermissionDeniedError("You can only view your own requests.")
        return sort_newest_first(await self.requests.list_by_requester(user_id))

    async def list_recent_reviewed(
        self, actor: Actor, limit: int = settings.RECENT_REVIEWED_LIMIT
    ) -> List[CertificateRequest]:
        """Audit view: the latest ``limit`` signed or rejected requests of all users."""
        require_admin(actor)
        if limit <= 0:
            return []
        return await self.requests.list_recent_reviewed(limit)

    async def get_request(self, actor: Actor, request_id: str) -> CertificateRequest:
        request = await self.requests.get(request_id)
        if request is None:
            raise NotFoundError("request", request_id)
        if request.requester_id != actor.user_id and not actor.is_admin:
            raise PermissionDeniedError("You can only view your own requests.")
        return request

    async def get_counts(self, user_id: str) -> RequestCounts:
        profile = await self.users.get(user_id)
        return profile.request_counts if profile else RequestCounts()

    async def get_template_ref(self) -> str:
        return template_ref_for(await self.templates.get_selected_template())

    async def list_templates(self, actor: Actor) -> List[TemplateFile]:
        """Uploaded templates, by name."""
        require_admin(actor)
        return await self.files.list_templates()

    async def recount_for_user(self, user_id: str) -> RequestCounts:
        """Counters recomputed by scanning the user's requests."""
        tallies = count_by_status(await self.requests.list_by_requester(user_id))
        return RequestCounts(
            pending=tallies[RequestStatus.PENDING.value],
            signed=tallies[RequestStatus.SIGNED.value],
            rejected=tallies[RequestStatus.REJECTED.value],
        )

    async def check_consistency(self, user_id: str) -> bool:
        """True if the stored counters match the user's requests."""
        stored = await self.get_counts(user_id)
        actual = await self.recount_for_user(user_id)
        if stored != actual:
            logger.warning(f"Counter drift for {user_id}: stored={stored} actual={actual}")
            return False
        return True
