"""
services/lifecycle_engine.py
Lifecycle engine: the only command surface for requests and user counters.

Transitions:
    create  -> pending
    pending -> signed    (after the signing service succeeds)
    pending -> rejected
    pending -> deleted   (owner only)

Each transition touches one request and one user aggregate. The request is
changed with a version-guarded conditional write, the aggregate with atomic
``$inc`` deltas, always in that order.
"""
from typing import Dict, Optional

from certdesk.core.config import settings
from certdesk.core.errors import (
    InvalidStateError,
    InvalidTemplateError,
    NotFoundError,
    PermissionDeniedError,
)
from certdesk.db.request_store import RequestStore
from certdesk.db.settings_store import SettingsStore
from certdesk.db.template_store import TemplateStore
from certdesk.db.user_store import UserStore
from certdesk.models.request_model import (
    CertificatePayload,
    CertificateRequest,
    RequestStatus,
)
from certdesk.models.user_model import Actor
from certdesk.services.signing_client import SigningClient
from certdesk.services.validation import check_template_name, validate_payload
from certdesk.utils.helpers import (
    generate_request_id,
    get_logger,
    to_title_case,
    utcnow,
)

logger = get_logger(__name__)

# A conflicting write is retried this many times before giving up.
CONFLICT_RETRIES = 1


def require_admin(actor: Actor) -> None:
    if not actor.is_admin:
        raise PermissionDeniedError("Only administrators can do this.")


def template_ref_for(template_name: Optional[str]) -> str:
    """Storage path of a template, falling back to the default template."""
    name = check_template_name(template_name) if template_name else settings.DEFAULT_TEMPLATE
    return f"{settings.TEMPLATES_PREFIX}/{name}"


class LifecycleEngine:
    def __init__(
        self,
        requests: RequestStore,
        users: UserStore,
        templates: SettingsStore,
        signer: SigningClient,
        files: TemplateStore,
    ):
        self.requests = requests
        self.users = users
        self.templates = templates
        self.signer = signer
        self.files = files

    # ── Commands ──────────────────────────────────────────────────────────────

    async def submit(self, actor: Actor, payload: CertificatePayload) -> str:
        """
        Create a pending request for ``actor`` and count it.

        Raises:
            ValidationError: a required field is empty; nothing is written
        """
        cleaned = validate_payload(payload)
        request = CertificateRequest(
            request_id=generate_request_id(),
            requester_id=actor.user_id,
            requester_email=actor.email,
            requester_name=actor.name,
            payload=cleaned,
            status=RequestStatus.PENDING,
            created_at=utcnow(),
        )
        await self.requests.create(request)
        try:
            await self.users.apply_delta(
                actor.user_id,
                {"pending": 1},
                create_if_absent=True,
                name=to_title_case(actor.name),
                email=actor.email,
            )
        except Exception as e:
            logger.error(f"Counting request {request.request_id} failed, removing it: {e}")
            await self.requests.delete_if_unchanged(
                request.request_id,
                request.requester_id,
                RequestStatus.PENDING.value,
                request.version,
            )
            raise
        logger.info(f"Request {request.request_id} submitted by {actor.user_id}")
        return request.request_id

    async def approve_and_sign(
        self,
        actor: Actor,
        request_id: str,
        signer_name: str,
        template_ref: Optional[str] = None,
    ) -> str:
        """
        Sign a pending request through the signing service and mark it signed.

        Nothing is written unless the signing call succeeds. ``template_ref``
        defaults to the currently selected template.

        Returns:
            The signed document reference (URL)
        """
        require_admin(actor)
        request = await self._load(request_id)
        self._check_pending(request, "approve_and_sign")
        await self._require_requester(request)

        if template_ref is None:
            template_ref = template_ref_for(await self.templates.get_selected_template())

        # Blocking external call; no local state has changed yet.
        result = await self.signer.sign(request.payload, signer_name, template_ref)

        try:
            await self._transition(
                request,
                "approve_and_sign",
                {
                    "status": RequestStatus.SIGNED.value,
                    "signed_document_ref": result.url,
                    "signed_at": utcnow(),
                    "signed_by_name": signer_name,
                },
            )
        except (InvalidStateError, NotFoundError):
            logger.warning(
                f"Request {request_id} changed while signing; "
                f"discarding signed document {result.url}"
            )
            raise

        await self._apply_counts(request.requester_id, {"pending": -1, "signed": 1})
        logger.info(f"Request {request_id} signed by {signer_name} ({actor.user_id})")
        return result.url

    async def reject(self, actor: Actor, request_id: str) -> None:
        require_admin(actor)
        request = await self._load(request_id)
        self._check_pending(request, "reject")
        await self._require_requester(request)
        await self._transition(request, "reject", {"status": RequestStatus.REJECTED.value})
        await self._apply_counts(request.requester_id, {"pending": -1, "rejected": 1})
        logger.info(f"Request {request_id} rejected by {actor.user_id}")

    async def delete_own(self, actor: Actor, request_id: str) -> None:
        """Remove a still-pending request on behalf of its owner."""
        request = await self._load(request_id)
        if request.requester_id != actor.user_id:
            raise PermissionDeniedError("You can only delete your own requests.")
        self._check_pending(request, "delete_own")
        await self._require_requester(request)

        for attempt in range(CONFLICT_RETRIES + 1):
            self._check_pending(request, "delete_own")
            deleted = await self.requests.delete_if_unchanged(
                request.request_id,
                request.requester_id,
                RequestStatus.PENDING.value,
                request.version,
            )
            if deleted:
                break
            logger.warning(f"Delete of request {request_id} conflicted (attempt {attempt + 1})")
            request = await self._load(request_id)
        else:
            raise InvalidStateError("delete_own", request_id, request.status)

        await self._apply_counts(request.requester_id, {"pending": -1})
        logger.info(f"Request {request_id} deleted by its owner {actor.user_id}")

    async def ensure_profile(self, actor: Actor) -> bool:
        """Create the actor's user document on first sign-in. Returns True if it was created."""
        created = await self.users.create_if_absent(
            actor.user_id, to_title_case(actor.name), actor.email
        )
        if created:
            logger.info(f"Created profile for {actor.user_id}")
        return created

    async def select_template(self, actor: Actor, template_name: Optional[str]) -> None:
        """
        Choose the template used for signing; ``None`` reverts to the default.

        Raises:
            NotFoundError: no template with that name was uploaded
        """
        require_admin(actor)
        cleaned = check_template_name(template_name) if (template_name or "").strip() else None
        if cleaned is not None and not await self.files.exists(cleaned):
            raise NotFoundError("template", cleaned)
        await self.templates.set_selected_template(cleaned)
        logger.info(f"Signing template set to {cleaned or settings.DEFAULT_TEMPLATE} by {actor.user_id}")

    async def upload_template(self, actor: Actor, filename: str, content: bytes) -> bool:
        """
        Store a .docx template, replacing one with the same name.

        Returns:
            True if an existing template was replaced
        """
        require_admin(actor)
        name = check_template_name(filename)
        if not name.lower().endswith(settings.TEMPLATE_EXTENSION):
            raise InvalidTemplateError(
                f"Template must be a {settings.TEMPLATE_EXTENSION} file."
            )
        if not content:
            raise InvalidTemplateError("Template file is empty.")
        if len(content) > settings.MAX_TEMPLATE_BYTES:
            limit_mb = settings.MAX_TEMPLATE_BYTES // (1024 * 1024)
            raise InvalidTemplateError(f"Template is larger than {limit_mb}MB.")

        replaced = await self.files.save(name, content)
        logger.info(f"Template {'replaced' if replaced else 'uploaded'}: {name} by {actor.user_id}")
        return replaced

    async def delete_template(self, actor: Actor, template_name: str) -> None:
        """Remove an uploaded template; if it was selected, signing falls back to the default."""
        require_admin(actor)
        name = check_template_name(template_name)
        if not await self.files.delete(name):
            raise NotFoundError("template", name)
        if await self.templates.get_selected_template() == name:
            await self.templates.set_selected_template(None)
            logger.info(f"Selected template {name} deleted; reverted to {settings.DEFAULT_TEMPLATE}")
        logger.info(f"Template deleted: {name} by {actor.user_id}")

    # ── Internals ─────────────────────────────────────────────────────────────

    async def _load(self, request_id: str) -> CertificateRequest:
        request = await self.requests.get(request_id)
        if request is None:
            raise NotFoundError("request", request_id)
        return request

    async def _require_requester(self, request: CertificateRequest) -> None:
        # Counters are moved after the request write; a missing user must fail first.
        if not await self.users.exists(request.requester_id):
            raise NotFoundError("user", request.requester_id)

    @staticmethod
    def _check_pending(request: CertificateRequest, operation: str) -> None:
        if not request.is_pending:
            raise InvalidStateError(operation, request.request_id, request.status)

    async def _transition(
        self,
        request: CertificateRequest,
        operation: str,
        changes: dict,
    ) -> None:
        """Conditionally move ``request`` out of pending, re-reading once on conflict."""
        for attempt in range(CONFLICT_RETRIES + 1):
            self._check_pending(request, operation)
            updated = await self.requests.update_if_unchanged(
                request.request_id,
                RequestStatus.PENDING.value,
                request.version,
                changes,
            )
            if updated:
                return
            logger.warning(
                f"{operation} on request {request.request_id} conflicted (attempt {attempt + 1})"
            )
            request = await self._load(request.request_id)
        raise InvalidStateError(operation, request.request_id, request.status)

    async def _apply_counts(self, user_id: str, deltas: Dict[str, int]) -> None:
        if not await self.users.apply_delta(user_id, deltas):
            logger.error(f"Counters for {user_id} not updated ({deltas}): user missing")
            raise NotFoundError("user", user_id)
