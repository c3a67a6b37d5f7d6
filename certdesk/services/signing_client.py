"""
services/signing_client.py
HTTP client for the external certificate signing service.
"""
from datetime import datetime
from typing import Optional

import httpx

from certdesk.core.config import settings
from certdesk.core.errors import SigningServiceError
from certdesk.models.request_model import CertificatePayload, SigningResult
from certdesk.utils.helpers import format_signing_date, get_logger, utcnow

logger = get_logger(__name__)


def build_signing_body(
    payload: CertificatePayload,
    signer_name: str,
    template_ref: str,
    signed_on: datetime,
) -> dict:
    """JSON body expected by the signing service; field names are part of its contract."""
    return {
        "name": signer_name,
        "Nume Student": payload.full_name,
        "CNP Student": payload.national_id,
        "Anul": payload.study_year,
        "Facultatea": payload.faculty,
        "Specializarea": payload.specialization,
        "Motiv": payload.purpose_code,
        "Data": format_signing_date(signed_on),
        "templatePath": template_ref,
    }


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return f"signing service answered HTTP {response.status_code}"


class SigningClient:
    """
    Calls the signing service once per invocation. No retries: a failed or
    timed-out call raises SigningServiceError and the caller decides.
    """

    def __init__(
        self,
        url: str = settings.SIGNING_SERVICE_URL,
        timeout: float = settings.SIGNING_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._url = url
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def sign(
        self,
        payload: CertificatePayload,
        signer_name: str,
        template_ref: str,
        signed_on: Optional[datetime] = None,
    ) -> SigningResult:
        """
        Ask the signing service to generate and sign the certificate.

        Returns:
            SigningResult with the signed document URL

        Raises:
            SigningServiceError: on network failure, timeout, non-2xx answer
                or a success answer without a document URL
        """
        body = build_signing_body(payload, signer_name, template_ref, signed_on or utcnow())
        try:
            response = await self._client.post(self._url, json=body)
        except httpx.TimeoutException as exc:
            logger.error(f"Signing service timed out: {exc}")
            raise SigningServiceError("the signing service timed out") from exc
        except httpx.HTTPError as exc:
            logger.error(f"Signing service unreachable: {exc}")
            raise SigningServiceError(f"could not reach the signing service ({exc})") from exc

        if not response.is_success:
            message = _error_message(response)
            logger.error(f"Signing service error {response.status_code}: {message}")
            raise SigningServiceError(message, upstream_status=response.status_code)

        try:
            data = response.json()
        except ValueError as exc:
            raise SigningServiceError(
                "signing service returned an unreadable response",
                upstream_status=response.status_code,
            ) from exc

        if not isinstance(data, dict) or not data.get("url"):
            raise SigningServiceError(
                "signing service response has no document URL",
                upstream_status=response.status_code,
            )

        logger.info(f"Signed document generated: {data['url']}")
        return SigningResult(message=data.get("message") or "", url=data["url"])

    async def aclose(self) -> None:
        await self._client.aclose()
