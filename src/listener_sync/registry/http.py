"""I/O Events registry client over the REST API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from listener_sync.errors.exceptions import RegistryUnavailable
from listener_sync.models.project import WorkspaceCredentials
from listener_sync.models.subscription import (
    ActualRegistration,
    EventOfInterest,
    Provider,
    RegistrationRequest,
)
from listener_sync.registry.base import RegistryClient

logger = logging.getLogger(__name__)


def _parse_registration(data: dict[str, Any]) -> ActualRegistration:
    """Map a registry payload to ``ActualRegistration``."""
    registration_id = data.get("registration_id") or data.get("id")
    if not registration_id:
        raise RegistryUnavailable("Registry returned a registration without an id", details=data)
    return ActualRegistration(
        id=str(registration_id),
        client_id=data.get("client_id"),
        webhook_url=data.get("webhook_url"),
        events=[EventOfInterest(**e) for e in data.get("events_of_interest") or []],
        runtime_action=data.get("runtime_action") or None,
    )


class IOEventsClient(RegistryClient):
    """Talks to the I/O Events API.

    Every request carries the IMS bearer token, the workspace client id as
    ``x-api-key`` and the IMS org code.
    """

    def __init__(
        self,
        base_url: str,
        access_token: str,
        api_key: str,
        org_code: str,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._headers = {
            "Authorization": f"Bearer {access_token}",
            "x-api-key": api_key,
            "x-ims-org-id": org_code,
            "Accept": "application/hal+json",
        }
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_credentials(
        cls,
        base_url: str,
        credentials: WorkspaceCredentials,
        org_code: str,
        **kwargs: Any,
    ) -> IOEventsClient:
        return cls(base_url, credentials.access_token, credentials.client_id, org_code, **kwargs)

    # ------------------------------------------------------------------
    # Registrations
    # ------------------------------------------------------------------

    async def list_registrations(self, org_id: str, integration_id: str) -> list[ActualRegistration]:
        data = await self._request("GET", self._registrations_path(org_id, integration_id))
        if isinstance(data, list):
            items = data
        else:
            items = (data or {}).get("_embedded", {}).get("registrations", [])
        return [_parse_registration(item) for item in items]

    async def create_registration(
        self,
        org_id: str,
        integration_id: str,
        request: RegistrationRequest,
    ) -> ActualRegistration:
        body = request.model_dump(mode="json", exclude_none=True)
        data = await self._request("POST", self._registrations_path(org_id, integration_id), json=body)
        registration = _parse_registration(data or {})
        logger.info(
            "Created registration %s for %s",
            registration.id,
            ", ".join(e.event_code for e in request.events_of_interest),
        )
        return registration

    async def delete_registration(self, org_id: str, integration_id: str, registration_id: str) -> None:
        path = f"{self._registrations_path(org_id, integration_id)}/{registration_id}"
        await self._request("DELETE", path, decode=False)

    # ------------------------------------------------------------------
    # Provider catalog
    # ------------------------------------------------------------------

    async def list_providers(self, org_id: str) -> list[Provider]:
        data = await self._request("GET", f"/events/{org_id}/providers")
        providers = (data or {}).get("_embedded", {}).get("providers", [])
        return [
            Provider(id=p["id"], label=p.get("label") or p["id"], instance_id=p.get("instance_id"))
            for p in providers
        ]

    async def list_event_codes(self, provider_id: str) -> list[str]:
        data = await self._request("GET", f"/events/providers/{provider_id}/eventmetadata")
        metadata = (data or {}).get("_embedded", {}).get("eventmetadata", [])
        return [m["event_code"] for m in metadata]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _registrations_path(org_id: str, integration_id: str) -> str:
        return f"/events/organizations/{org_id}/integrations/{integration_id}/registrations"

    async def _request(self, method: str, path: str, *, decode: bool = True, **kwargs: Any) -> Any:
        """Send one request; any failure becomes ``RegistryUnavailable``.

        With ``decode`` off only the status of a success response is checked.
        """
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.request(method, url, headers=self._headers, **kwargs)
        except httpx.HTTPError as exc:
            raise RegistryUnavailable(f"{method} {path} failed: {exc}") from exc

        if response.status_code >= 400:
            raise RegistryUnavailable(
                f"{method} {path} returned {response.status_code}",
                status_code=response.status_code,
                details=response.text[:500],
            )
        if not decode or response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise RegistryUnavailable(
                f"{method} {path} returned a body that is not JSON",
                status_code=response.status_code,
                details=response.text[:500],
            ) from exc
