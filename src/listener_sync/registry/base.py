"""Abstract interface to the event registration registry."""

from __future__ import annotations

from abc import ABC, abstractmethod

from listener_sync.models.subscription import ActualRegistration, Provider, RegistrationRequest


class RegistryClient(ABC):
    """Registrations and provider catalog of one organization.

    Implementations raise ``RegistryUnavailable`` on transport or API failure
    and never retry; retry policy belongs to the caller.
    """

    @abstractmethod
    async def list_registrations(self, org_id: str, integration_id: str) -> list[ActualRegistration]:
        """List every registration owned by the integration."""
        ...

    @abstractmethod
    async def create_registration(
        self,
        org_id: str,
        integration_id: str,
        request: RegistrationRequest,
    ) -> ActualRegistration:
        """Create a webhook registration and return it as stored."""
        ...

    @abstractmethod
    async def delete_registration(self, org_id: str, integration_id: str, registration_id: str) -> None:
        ...

    @abstractmethod
    async def list_providers(self, org_id: str) -> list[Provider]:
        """List the organization's providers, without their event codes."""
        ...

    @abstractmethod
    async def list_event_codes(self, provider_id: str) -> list[str]:
        """Event codes advertised by one provider."""
        ...
