"""Sources of the actual registration state.

The registry listing is the default source of truth. The ledger keeps the
registrations this tool created in the local config store, for registries
that cannot enumerate registrations by owner.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from listener_sync.models.subscription import ActualRegistration, EventOfInterest
from listener_sync.registry.base import RegistryClient
from listener_sync.store.config_store import ConfigStore

logger = logging.getLogger(__name__)

LISTENERS_KEY = "project.workspace.listeners"


class ActualStateSource(ABC):
    """Where the engine reads current registrations from."""

    @abstractmethod
    async def fetch(self) -> list[ActualRegistration]:
        ...

    async def record_created(self, registration: ActualRegistration) -> None:
        """Called after the registry accepted a new registration."""

    async def record_deleted(self, registration: ActualRegistration) -> None:
        """Called after the registry deleted a registration."""

    async def record_delete_failed(self, registration: ActualRegistration) -> None:
        """Called when deleting a registration failed."""


class RemoteRegistryState(ActualStateSource):
    """Lists registrations straight from the registry on every run."""

    def __init__(self, registry: RegistryClient, org_id: str, integration_id: str) -> None:
        self._registry = registry
        self._org_id = org_id
        self._integration_id = integration_id

    async def fetch(self) -> list[ActualRegistration]:
        registrations = await self._registry.list_registrations(self._org_id, self._integration_id)
        logger.debug("Registry reports %d registration(s)", len(registrations))
        return registrations


class LedgerState(ActualStateSource):
    """Registrations recorded locally under ``project.workspace.listeners``.

    Entries are ``{event_type, registration_id, runtime_action}``. A failed
    delete drops the entry as well, since the registration is most likely
    already gone on the registry side.
    """

    def __init__(self, store: ConfigStore, key: str = LISTENERS_KEY) -> None:
        self._store = store
        self._key = key

    def _entries(self) -> list[dict]:
        return list(self._store.get(self._key) or [])

    async def fetch(self) -> list[ActualRegistration]:
        return [
            ActualRegistration(
                id=entry["registration_id"],
                events=[EventOfInterest(event_code=entry["event_type"])],
                runtime_action=entry.get("runtime_action"),
            )
            for entry in self._entries()
        ]

    async def record_created(self, registration: ActualRegistration) -> None:
        entries = self._entries()
        for event_code in sorted(registration.event_codes):
            entries.append({
                "event_type": event_code,
                "registration_id": registration.id,
                "runtime_action": registration.runtime_action,
            })
        self._store.set(self._key, entries, persist=True)

    async def record_deleted(self, registration: ActualRegistration) -> None:
        self._forget(registration)

    async def record_delete_failed(self, registration: ActualRegistration) -> None:
        logger.debug("Cleaning local records for registration with id: %s", registration.id)
        self._forget(registration)

    def _forget(self, registration: ActualRegistration) -> None:
        entries = [e for e in self._entries() if e["registration_id"] != registration.id]
        self._store.set(self._key, entries, persist=True)
