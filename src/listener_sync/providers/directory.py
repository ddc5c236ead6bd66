"""Provider catalog cache scoped to one reconciliation run."""

from __future__ import annotations

import logging
import sys

from rich.console import Console

from listener_sync.errors.exceptions import ProviderNotFound
from listener_sync.models.subscription import Provider
from listener_sync.registry.base import RegistryClient

logger = logging.getLogger(__name__)


class ProviderDirectory:
    """Resolves event types to the providers advertising them.

    The whole catalog, including each provider's event metadata, is fetched on
    the first lookup and served from memory afterwards. A directory belongs to
    a single run; build a new one for the next run.
    """

    def __init__(self, registry: RegistryClient, org_id: str, *, show_progress: bool | None = None) -> None:
        self._registry = registry
        self._org_id = org_id
        self._providers: list[Provider] | None = None
        self._show_progress = sys.stderr.isatty() if show_progress is None else show_progress

    @property
    def loaded(self) -> bool:
        return self._providers is not None

    async def find_providers_for_event(self, event_type: str) -> list[Provider]:
        """Return every provider advertising *event_type*.

        Raises:
            ProviderNotFound: no provider in the organization has the event code.
        """
        providers = await self._load()
        result = [p for p in providers if p.supports(event_type)]
        if result:
            logger.debug("Found %d provider(s) by event code %s", len(result), event_type)
            return result
        logger.debug("Provider for event code %s is not found in org", event_type)
        raise ProviderNotFound(event_type, self._org_id)

    async def _load(self) -> list[Provider]:
        if self._providers is not None:
            return self._providers

        logger.debug("Loading provider information for org %s", self._org_id)
        console = Console(stderr=True, quiet=not self._show_progress)
        with console.status("Fetching event providers information"):
            providers = []
            for provider in await self._registry.list_providers(self._org_id):
                codes = await self._registry.list_event_codes(provider.id)
                providers.append(provider.model_copy(update={"supported_event_codes": frozenset(codes)}))

        self._providers = providers
        return providers
