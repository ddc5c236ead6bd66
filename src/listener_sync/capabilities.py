"""Workspace capability provisioning."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from listener_sync.models.project import ProjectContext
from listener_sync.store.config_store import ConfigStore

logger = logging.getLogger(__name__)

IO_MANAGEMENT_CODE = "AdobeIOManagementAPISDK"
IO_MANAGEMENT_NAME = "I/O Management API"
SERVICES_KEY = "project.workspace.details.services"


class CapabilityService(ABC):
    """Console operations on the services enabled for a workspace."""

    @abstractmethod
    async def enabled_capabilities(self, project: ProjectContext) -> dict[str, str]:
        """Enabled capabilities as ``{code: name}``."""
        ...

    @abstractmethod
    async def enable_capabilities(self, project: ProjectContext, capabilities: dict[str, str]) -> None:
        """Set the workspace's capabilities to exactly *capabilities*."""
        ...


async def ensure_capability(
    service: CapabilityService,
    project: ProjectContext,
    store: ConfigStore,
    code: str = IO_MANAGEMENT_CODE,
    name: str = IO_MANAGEMENT_NAME,
) -> bool:
    """Enable *code* on the workspace unless already present.

    Returns True when the capability had to be enabled.
    """
    current = await service.enabled_capabilities(project)
    if code in current:
        logger.debug("Workspace already has %s enabled", code)
        return False

    logger.debug("%s is not available to the workspace. Adding the service...", code)
    wanted = {**current, code: name}
    await service.enable_capabilities(project, wanted)
    store.set(SERVICES_KEY, [{"name": n, "code": c} for c, n in wanted.items()], persist=True)
    return True
