"""Project context and workspace credentials from the local console config."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from listener_sync.config import Settings
from listener_sync.errors.exceptions import ConfigurationMissing
from listener_sync.models.project import ProjectContext, WorkspaceCredentials
from listener_sync.store.config_store import ConfigStore

INCOMPLETE_CONFIG_MESSAGE = (
    "Incomplete .aio configuration, please import a valid Adobe Developer Console "
    "configuration via `aio app use` first."
)


def find_service_credential(workspace: dict[str, Any]) -> dict[str, Any] | None:
    """The workspace credential with ``integration_type == "service"``."""
    credentials = (workspace.get("details") or {}).get("credentials") or []
    for credential in credentials:
        if credential.get("integration_type") == "service":
            return credential
    return None


def load_project_context(store: ConfigStore) -> ProjectContext:
    """Read org, project, workspace and service integration ids.

    Raises:
        ConfigurationMissing: any of them is absent.
    """
    project = store.get("project")
    if not project:
        raise ConfigurationMissing(INCOMPLETE_CONFIG_MESSAGE)

    org = project.get("org") or {}
    workspace = project.get("workspace") or {}
    credential = find_service_credential(workspace)
    missing = [
        name
        for name, value in (
            ("org.id", org.get("id")),
            ("org.ims_org_id", org.get("ims_org_id")),
            ("id", project.get("id")),
            ("workspace.id", workspace.get("id")),
            ("workspace service credential", credential and credential.get("id")),
        )
        if not value
    ]
    if missing:
        raise ConfigurationMissing(INCOMPLETE_CONFIG_MESSAGE, details={"missing": missing})

    return ProjectContext(
        org_id=str(org["id"]),
        org_code=org["ims_org_id"],
        project_id=str(project["id"]),
        project_name=project.get("name"),
        workspace_id=str(workspace["id"]),
        workspace_name=workspace.get("name"),
        integration_id=str(credential["id"]),
    )


class CredentialProvider(ABC):
    @abstractmethod
    async def get_credentials(self, project: ProjectContext) -> WorkspaceCredentials:
        """Access token and client id for the project's workspace."""
        ...


class SettingsCredentialProvider(CredentialProvider):
    """Token from settings, client id from settings or the workspace credential."""

    def __init__(self, settings: Settings, store: ConfigStore) -> None:
        self._settings = settings
        self._store = store

    async def get_credentials(self, project: ProjectContext) -> WorkspaceCredentials:
        if not self._settings.access_token:
            raise ConfigurationMissing(
                "No access token available, set LISTENER_SYNC_ACCESS_TOKEN or log in first."
            )
        client_id = self._settings.api_key or self._workspace_client_id()
        if not client_id:
            raise ConfigurationMissing("The workspace service credential has no client id.")
        return WorkspaceCredentials(
            access_token=self._settings.access_token,
            client_id=client_id,
            integration_id=project.integration_id,
        )

    def _workspace_client_id(self) -> str | None:
        credential = find_service_credential(self._store.get("project.workspace") or {})
        if not credential:
            return None
        for kind in ("oauth_server_to_server", "jwt"):
            client_id = (credential.get(kind) or {}).get("client_id")
            if client_id:
                return client_id
        return credential.get("client_id")
