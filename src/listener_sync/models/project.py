"""Project and workspace context read from the local console config."""

from pydantic import BaseModel, ConfigDict


class ProjectContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    org_id: str
    org_code: str
    project_id: str
    project_name: str | None = None
    workspace_id: str
    workspace_name: str | None = None
    integration_id: str


class WorkspaceCredentials(BaseModel):
    """Access token and the workspace's service integration identity."""

    model_config = ConfigDict(frozen=True)

    access_token: str
    client_id: str
    integration_id: str
