"""Declaration tree of the app manifest, as far as event listeners are concerned."""

from pydantic import BaseModel, ConfigDict, Field

# Relation keys that carry the event types a callable listens for
LISTENER_RELATIONS = ("listeners-for-events", "event-listener-for")


class CallableDeclaration(BaseModel):
    """An action or sequence entry. Everything except relations is passed through."""

    model_config = ConfigDict(extra="allow")

    relations: dict[str, list[str]] | None = None

    @property
    def listens_for(self) -> list[str]:
        """Event types from the listener relation, in declaration order."""
        if not self.relations:
            return []
        for key in LISTENER_RELATIONS:
            if self.relations.get(key):
                return list(self.relations[key])
        return []


class ManifestPackage(BaseModel):
    model_config = ConfigDict(extra="allow")

    actions: dict[str, CallableDeclaration] = Field(default_factory=dict)
    sequences: dict[str, CallableDeclaration] = Field(default_factory=dict)


class DeploymentTarget(BaseModel):
    """Namespace and API host the manifest is deployed to."""

    namespace: str
    apihost: str
    apiversion: str = "v1"

    @property
    def base_url(self) -> str:
        host = self.apihost.rstrip("/")
        if not host.startswith(("http://", "https://")):
            host = f"https://{host}"
        return host


class AppManifest(BaseModel):
    packages: dict[str, ManifestPackage] = Field(default_factory=dict)
    target: DeploymentTarget
