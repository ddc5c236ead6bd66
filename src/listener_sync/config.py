"""Application configuration via environment variables."""

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings

from listener_sync.models.enums import StateStrategy


class Settings(BaseSettings):
    # I/O Events registry
    events_api_url: str = "https://api.adobe.io"
    access_token: str | None = None
    api_key: str | None = None

    # Serverless runtime
    runtime_apihost: str = "https://adobeioruntime.net"
    runtime_namespace: str | None = None
    runtime_auth: str | None = None
    runtime_api_version: str = "v1"

    # Routing topology
    handler_template: str = "/adobe/acp-event-handler-3.0.0"
    bound_package_name: str = "bound_package"
    dispatch_package_name: str = "acp"

    # Local project config written by the console tooling
    config_path: str = ".aio"

    # Where the current registrations are read from
    state_strategy: StateStrategy = StateStrategy.REMOTE

    # Comma-separated provider ids, consulted before prompting
    preferred_providers: str = Field(
        default="",
        validation_alias=AliasChoices("PREFERRED_PROVIDERS", "LISTENER_SYNC_PREFERRED_PROVIDERS"),
    )

    request_timeout: float = 30.0
    log_level: str = "info"
    log_json: bool = False

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "LISTENER_SYNC_",
        "extra": "ignore",
        "populate_by_name": True,
    }

    @property
    def preferred_provider_ids(self) -> list[str]:
        """Preferred provider ids in priority order."""
        return [p.strip() for p in self.preferred_providers.split(",") if p.strip()]


settings = Settings()
