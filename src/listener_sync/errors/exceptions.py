"""Custom exception classes for listener-sync."""


class ListenerSyncError(Exception):
    """Base exception for listener-sync."""

    def __init__(self, code: str, message: str, details=None, exit_code: int = 1):
        self.code = code
        self.message = message
        self.details = details
        self.exit_code = exit_code
        super().__init__(message)


class ConfigurationMissing(ListenerSyncError):
    """Required project or workspace context is absent."""

    def __init__(self, message: str, details=None):
        super().__init__("CONFIGURATION_MISSING", message, details, exit_code=2)


class ManifestError(ListenerSyncError):
    """The app manifest could not be read or has an unexpected shape."""

    def __init__(self, message: str, details=None):
        super().__init__("MANIFEST_ERROR", message, details, exit_code=2)


class ProviderNotFound(ListenerSyncError):
    """No provider in the organization advertises the event type."""

    def __init__(self, event_type: str, org_id: str):
        super().__init__(
            "PROVIDER_NOT_FOUND",
            f"Event provider with event code {event_type} doesn't exist in your organization {org_id}",
            details={"event_type": event_type, "org_id": org_id},
        )


class NoProvidersAvailable(ListenerSyncError):
    """Provider selection was asked to choose from an empty candidate list."""

    def __init__(self, event_type: str):
        super().__init__(
            "NO_PROVIDERS_AVAILABLE",
            "Event providers list is empty. You need to specify at least one provider to select from.",
            details={"event_type": event_type},
        )


class AmbiguousProviderUnresolved(ListenerSyncError):
    """Selection policy did not settle on exactly one provider."""

    def __init__(self, event_type: str, message: str | None = None):
        super().__init__(
            "AMBIGUOUS_PROVIDER",
            message or f"Could not resolve a single event provider for event type {event_type}",
            details={"event_type": event_type},
        )


class RegistryUnavailable(ListenerSyncError):
    """Transport or API failure from the event registration registry."""

    def __init__(self, message: str, status_code: int | None = None, details=None):
        self.status_code = status_code
        super().__init__("REGISTRY_UNAVAILABLE", message, details)


class ControlPlaneError(ListenerSyncError):
    """Serverless control plane rejected a request."""

    def __init__(self, message: str, status_code: int | None = None, details=None):
        self.status_code = status_code
        super().__init__("CONTROL_PLANE_ERROR", message, details)


class ProvisioningConflict(ListenerSyncError):
    """A create raced with another process that created the same entity."""

    def __init__(self, entity: str):
        self.entity = entity
        super().__init__("PROVISIONING_CONFLICT", f"{entity} was created concurrently")
