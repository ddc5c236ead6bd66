from listener_sync.errors.exceptions import (
    AmbiguousProviderUnresolved,
    ConfigurationMissing,
    ControlPlaneError,
    ListenerSyncError,
    ManifestError,
    NoProvidersAvailable,
    ProviderNotFound,
    ProvisioningConflict,
    RegistryUnavailable,
)

__all__ = [
    "AmbiguousProviderUnresolved",
    "ConfigurationMissing",
    "ControlPlaneError",
    "ListenerSyncError",
    "ManifestError",
    "NoProvidersAvailable",
    "ProviderNotFound",
    "ProvisioningConflict",
    "RegistryUnavailable",
]
