"""Shared test fixtures."""

import pytest

from fakes import CLIENT_ID, INTEGRATION_ID, ORG_CODE, ORG_ID, FakeControlPlane, FakeRegistry
from listener_sync.models.manifest import DeploymentTarget
from listener_sync.providers.directory import ProviderDirectory
from listener_sync.providers.selector import ProviderSelector
from listener_sync.reconcile.engine import ReconciliationEngine
from listener_sync.reconcile.state import RemoteRegistryState
from listener_sync.routing.provisioner import RoutingProvisioner


@pytest.fixture
def target() -> DeploymentTarget:
    return DeploymentTarget(namespace="12345-myapp-stage", apihost="https://adobeioruntime.net")


@pytest.fixture
def control_plane() -> FakeControlPlane:
    return FakeControlPlane()


@pytest.fixture
def build_engine(target, control_plane):
    """Factory for an engine wired to fakes."""

    def _build(registry: FakeRegistry, *, state=None, preferred=None, chooser=None) -> ReconciliationEngine:
        return ReconciliationEngine(
            registry,
            state or RemoteRegistryState(registry, ORG_ID, INTEGRATION_ID),
            ProviderDirectory(registry, ORG_ID, show_progress=False),
            ProviderSelector(preferred or [], chooser),
            RoutingProvisioner(control_plane, target, CLIENT_ID, ORG_CODE),
            org_id=ORG_ID,
            integration_id=INTEGRATION_ID,
            client_id=CLIENT_ID,
        )

    return _build
