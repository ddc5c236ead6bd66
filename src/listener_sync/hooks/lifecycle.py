"""Deploy / undeploy / run hook for event listener registrations.

``deploy`` reconciles registrations with the manifest, ``undeploy`` deletes
every registration, ``run`` reconciles and then deletes everything again once
the process is interrupted. Other operations are ignored.
"""

from __future__ import annotations

import asyncio
import logging
import signal
import uuid
from collections.abc import Callable

from listener_sync.capabilities import CapabilityService, ensure_capability
from listener_sync.config import Settings
from listener_sync.credentials import CredentialProvider, load_project_context
from listener_sync.errors.exceptions import ConfigurationMissing
from listener_sync.logging_config import bind_run_context, clear_run_context
from listener_sync.manifest_loader import ManifestLoader
from listener_sync.models.enums import LifecycleOperation, StateStrategy
from listener_sync.models.manifest import DeploymentTarget
from listener_sync.models.project import ProjectContext, WorkspaceCredentials
from listener_sync.providers.directory import ProviderDirectory
from listener_sync.providers.selector import Chooser, ProviderSelector, prompt_chooser
from listener_sync.reconcile.engine import ReconcileReport, ReconciliationEngine
from listener_sync.reconcile.state import ActualStateSource, LedgerState, RemoteRegistryState
from listener_sync.registry.base import RegistryClient
from listener_sync.registry.http import IOEventsClient
from listener_sync.routing.provisioner import RoutingProvisioner
from listener_sync.runtime.control_plane import ControlPlane, OpenWhiskControlPlane
from listener_sync.store.config_store import ConfigStore

logger = logging.getLogger(__name__)

RegistryFactory = Callable[[ProjectContext, WorkspaceCredentials], RegistryClient]
ControlPlaneFactory = Callable[[DeploymentTarget], ControlPlane]

TERMINATION_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class LifecycleHook:
    """Runs one reconciliation per lifecycle operation.

    Collaborators that talk to remote services are built through factories so
    they can be swapped out; the defaults use the I/O Events and OpenWhisk
    REST APIs configured in ``settings``.
    """

    def __init__(
        self,
        settings: Settings,
        store: ConfigStore,
        manifest_loader: ManifestLoader,
        credential_provider: CredentialProvider,
        *,
        registry_factory: RegistryFactory | None = None,
        control_plane_factory: ControlPlaneFactory | None = None,
        capability_service: CapabilityService | None = None,
        chooser: Chooser | None = prompt_chooser,
    ) -> None:
        self._settings = settings
        self._store = store
        self._manifest_loader = manifest_loader
        self._credential_provider = credential_provider
        self._registry_factory = registry_factory or self._default_registry
        self._control_plane_factory = control_plane_factory or self._default_control_plane
        self._capability_service = capability_service
        self._chooser = chooser
        self._engine: ReconciliationEngine | None = None
        self._terminated: asyncio.Event | None = None

    @property
    def engine(self) -> ReconciliationEngine | None:
        return self._engine

    async def run(self, operation: str) -> ReconcileReport | None:
        try:
            op = LifecycleOperation(operation)
        except ValueError:
            logger.debug("Event listener sync works only for deploy, undeploy and run. Skipping %s", operation)
            return None

        project = load_project_context(self._store)
        manifest = self._manifest_loader.load()
        bind_run_context(op, project.org_id, uuid.uuid4().hex[:12])
        try:
            credentials = await self._credential_provider.get_credentials(project)
            if self._capability_service is not None:
                await ensure_capability(self._capability_service, project, self._store)

            registry = self._registry_factory(project, credentials)
            self._engine = ReconciliationEngine(
                registry,
                self._state_source(registry, project),
                ProviderDirectory(registry, project.org_id),
                ProviderSelector(self._settings.preferred_provider_ids, self._chooser),
                RoutingProvisioner(
                    lambda: self._control_plane_factory(manifest.target),
                    manifest.target,
                    credentials.client_id,
                    project.org_code,
                    handler_template=self._settings.handler_template,
                    bound_package=self._settings.bound_package_name,
                    dispatch_package=self._settings.dispatch_package_name,
                ),
                org_id=project.org_id,
                integration_id=project.integration_id,
                client_id=credentials.client_id,
            )

            if op is LifecycleOperation.UNDEPLOY:
                return await self._engine.delete_all()

            if op is LifecycleOperation.DEPLOY:
                return await self._engine.reconcile(manifest.packages)

            # SIGINT/SIGTERM are handled for the whole pass, not only after it
            self._install_interrupt_handler()
            try:
                return await self._engine.reconcile(manifest.packages)
            except Exception:
                self._remove_interrupt_handler()
                raise
        finally:
            clear_run_context()

    async def wait_for_termination(self) -> ReconcileReport:
        """Block until SIGINT/SIGTERM, then delete every registration."""
        if self._terminated is None:
            self._install_interrupt_handler()
        await self._terminated.wait()
        return await self.cleanup()

    async def cleanup(self) -> ReconcileReport:
        """Delete every registration found or created by the last run."""
        self._remove_interrupt_handler()
        if self._engine is None:
            return ReconcileReport()
        return await self._engine.delete_all(refresh=False)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _state_source(self, registry: RegistryClient, project: ProjectContext) -> ActualStateSource:
        if self._settings.state_strategy is StateStrategy.LEDGER:
            return LedgerState(self._store)
        return RemoteRegistryState(registry, project.org_id, project.integration_id)

    def _default_registry(self, project: ProjectContext, credentials: WorkspaceCredentials) -> RegistryClient:
        return IOEventsClient.from_credentials(
            self._settings.events_api_url,
            credentials,
            project.org_code,
            timeout=self._settings.request_timeout,
        )

    def _default_control_plane(self, target: DeploymentTarget) -> ControlPlane:
        if not self._settings.runtime_auth:
            raise ConfigurationMissing("No runtime credentials configured, set LISTENER_SYNC_RUNTIME_AUTH.")
        return OpenWhiskControlPlane(target, self._settings.runtime_auth, timeout=self._settings.request_timeout)

    def _install_interrupt_handler(self) -> None:
        self._terminated = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in TERMINATION_SIGNALS:
            try:
                loop.add_signal_handler(sig, self._terminated.set)
            except (NotImplementedError, RuntimeError):
                logger.debug("Cannot install handler for %s on this platform", sig.name)

    def _remove_interrupt_handler(self) -> None:
        if self._terminated is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        for sig in TERMINATION_SIGNALS:
            try:
                loop.remove_signal_handler(sig)
            except (NotImplementedError, RuntimeError):
                pass
