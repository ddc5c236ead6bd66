"""Routing topology that lets a public webhook reach a private action.

The shared part is a package bound to the event handler template, a dispatch
package and a web-exposed sync handler sequence inside it. Per listening
callable there is one custom sequence chaining the template's validation step
to the callable. The sync handler finds the custom sequence through the
routing id in the webhook URL.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

from listener_sync.errors.exceptions import ProvisioningConflict
from listener_sync.models.manifest import DeploymentTarget
from listener_sync.models.subscription import DesiredSubscription, Provider
from listener_sync.runtime.control_plane import ControlPlane

logger = logging.getLogger(__name__)

SYNC_HANDLER_NAME = "sync_event_handler"
CUSTOM_HANDLER_PREFIX = "3rd_party_custom_events"


@dataclass(frozen=True)
class RouteKey:
    """Identity of one custom handler sequence."""

    org_code: str
    provider_instance_id: str
    event_type: str
    package_name: str
    callable_name: str

    @property
    def routing_id(self) -> str:
        # Matched by the handler template, keep the format stable
        return f"{self.package_name}{self.callable_name}"

    def sequence_name(self) -> str:
        return "_".join([
            CUSTOM_HANDLER_PREFIX,
            self.org_code,
            self.provider_instance_id,
            self.event_type,
            self.routing_id,
        ])


class RoutingProvisioner:
    """Idempotently provisions routing infrastructure in the target namespace.

    Every create is preceded by an existence check. Shared infrastructure is
    checked once per provisioner, custom sequences once per ``RouteKey``.
    ``control_plane`` may be a factory; it is then called on the first route
    that needs provisioning, so runs that never route do not need runtime
    credentials.
    """

    def __init__(
        self,
        control_plane: ControlPlane | Callable[[], ControlPlane],
        target: DeploymentTarget,
        client_id: str,
        org_code: str,
        *,
        handler_template: str = "/adobe/acp-event-handler-3.0.0",
        bound_package: str = "bound_package",
        dispatch_package: str = "acp",
    ) -> None:
        self._control_plane: ControlPlane | None = None
        self._control_plane_factory: Callable[[], ControlPlane] | None = None
        if isinstance(control_plane, ControlPlane):
            self._control_plane = control_plane
        else:
            self._control_plane_factory = control_plane
        self._target = target
        self._client_id = client_id
        self._org_code = org_code
        self._handler_template = handler_template
        self._bound_package = bound_package
        self._dispatch_package = dispatch_package
        self._shared_ready = False
        self._routes: set[RouteKey] = set()

    @property
    def control_plane(self) -> ControlPlane:
        if self._control_plane is None:
            self._control_plane = self._control_plane_factory()
        return self._control_plane

    @property
    def routes(self) -> frozenset[RouteKey]:
        """Custom handler sequences ensured so far."""
        return frozenset(self._routes)

    def route_key(self, subscription: DesiredSubscription, provider: Provider) -> RouteKey:
        return RouteKey(
            org_code=self._org_code,
            provider_instance_id=provider.instance_id or provider.id,
            event_type=subscription.event_type,
            package_name=subscription.package_name,
            callable_name=subscription.callable_name,
        )

    async def ensure_route(self, subscription: DesiredSubscription, provider: Provider) -> str:
        """Make sure *subscription* can be delivered and return its webhook URL."""
        await self._ensure_shared()

        key = self.route_key(subscription, provider)
        if key not in self._routes:
            await self._ensure_sequence(
                key.sequence_name(),
                [
                    self._qualified(self._bound_package, "validate_action"),
                    self._qualified(subscription.package_name, subscription.callable_name),
                ],
                {"user_sequence": "true", "raw-http": "true"},
            )
            self._routes.add(key)

        return self.webhook_url(key)

    def webhook_url(self, key: RouteKey) -> str:
        query = urlencode({"sync": "true", "id": key.routing_id})
        return (
            f"{self._target.base_url}/api/{self._target.apiversion}/web/"
            f"{self._target.namespace}/{self._dispatch_package}/{SYNC_HANDLER_NAME}?{query}"
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _ensure_shared(self) -> None:
        if self._shared_ready:
            return
        await self._ensure_package(
            self._bound_package,
            binding=self._handler_template,
            parameters={"recipient_client_id": self._client_id},
        )
        await self._ensure_package(self._dispatch_package)
        await self._ensure_sequence(
            f"{self._dispatch_package}/{SYNC_HANDLER_NAME}",
            [self._qualified(self._bound_package, "handler")],
            {
                "final": "false",
                "event_handler_sequence": SYNC_HANDLER_NAME,
                "web-export": True,
                "raw-http": True,
            },
            web=True,
        )
        self._shared_ready = True

    async def _ensure_package(
        self,
        name: str,
        binding: str | None = None,
        parameters: dict[str, Any] | None = None,
    ) -> None:
        if await self.control_plane.package_exists(name):
            logger.debug("Package %s already exists. Skipping...", name)
            return
        await self.control_plane.create_or_update_package(name, binding=binding, parameters=parameters)
        logger.info("Created package %s", name)

    async def _ensure_sequence(
        self,
        name: str,
        components: list[str],
        annotations: dict[str, Any],
        web: bool = False,
    ) -> None:
        if await self.control_plane.action_exists(name):
            logger.debug("Sequence %s already exists. Skipping...", name)
            return
        try:
            await self.control_plane.create_sequence(name, components, annotations, web=web)
        except ProvisioningConflict:
            logger.warning("Sequence %s was created by another process, reusing it", name)
            return
        logger.info("Created sequence %s", name)

    def _qualified(self, package: str, action: str) -> str:
        return f"/{self._target.namespace}/{package}/{action}"
