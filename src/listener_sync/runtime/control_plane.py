"""Serverless control plane: packages and sequences in one namespace."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any
from urllib.parse import quote

import httpx

from listener_sync.errors.exceptions import ControlPlaneError, ProvisioningConflict
from listener_sync.models.manifest import DeploymentTarget

logger = logging.getLogger(__name__)


class ControlPlane(ABC):
    """Package and action primitives used by the routing provisioner.

    Names are relative to the target namespace (``pkg`` or ``pkg/action``);
    sequence components are fully qualified (``/namespace/pkg/action``).
    """

    @abstractmethod
    async def package_exists(self, name: str) -> bool:
        ...

    @abstractmethod
    async def create_or_update_package(
        self,
        name: str,
        binding: str | None = None,
        parameters: dict[str, Any] | None = None,
    ) -> None:
        """Create *name*, optionally bound to the fully qualified package *binding*."""
        ...

    @abstractmethod
    async def action_exists(self, name: str) -> bool:
        ...

    @abstractmethod
    async def create_sequence(
        self,
        name: str,
        components: list[str],
        annotations: dict[str, Any] | None = None,
        web: bool = False,
    ) -> None:
        """Create a sequence action.

        Raises:
            ProvisioningConflict: an action with this name already exists.
        """
        ...


def split_qualified_name(qualified: str) -> tuple[str, str]:
    """Split ``/namespace/package`` into ``(namespace, package)``.

    The last segment is the package name, everything before it the namespace.
    """
    parts = qualified.lstrip("/").split("/")
    name = parts.pop()
    return "/".join(parts), name


class OpenWhiskControlPlane(ControlPlane):
    """Control plane backed by the OpenWhisk REST API."""

    def __init__(
        self,
        target: DeploymentTarget,
        auth: str,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        user, _, key = auth.partition(":")
        self._auth = (user, key)
        self._base = f"{target.base_url}/api/{target.apiversion}/namespaces/{quote(target.namespace, safe='')}"
        self._timeout = timeout
        self._transport = transport

    async def package_exists(self, name: str) -> bool:
        return await self._exists(f"/packages/{quote(name, safe='')}")

    async def create_or_update_package(
        self,
        name: str,
        binding: str | None = None,
        parameters: dict[str, Any] | None = None,
    ) -> None:
        body: dict[str, Any] = {
            "parameters": [{"key": k, "value": v} for k, v in (parameters or {}).items()],
        }
        if binding is not None:
            namespace, package = split_qualified_name(binding)
            body["binding"] = {"namespace": namespace, "name": package}

        logger.debug("Creating new package %s", name)
        response = await self._send(
            "PUT", f"/packages/{quote(name, safe='')}", params={"overwrite": "true"}, json=body,
        )
        self._raise_for_status(response, f"package {name}")

    async def action_exists(self, name: str) -> bool:
        return await self._exists(f"/actions/{quote(name, safe='/')}")

    async def create_sequence(
        self,
        name: str,
        components: list[str],
        annotations: dict[str, Any] | None = None,
        web: bool = False,
    ) -> None:
        merged = dict(annotations or {})
        if web:
            merged.setdefault("web-export", True)
        body = {
            "exec": {"kind": "sequence", "components": components},
            "annotations": [{"key": k, "value": v} for k, v in merged.items()],
        }

        logger.debug("Creating sequence %s -> %s", name, components)
        response = await self._send(
            "PUT", f"/actions/{quote(name, safe='/')}", params={"overwrite": "false"}, json=body,
        )
        if response.status_code == 409:
            raise ProvisioningConflict(f"sequence {name}")
        self._raise_for_status(response, f"sequence {name}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _exists(self, path: str) -> bool:
        response = await self._send("GET", path)
        if response.status_code == 404:
            return False
        self._raise_for_status(response, path)
        return True

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                return await client.request(method, f"{self._base}{path}", auth=self._auth, **kwargs)
        except httpx.HTTPError as exc:
            raise ControlPlaneError(f"{method} {path} failed: {exc}") from exc

    @staticmethod
    def _raise_for_status(response: httpx.Response, what: str) -> None:
        if response.status_code >= 400:
            raise ControlPlaneError(
                f"Control plane request for {what} returned {response.status_code}",
                status_code=response.status_code,
                details=response.text[:500],
            )
