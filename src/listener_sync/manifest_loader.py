"""Loads the app manifest's packages section and deployment target."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from listener_sync.config import Settings
from listener_sync.errors.exceptions import ConfigurationMissing, ManifestError
from listener_sync.models.manifest import AppManifest, DeploymentTarget, ManifestPackage


class ManifestLoader(ABC):
    @abstractmethod
    def load(self) -> AppManifest:
        ...


def _collect_packages(raw: dict[str, Any]) -> dict[str, Any]:
    """Find the packages sections of an ``app.config.yaml`` or plain manifest.

    Packages of the application and of every extension are merged in file order.
    """
    sections: list[dict[str, Any]] = []
    application = raw.get("application") or {}
    if application.get("runtimeManifest"):
        sections.append(application["runtimeManifest"])
    for extension in (raw.get("extensions") or {}).values():
        if (extension or {}).get("runtimeManifest"):
            sections.append(extension["runtimeManifest"])
    if raw.get("runtimeManifest"):
        sections.append(raw["runtimeManifest"])
    if not sections:
        sections.append(raw)

    packages: dict[str, Any] = {}
    for section in sections:
        packages.update(section.get("packages") or {})
    return packages


class YamlManifestLoader(ManifestLoader):
    """Reads a YAML manifest; the deployment target comes from settings."""

    def __init__(self, path: Path, settings: Settings) -> None:
        self._path = path
        self._settings = settings

    def load(self) -> AppManifest:
        if not self._settings.runtime_namespace:
            raise ConfigurationMissing(
                "No runtime namespace configured, set LISTENER_SYNC_RUNTIME_NAMESPACE."
            )
        try:
            raw = yaml.safe_load(self._path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise ManifestError(f"Cannot read manifest {self._path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise ManifestError(f"Manifest {self._path} must be a mapping")

        try:
            packages = {
                name: ManifestPackage.model_validate(pkg or {})
                for name, pkg in _collect_packages(raw).items()
            }
        except ValidationError as exc:
            raise ManifestError(f"Invalid packages section in {self._path}", details=exc.errors()) from exc

        return AppManifest(
            packages=packages,
            target=DeploymentTarget(
                namespace=self._settings.runtime_namespace,
                apihost=self._settings.runtime_apihost,
                apiversion=self._settings.runtime_api_version,
            ),
        )
