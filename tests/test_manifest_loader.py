"""Tests for reading packages out of app manifests."""

from pathlib import Path

import pytest

from listener_sync.config import Settings
from listener_sync.errors.exceptions import ConfigurationMissing, ManifestError
from listener_sync.manifest_loader import YamlManifestLoader
from listener_sync.reconcile.desired import extract_desired_subscriptions

APP_CONFIG = """
application:
  runtimeManifest:
    packages:
      orders:
        license: Apache-2.0
        actions:
          on-created:
            function: actions/on-created/index.js
            web: 'no'
            relations:
              listeners-for-events:
                - com.acme.order.created
                - com.acme.order.updated
          report:
            function: actions/report/index.js
extensions:
  commerce/backend-ui/1:
    runtimeManifest:
      packages:
        admin:
          sequences:
            audit-flow:
              actions: a, b
              relations:
                event-listener-for:
                  - com.acme.user.deleted
"""


@pytest.fixture
def settings() -> Settings:
    return Settings(runtime_namespace="12345-myapp-stage", runtime_apihost="https://adobeioruntime.net")


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "app.config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_loads_application_and_extension_packages(tmp_path, settings):
    manifest = YamlManifestLoader(_write(tmp_path, APP_CONFIG), settings).load()

    assert list(manifest.packages) == ["orders", "admin"]
    assert manifest.target.namespace == "12345-myapp-stage"
    assert manifest.target.apiversion == "v1"
    assert [(s.runtime_action, s.event_type) for s in extract_desired_subscriptions(manifest.packages)] == [
        ("orders/on-created", "com.acme.order.created"),
        ("orders/on-created", "com.acme.order.updated"),
        ("admin/audit-flow", "com.acme.user.deleted"),
    ]


def test_loads_plain_packages_manifest(tmp_path, settings):
    text = "packages:\n  pkg:\n    actions:\n      act:\n        relations:\n          listeners-for-events: [evt]\n"
    manifest = YamlManifestLoader(_write(tmp_path, text), settings).load()
    assert list(manifest.packages["pkg"].actions) == ["act"]


def test_missing_namespace_raises(tmp_path):
    loader = YamlManifestLoader(_write(tmp_path, APP_CONFIG), Settings(runtime_namespace=None))
    with pytest.raises(ConfigurationMissing):
        loader.load()


def test_missing_file_raises_manifest_error(tmp_path, settings):
    with pytest.raises(ManifestError):
        YamlManifestLoader(tmp_path / "absent.yaml", settings).load()


def test_invalid_yaml_raises_manifest_error(tmp_path, settings):
    with pytest.raises(ManifestError):
        YamlManifestLoader(_write(tmp_path, "packages: [unclosed"), settings).load()


def test_non_mapping_raises_manifest_error(tmp_path, settings):
    with pytest.raises(ManifestError):
        YamlManifestLoader(_write(tmp_path, "- just\n- a list\n"), settings).load()


def test_bad_relations_shape_raises_manifest_error(tmp_path, settings):
    text = "packages:\n  pkg:\n    actions:\n      act:\n        relations: not-a-map\n"
    with pytest.raises(ManifestError):
        YamlManifestLoader(_write(tmp_path, text), settings).load()
