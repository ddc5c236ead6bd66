"""Desired subscriptions implied by the manifest's listener relations.

Pure conversion over the declaration tree, no I/O. The walk order is packages
in manifest order, then each package's actions before its sequences, then the
event types in the order they are listed.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping

from listener_sync.models.manifest import CallableDeclaration, ManifestPackage
from listener_sync.models.subscription import DesiredSubscription

logger = logging.getLogger(__name__)


def _walk_callables(
    package_name: str,
    callables: Mapping[str, CallableDeclaration],
    kind: str,
) -> Iterator[DesiredSubscription]:
    for callable_name, declaration in callables.items():
        events = declaration.listens_for
        if not events:
            continue
        logger.debug("Processing event types defined for %s %s/%s", kind, package_name, callable_name)
        for event_type in events:
            yield DesiredSubscription(
                event_type=event_type,
                package_name=package_name,
                callable_name=callable_name,
            )


class DesiredState:
    """Restartable view over the manifest's desired subscriptions.

    Every iteration walks the tree again. Duplicate
    ``(event_type, package, callable)`` triples collapse to the first occurrence.
    """

    def __init__(self, packages: Mapping[str, ManifestPackage]) -> None:
        self._packages = packages

    def __iter__(self) -> Iterator[DesiredSubscription]:
        seen: set[DesiredSubscription] = set()
        for package_name, package in self._packages.items():
            for sub in _walk_callables(package_name, package.actions, "action"):
                if sub not in seen:
                    seen.add(sub)
                    yield sub
            for sub in _walk_callables(package_name, package.sequences, "sequence"):
                if sub not in seen:
                    seen.add(sub)
                    yield sub

    def pairs(self) -> set[tuple[str, str]]:
        """``(runtime_action, event_type)`` for every desired subscription."""
        return {(sub.runtime_action, sub.event_type) for sub in self}

    def event_types(self) -> set[str]:
        return {sub.event_type for sub in self}


def extract_desired_subscriptions(packages: Mapping[str, ManifestPackage]) -> DesiredState:
    """Build the desired state for a packages section."""
    return DesiredState(packages)
