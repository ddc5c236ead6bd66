"""Reconciliation of declared event listeners against registry state."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field

from listener_sync.errors.exceptions import RegistryUnavailable
from listener_sync.models.enums import DeliveryType
from listener_sync.models.manifest import ManifestPackage
from listener_sync.models.subscription import (
    ActualRegistration,
    DesiredSubscription,
    EventOfInterest,
    RegistrationRequest,
)
from listener_sync.providers.directory import ProviderDirectory
from listener_sync.providers.selector import ProviderSelector
from listener_sync.reconcile.desired import extract_desired_subscriptions
from listener_sync.reconcile.state import ActualStateSource
from listener_sync.registry.base import RegistryClient
from listener_sync.routing.provisioner import RoutingProvisioner

logger = logging.getLogger(__name__)

REGISTRATION_NAME_PREFIX = "extension auto registration"


@dataclass
class ReconcileReport:
    """What one pass changed."""

    created: list[ActualRegistration] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    failed_deletions: list[str] = field(default_factory=list)
    already_subscribed: list[DesiredSubscription] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.created or self.deleted)


class ReconciliationEngine:
    """Creates missing registrations and deletes obsolete ones in one pass.

    Additions run before deletions. Provider resolution and create failures
    propagate and end the run. A failed delete is logged and the pass moves
    on to the next registration. Nothing is retried.
    """

    def __init__(
        self,
        registry: RegistryClient,
        state: ActualStateSource,
        directory: ProviderDirectory,
        selector: ProviderSelector,
        provisioner: RoutingProvisioner,
        *,
        org_id: str,
        integration_id: str,
        client_id: str,
    ) -> None:
        self._registry = registry
        self._state = state
        self._directory = directory
        self._selector = selector
        self._provisioner = provisioner
        self._org_id = org_id
        self._integration_id = integration_id
        self._client_id = client_id
        self._actual: list[ActualRegistration] | None = None

    @property
    def registrations(self) -> list[ActualRegistration]:
        """Registrations found or created so far and not deleted."""
        return list(self._actual or [])

    async def reconcile(self, packages: Mapping[str, ManifestPackage]) -> ReconcileReport:
        report = ReconcileReport()
        self._actual = await self._state.fetch()
        desired = extract_desired_subscriptions(packages)

        for subscription in desired:
            if self._is_subscribed(subscription):
                logger.debug(
                    "This app is already subscribed to event %s for %s",
                    subscription.event_type,
                    subscription.runtime_action,
                )
                report.already_subscribed.append(subscription)
                continue
            registration = await self._subscribe(subscription)
            self._actual.append(registration)
            report.created.append(registration)

        logger.debug("Processing deleted subscriptions...")
        pairs = desired.pairs()
        event_types = desired.event_types()
        for registration in list(self._actual):
            if self._is_declared(registration, pairs, event_types):
                continue
            await self._delete(registration, report)

        logger.info(
            "Reconciled event listeners: %d created, %d deleted, %d delete failure(s)",
            len(report.created),
            len(report.deleted),
            len(report.failed_deletions),
        )
        return report

    async def delete_all(self, *, refresh: bool = True) -> ReconcileReport:
        """Delete every registration, ignoring the manifest.

        With ``refresh`` the current state is fetched first, otherwise the
        registrations seen by this engine so far are deleted.
        """
        report = ReconcileReport()
        if refresh or self._actual is None:
            self._actual = await self._state.fetch()
        logger.debug("Unsubscribing from all events")
        for registration in list(self._actual):
            await self._delete(registration, report)
        return report

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _is_subscribed(self, subscription: DesiredSubscription) -> bool:
        return any(
            reg.matches(subscription.runtime_action, subscription.event_type)
            for reg in self._actual or []
        )

    @staticmethod
    def _is_declared(
        registration: ActualRegistration,
        pairs: set[tuple[str, str]],
        event_types: set[str],
    ) -> bool:
        if registration.is_batch:
            return bool(registration.event_codes & event_types)
        return any((registration.runtime_action, code) in pairs for code in registration.event_codes)

    async def _subscribe(self, subscription: DesiredSubscription) -> ActualRegistration:
        candidates = await self._directory.find_providers_for_event(subscription.event_type)
        provider = await self._selector.select_provider(candidates, subscription.event_type)
        webhook_url = await self._provisioner.ensure_route(subscription, provider)

        name = f"{REGISTRATION_NAME_PREFIX} {uuid.uuid4()}"
        request = RegistrationRequest(
            name=name,
            description=name,
            client_id=self._client_id,
            delivery_type=DeliveryType.WEBHOOK,
            webhook_url=webhook_url,
            events_of_interest=[EventOfInterest(provider_id=provider.id, event_code=subscription.event_type)],
            runtime_action=subscription.runtime_action,
        )
        created = await self._registry.create_registration(self._org_id, self._integration_id, request)

        # The create response does not always echo what was registered
        registration = created.model_copy(update={
            "client_id": created.client_id or request.client_id,
            "webhook_url": created.webhook_url or request.webhook_url,
            "events": created.events or request.events_of_interest,
            "runtime_action": created.runtime_action or request.runtime_action,
        })
        await self._state.record_created(registration)
        logger.info(
            "Subscribed %s to %s via provider %s",
            subscription.runtime_action,
            subscription.event_type,
            provider.id,
        )
        return registration

    async def _delete(self, registration: ActualRegistration, report: ReconcileReport) -> None:
        logger.debug("Deleting registration with id: %s", registration.id)
        try:
            await self._registry.delete_registration(self._org_id, self._integration_id, registration.id)
        except RegistryUnavailable as exc:
            logger.debug("Error deleting registration with id %s: %s", registration.id, exc)
            report.failed_deletions.append(registration.id)
            await self._state.record_delete_failed(registration)
            return

        if self._actual is not None and registration in self._actual:
            self._actual.remove(registration)
        await self._state.record_deleted(registration)
        report.deleted.append(registration.id)
        logger.info("Deleted registration with id: %s", registration.id)
