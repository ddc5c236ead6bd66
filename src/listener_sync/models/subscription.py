"""Subscription, registration and provider models."""

from pydantic import BaseModel, ConfigDict, Field

from listener_sync.models.enums import DeliveryType


class DesiredSubscription(BaseModel):
    """One event type a declared action or sequence listens for."""

    model_config = ConfigDict(frozen=True)

    event_type: str
    package_name: str
    callable_name: str

    @property
    def runtime_action(self) -> str:
        return f"{self.package_name}/{self.callable_name}"


class EventOfInterest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    provider_id: str | None = None
    event_code: str


class ActualRegistration(BaseModel):
    """A webhook registration as reported by the registry."""

    model_config = ConfigDict(extra="ignore")

    id: str
    client_id: str | None = None
    webhook_url: str | None = None
    events: list[EventOfInterest] = Field(default_factory=list)
    runtime_action: str | None = None

    @property
    def event_codes(self) -> set[str]:
        return {e.event_code for e in self.events}

    @property
    def is_batch(self) -> bool:
        """Registrations without a runtime action predate per-action routing."""
        return not self.runtime_action

    def matches(self, runtime_action: str, event_type: str) -> bool:
        """Whether this registration already delivers *event_type* to *runtime_action*.

        Batch registrations are matched on the event type alone.
        """
        if event_type not in self.event_codes:
            return False
        return self.is_batch or self.runtime_action == runtime_action


class RegistrationRequest(BaseModel):
    """Body sent to the registry to create a webhook registration."""

    name: str
    description: str
    client_id: str
    delivery_type: DeliveryType = DeliveryType.WEBHOOK
    webhook_url: str
    events_of_interest: list[EventOfInterest]
    runtime_action: str | None = None


class Provider(BaseModel):
    """An event provider and the event codes it advertises."""

    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    instance_id: str | None = None
    supported_event_codes: frozenset[str] = frozenset()

    def supports(self, event_type: str) -> bool:
        return event_type in self.supported_event_codes
