"""String enums shared across listener-sync."""

from enum import StrEnum


class LifecycleOperation(StrEnum):
    DEPLOY = "deploy"
    UNDEPLOY = "undeploy"
    RUN = "run"


class DeliveryType(StrEnum):
    WEBHOOK = "WEBHOOK"
    WEBHOOK_BATCH = "WEBHOOK_BATCH"
    JOURNAL = "JOURNAL"


class StateStrategy(StrEnum):
    REMOTE = "remote"
    LEDGER = "ledger"
