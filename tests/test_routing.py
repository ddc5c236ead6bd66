"""Tests for the routing topology provisioner."""

import pytest

from fakes import CLIENT_ID, ORG_CODE
from listener_sync.models.subscription import DesiredSubscription, Provider
from listener_sync.routing.provisioner import RouteKey, RoutingProvisioner

NS = "12345-myapp-stage"


@pytest.fixture
def provisioner(control_plane, target) -> RoutingProvisioner:
    return RoutingProvisioner(control_plane, target, CLIENT_ID, ORG_CODE)


@pytest.fixture
def provider() -> Provider:
    return Provider(id="p1", label="Commerce", instance_id="inst_1")


def _sub(event_type="com.acme.order", package="pkgA", callable_name="actionX"):
    return DesiredSubscription(event_type=event_type, package_name=package, callable_name=callable_name)


def test_route_key_sequence_name():
    key = RouteKey(ORG_CODE, "inst_1", "com.acme.order", "pkgA", "actionX")
    assert key.routing_id == "pkgAactionX"
    assert key.sequence_name() == "3rd_party_custom_events_ACME123@AdobeOrg_inst_1_com.acme.order_pkgAactionX"


@pytest.mark.asyncio
async def test_creates_shared_and_custom_infrastructure(provisioner, provider, control_plane):
    url = await provisioner.ensure_route(_sub(), provider)

    assert url == (
        f"https://adobeioruntime.net/api/v1/web/{NS}/acp/sync_event_handler?sync=true&id=pkgAactionX"
    )
    assert control_plane.packages["bound_package"] == {
        "binding": "/adobe/acp-event-handler-3.0.0",
        "parameters": {"recipient_client_id": CLIENT_ID},
    }
    assert control_plane.packages["acp"] == {"binding": None, "parameters": {}}

    sync = control_plane.actions["acp/sync_event_handler"]
    assert sync["components"] == [f"/{NS}/bound_package/handler"]
    assert sync["web"] is True
    assert sync["annotations"]["event_handler_sequence"] == "sync_event_handler"
    assert sync["annotations"]["raw-http"] is True

    custom_name = provisioner.route_key(_sub(), provider).sequence_name()
    custom = control_plane.actions[custom_name]
    assert custom["components"] == [f"/{NS}/bound_package/validate_action", f"/{NS}/pkgA/actionX"]
    assert custom["annotations"] == {"user_sequence": "true", "raw-http": "true"}
    assert custom["web"] is False


@pytest.mark.asyncio
async def test_existence_checked_before_every_create(provisioner, provider, control_plane):
    await provisioner.ensure_route(_sub(), provider)

    checks = {"create_package": "package_exists", "create_sequence": "action_exists"}
    for index, (call, name) in enumerate(control_plane.calls):
        if call in checks:
            assert control_plane.calls[index - 1] == (checks[call], name)


@pytest.mark.asyncio
async def test_shared_infrastructure_checked_once(provisioner, provider, control_plane):
    await provisioner.ensure_route(_sub(), provider)
    calls_after_first = len(control_plane.calls)

    await provisioner.ensure_route(_sub(), provider)
    assert len(control_plane.calls) == calls_after_first

    await provisioner.ensure_route(_sub(callable_name="actionY"), provider)
    new_calls = control_plane.calls[calls_after_first:]
    assert [c for c, _ in new_calls] == ["action_exists", "create_sequence"]
    assert len(provisioner.routes) == 2


@pytest.mark.asyncio
async def test_existing_infrastructure_is_not_recreated(control_plane, target, provider):
    await RoutingProvisioner(control_plane, target, CLIENT_ID, ORG_CODE).ensure_route(_sub(), provider)
    control_plane.calls.clear()

    second_run = RoutingProvisioner(control_plane, target, CLIENT_ID, ORG_CODE)
    await second_run.ensure_route(_sub(), provider)

    assert not [c for c, _ in control_plane.calls if c.startswith("create")]


@pytest.mark.asyncio
async def test_conflict_on_create_is_treated_as_existing(provisioner, provider, control_plane):
    name = provisioner.route_key(_sub(), provider).sequence_name()
    control_plane.conflict_on.add(name)

    url = await provisioner.ensure_route(_sub(), provider)
    assert url.endswith("id=pkgAactionX")
    assert name in control_plane.actions


@pytest.mark.asyncio
async def test_provider_without_instance_id_uses_provider_id(provisioner, control_plane):
    bare = Provider(id="p7", label="Custom")
    key = provisioner.route_key(_sub(), bare)
    assert key.provider_instance_id == "p7"


@pytest.mark.asyncio
async def test_control_plane_factory_called_on_first_route_only(control_plane, target, provider):
    built = []

    def factory():
        built.append(True)
        return control_plane

    provisioner = RoutingProvisioner(factory, target, CLIENT_ID, ORG_CODE)
    assert built == []

    await provisioner.ensure_route(_sub(), provider)
    await provisioner.ensure_route(_sub(event_type="com.acme.refund"), provider)

    assert built == [True]
    assert "bound_package" in control_plane.packages
