"""Tests for the provider directory and selector."""

import pytest

from fakes import ORG_ID, FakeRegistry
from listener_sync.errors.exceptions import (
    AmbiguousProviderUnresolved,
    NoProvidersAvailable,
    ProviderNotFound,
)
from listener_sync.models.subscription import Provider
from listener_sync.providers.directory import ProviderDirectory
from listener_sync.providers.selector import ProviderSelector


def _provider(pid: str) -> Provider:
    return Provider(id=pid, label=f"Label {pid}", instance_id=f"inst_{pid}")


async def _never_called(message, choices):
    raise AssertionError("chooser must not be invoked")


# ---------------------------------------------------------------------------
# ProviderDirectory
# ---------------------------------------------------------------------------


class TestProviderDirectory:
    @pytest.mark.asyncio
    async def test_finds_providers_advertising_event(self):
        registry = FakeRegistry({"p1": ["evt1", "evt2"], "p2": ["evt2"], "p3": ["evt3"]})
        directory = ProviderDirectory(registry, ORG_ID, show_progress=False)

        found = await directory.find_providers_for_event("evt2")
        assert [p.id for p in found] == ["p1", "p2"]
        assert found[0].instance_id == "inst_p1"
        assert found[0].supported_event_codes == frozenset({"evt1", "evt2"})

    @pytest.mark.asyncio
    async def test_catalog_fetched_once_per_directory(self):
        registry = FakeRegistry({"p1": ["evt1"], "p2": ["evt2"]})
        directory = ProviderDirectory(registry, ORG_ID, show_progress=False)
        assert not directory.loaded

        await directory.find_providers_for_event("evt1")
        await directory.find_providers_for_event("evt2")
        await directory.find_providers_for_event("evt1")

        assert directory.loaded
        assert registry.count("list_providers") == 1
        assert registry.count("list_event_codes") == 2

    @pytest.mark.asyncio
    async def test_new_directory_refetches(self):
        registry = FakeRegistry({"p1": ["evt1"]})
        await ProviderDirectory(registry, ORG_ID, show_progress=False).find_providers_for_event("evt1")
        registry.providers["p2"] = ["evt9"]

        found = await ProviderDirectory(registry, ORG_ID, show_progress=False).find_providers_for_event("evt9")
        assert [p.id for p in found] == ["p2"]
        assert registry.count("list_providers") == 2

    @pytest.mark.asyncio
    async def test_unknown_event_raises_provider_not_found(self):
        directory = ProviderDirectory(FakeRegistry({"p1": ["evt1"]}), ORG_ID, show_progress=False)
        with pytest.raises(ProviderNotFound) as exc_info:
            await directory.find_providers_for_event("missing")
        assert "missing" in exc_info.value.message
        assert ORG_ID in exc_info.value.message
        assert exc_info.value.code == "PROVIDER_NOT_FOUND"


# ---------------------------------------------------------------------------
# ProviderSelector
# ---------------------------------------------------------------------------


class TestProviderSelector:
    @pytest.mark.asyncio
    async def test_single_candidate_shortcut(self):
        selector = ProviderSelector(["p9"], _never_called)
        only = _provider("p1")
        assert await selector.select_provider([only], "evt") is only

    @pytest.mark.asyncio
    async def test_empty_candidates_raise(self):
        with pytest.raises(NoProvidersAvailable):
            await ProviderSelector([], _never_called).select_provider([], "evt")

    @pytest.mark.asyncio
    async def test_preference_list_skips_chooser(self):
        candidates = [_provider("p1"), _provider("p2"), _provider("p3")]
        selector = ProviderSelector(["p3"], _never_called)
        assert (await selector.select_provider(candidates, "evt")).id == "p3"

    @pytest.mark.asyncio
    async def test_preference_list_order_wins(self):
        candidates = [_provider("p1"), _provider("p2"), _provider("p3")]
        selector = ProviderSelector(["p9", "p2", "p1"], _never_called)
        assert (await selector.select_provider(candidates, "evt")).id == "p2"

    @pytest.mark.asyncio
    async def test_chooser_used_when_no_preference_matches(self):
        seen = {}

        async def chooser(message, choices):
            seen["message"] = message
            seen["choices"] = choices
            return "p2"

        candidates = [_provider("p1"), _provider("p2")]
        selector = ProviderSelector(["p9"], chooser)
        assert (await selector.select_provider(candidates, "evt7")).id == "p2"
        assert "evt7" in seen["message"]
        assert seen["choices"] == [("Label p1", "p1"), ("Label p2", "p2")]

    @pytest.mark.asyncio
    async def test_chooser_returning_unknown_id_raises(self):
        async def chooser(message, choices):
            return "nope"

        with pytest.raises(AmbiguousProviderUnresolved):
            await ProviderSelector([], chooser).select_provider([_provider("p1"), _provider("p2")], "evt")

    @pytest.mark.asyncio
    async def test_without_chooser_ambiguity_raises(self):
        with pytest.raises(AmbiguousProviderUnresolved) as exc_info:
            await ProviderSelector([], None).select_provider([_provider("p1"), _provider("p2")], "evt")
        assert "PREFERRED_PROVIDERS" in exc_info.value.message
