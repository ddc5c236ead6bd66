"""Disambiguation between several providers of the same event type."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

import click

from listener_sync.errors.exceptions import AmbiguousProviderUnresolved, NoProvidersAvailable
from listener_sync.models.subscription import Provider

logger = logging.getLogger(__name__)

# (message, [(label, provider_id), ...]) -> chosen provider_id
Chooser = Callable[[str, list[tuple[str, str]]], Awaitable[str]]


async def prompt_chooser(message: str, choices: list[tuple[str, str]]) -> str:
    """Ask on the terminal which provider to use."""

    def _ask() -> str:
        click.echo(message, err=True)
        for index, (label, provider_id) in enumerate(choices, start=1):
            click.echo(f"  {index}) {label} ({provider_id})", err=True)
        picked = click.prompt(
            "Provider",
            type=click.IntRange(1, len(choices)),
            default=1,
            err=True,
        )
        return choices[picked - 1][1]

    # click blocks on stdin
    return await asyncio.to_thread(_ask)


class ProviderSelector:
    """Picks exactly one provider from the candidates for an event type.

    Order of precedence: a lone candidate, then the first preferred id (in
    preference order) found among the candidates, then the interactive chooser.
    """

    def __init__(self, preferred_ids: Sequence[str] = (), chooser: Chooser | None = prompt_chooser) -> None:
        self._preferred_ids = list(preferred_ids)
        self._chooser = chooser

    async def select_provider(self, candidates: Sequence[Provider], event_type: str) -> Provider:
        if len(candidates) == 0:
            raise NoProvidersAvailable(event_type)
        if len(candidates) == 1:
            logger.debug("There is a single matching event provider found for event %s", event_type)
            return candidates[0]

        for preferred_id in self._preferred_ids:
            for provider in candidates:
                if provider.id == preferred_id:
                    logger.debug("Using preferred provider %s for event %s", provider.id, event_type)
                    return provider

        if self._chooser is None:
            raise AmbiguousProviderUnresolved(
                event_type,
                f"Multiple event providers found for event type {event_type}; "
                "set PREFERRED_PROVIDERS to choose one",
            )

        logger.debug("Multiple event providers found for the event code. Initiating selection dialog...")
        message = (
            f"We found multiple event providers for event type {event_type}. "
            "Please select provider for this project"
        )
        chosen_id = await self._chooser(message, [(p.label, p.id) for p in candidates])
        for provider in candidates:
            if provider.id == chosen_id:
                return provider
        raise AmbiguousProviderUnresolved(event_type)
