"""listener-sync CLI: run the event listener hook for a lifecycle operation."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from listener_sync.models.enums import LifecycleOperation


async def _run(args: argparse.Namespace) -> int:
    from listener_sync.config import Settings
    from listener_sync.credentials import SettingsCredentialProvider
    from listener_sync.hooks.lifecycle import LifecycleHook
    from listener_sync.manifest_loader import YamlManifestLoader
    from listener_sync.store.config_store import JsonFileConfigStore

    settings = Settings()
    store = JsonFileConfigStore(Path(args.config or settings.config_path))
    hook = LifecycleHook(
        settings,
        store,
        YamlManifestLoader(Path(args.manifest), settings),
        SettingsCredentialProvider(settings, store),
    )

    report = await hook.run(args.operation)
    if report is not None:
        print(
            f"Event listeners: {len(report.created)} created, {len(report.deleted)} deleted, "
            f"{len(report.already_subscribed)} unchanged",
            file=sys.stderr,
        )

    if args.operation == LifecycleOperation.RUN:
        print("Listening for events, press Ctrl+C to stop and unsubscribe", file=sys.stderr)
        cleanup = await hook.wait_for_termination()
        print(f"Unsubscribed {len(cleanup.deleted)} registration(s)", file=sys.stderr)
    return 0


def main(argv: list[str] | None = None) -> None:
    from listener_sync.config import settings
    from listener_sync.errors.exceptions import ListenerSyncError
    from listener_sync.logging_config import configure_logging

    parser = argparse.ArgumentParser(
        prog="listener-sync",
        description="Sync manifest event listeners with webhook registrations",
    )
    handled = ", ".join(op.value for op in LifecycleOperation)
    parser.add_argument("operation",
                        help=f"Lifecycle operation the hook runs for ({handled}; others are ignored)")
    parser.add_argument("-m", "--manifest", default="app.config.yaml",
                        help="App manifest (default: app.config.yaml)")
    parser.add_argument("-c", "--config", help="Console config file (default: .aio)")
    parser.add_argument("--log-level", default=None, help="Log level (default: from settings)")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON log lines")

    args = parser.parse_args(argv)
    configure_logging(args.log_level or settings.log_level, json_output=args.json_logs or settings.log_json)

    try:
        code = asyncio.run(_run(args))
    except ListenerSyncError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        sys.exit(exc.exit_code)
    sys.exit(code)


if __name__ == "__main__":
    main()
