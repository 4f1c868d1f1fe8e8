import argparse
import asyncio
import importlib
import json
import logging
import sys
from pathlib import Path
from typing import Any

from .app import BridgeApp
from .commands import clear_app_data_dir, clear_dbs
from .config import BridgeSettings
from .drain import DEFAULT_POLLING_INTERVAL
from .errors import BridgeError, ConfigError
from .network import NetworkName
from .orchestrator import Outcome


def load_object(reference: str) -> Any:
    """Imports `module:attr`."""
    module_name, _, attr = reference.partition(":")
    if not module_name or not attr:
        raise ConfigError(f"Expected 'module:attr', got {reference!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigError(f"Cannot import {module_name!r}: {e}") from e
    try:
        return getattr(module, attr)
    except AttributeError as e:
        raise ConfigError(f"{module_name!r} has no attribute {attr!r}") from e


def load_engine(reference: str) -> Any:
    engine = load_object(reference)
    # Accept either an engine or a zero-argument factory (class included) for one.
    if isinstance(engine, type) or (callable(engine) and not hasattr(engine, "build_and_run")):
        engine = engine()
    if not hasattr(engine, "build_and_run"):
        raise ConfigError(f"{reference!r} is not an engine")
    return engine


async def missing_bootstrap(network, ledger_dir: Path, chain_dir: Path):
    raise ConfigError(f"{ledger_dir} does not exist and no bootstrap procedure was configured")


def _print_payload(payload):
    print(json.dumps(payload), flush=True)


async def _print_events(queue: asyncio.Queue):
    while True:
        _print_payload(await queue.get())


async def run_bridge(settings: BridgeSettings, engine, bootstrap) -> int:
    """Runs the bridge, printing every published event to stdout as a JSON line."""
    app = BridgeApp(settings, engine, bootstrap)
    # Subscribe before starting so the first drained events have somewhere to go.
    queue = app.channel.subscribe(settings.channel)
    printer = asyncio.create_task(_print_events(queue))
    try:
        await app.start()
        outcome = await app.wait()
    finally:
        await app.stop()
        printer.cancel()
        try:
            await printer
        except asyncio.CancelledError:
            pass

    # Stopping the bridge published the last drained events.
    while not queue.empty():
        _print_payload(queue.get_nowait())
    app.channel.unsubscribe(settings.channel, queue)
    return 0 if outcome is Outcome.SUCCESS else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="amaru-bridge")
    parser.add_argument("--log-level", default="INFO")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="bootstrap if needed, run the engine and stream its events")
    run.add_argument("--app-data-dir", type=Path, required=True)
    run.add_argument("--network", default=NetworkName.PREPROD.value)
    run.add_argument("--interval", type=float, default=DEFAULT_POLLING_INTERVAL)
    run.add_argument("--channel", default="amaru")
    run.add_argument("--engine", required=True, help="module:attr of the engine")
    run.add_argument("--bootstrap", help="module:attr of the bootstrap coroutine function")
    run.add_argument("--no-migrate-chain-db", action="store_true")

    for name, help_text in (
        ("clear-data", "remove the application-data directory"),
        ("clear-dbs", "remove the ledger and chain directories"),
    ):
        command = subparsers.add_parser(name, help=help_text)
        command.add_argument("--app-data-dir", type=Path, required=True)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        if args.command == "clear-data":
            clear_app_data_dir(args.app_data_dir)
            return 0
        if args.command == "clear-dbs":
            clear_dbs(args.app_data_dir)
            return 0

        settings = BridgeSettings(
            app_data_dir=args.app_data_dir,
            network=args.network,
            channel=args.channel,
            polling_interval=args.interval,
            migrate_chain_db=not args.no_migrate_chain_db,
        )
        engine = load_engine(args.engine)
        bootstrap = load_object(args.bootstrap) if args.bootstrap else missing_bootstrap
        return asyncio.run(run_bridge(settings, engine, bootstrap))
    except BridgeError as e:
        logging.error(str(e))
        return 2
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
