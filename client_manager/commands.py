"""
Command surface for the client manager.

Commands are parsed with argparse, both from the process arguments and from
the interactive prompt:

    client [datasets...] [--count N] [--ip IP]
    kill [datasets...]
    patch [datasets...]
    freeslots [datasets...]
    overlays [datasets...]
    status
    exit

Datasets default to the node's DefaultDataset.
"""

import argparse
import asyncio
import shlex
import sys
from typing import Dict, List, Optional

from client_manager.client import Client
from client_manager.client_paths import BinPaths
from client_manager.config import ConfigManager
from client_manager.constants import DEFAULT_CLIENT_IP
from client_manager.errors import ClientManagerError
from client_manager.logger import setup_logger
from client_manager.patch_catalog import PatchCatalog, load_default_catalog
from client_manager.process_registry import ProcessRegistry

logger = setup_logger()

NO_CLIENT_FLAG = "noclient"
EXIT_COMMANDS = ("exit", "quit")


class CommandContext:
    """Long-lived state shared by every command: config, catalog and the process registry."""

    def __init__(
        self,
        config: ConfigManager,
        registry: Optional[ProcessRegistry] = None,
        catalog: Optional[PatchCatalog] = None,
    ):
        self.config = config
        self.node = config.node_settings()
        self.registry = registry if registry is not None else ProcessRegistry()
        self.bin_paths = BinPaths(self.node.bin_path)
        self.catalog = catalog if catalog is not None else self._load_catalog()
        self._clients: Dict[str, Client] = {}

    def _load_catalog(self) -> PatchCatalog:
        catalog_path = self.config.patch_catalog_path()
        if catalog_path:
            return PatchCatalog.load(catalog_path)
        return load_default_catalog()

    def client(self, dataset_name: str) -> Client:
        if dataset_name not in self._clients:
            dataset = self.config.get_dataset(dataset_name)
            self._clients[dataset_name] = Client(
                dataset, self.registry, self.bin_paths, self.catalog
            )
        return self._clients[dataset_name]

    def clients(self, dataset_names: List[str]) -> List[Client]:
        names = dataset_names or [self.node.default_dataset]
        return [self.client(name) for name in dict.fromkeys(names)]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="client-manager",
        description="Patch, configure and run game clients for datasets",
        exit_on_error=False,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    client_parser = subparsers.add_parser("client", help="Restart the clients of datasets")
    client_parser.add_argument("datasets", nargs="*")
    client_parser.add_argument("--count", type=int, default=1, help="Clients to start per dataset")
    client_parser.add_argument("--ip", default=DEFAULT_CLIENT_IP, help="Realm address to connect to")

    for name, help_text in (
        ("kill", "Stop the clients of datasets"),
        ("patch", "Apply executable patches without starting clients"),
        ("freeslots", "List unused overlay letters"),
        ("overlays", "List overlay archives in the client Data folder"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("datasets", nargs="*")

    subparsers.add_parser("status", help="Show running clients per dataset")
    return parser


async def run_command(context: CommandContext, args: argparse.Namespace):
    """Execute one parsed command. Errors propagate to the caller."""
    if args.command == "client":
        clients = context.clients(args.datasets)
        results = await asyncio.gather(
            *(client.startup(args.count, args.ip) for client in clients),
            return_exceptions=True,
        )
        failed = []
        for client, result in zip(clients, results):
            if isinstance(result, (ClientManagerError, OSError)):
                logger.error(f"Startup failed for dataset {client.dataset.name}: {result}")
                failed.append(client.dataset.name)
            elif isinstance(result, BaseException):
                raise result
        if failed:
            raise ClientManagerError(f"Startup failed for dataset(s): {', '.join(failed)}")
        return len(clients)

    if args.command == "kill":
        counts = await asyncio.gather(*(client.kill() for client in context.clients(args.datasets)))
        total = sum(counts)
        logger.info(f"Stopped {total} client(s)")
        return total

    if args.command == "patch":
        results = []
        for client in context.clients(args.datasets):
            results.append(await client.apply_patches())
        return results

    if args.command == "freeslots":
        found = {}
        for client in context.clients(args.datasets):
            found[client.dataset.name] = client.free_slots()
            logger.info(
                f"Free overlay letters for {client.dataset.name}: "
                f"{' '.join(found[client.dataset.name]) or '(none)'}"
            )
        return found

    if args.command == "overlays":
        found = {}
        for client in context.clients(args.datasets):
            found[client.dataset.name] = client.mpq_patches()
            for node in found[client.dataset.name]:
                logger.info(f"{client.dataset.name}: {node}")
        return found

    if args.command == "status":
        counts = {name: context.registry.count(name) for name in context.registry.datasets()}
        for name, count in counts.items():
            logger.info(f"{name}: {count} client(s) running")
        if not counts:
            logger.info("No clients running")
        return counts

    raise ClientManagerError(f"Unknown command: {args.command}")


async def execute(context: CommandContext, parser: argparse.ArgumentParser, argv: List[str]) -> bool:
    """
    Parse and run one command line, logging failures.

    Returns False when the command failed.
    """
    try:
        args = parser.parse_args(argv)
    except (argparse.ArgumentError, SystemExit) as e:
        # argparse exits on --help and some usage errors; keep the prompt alive
        if isinstance(e, argparse.ArgumentError):
            logger.error(f"Invalid command: {e}")
        return False

    try:
        await run_command(context, args)
        return True
    except ClientManagerError as e:
        logger.error(str(e))
    except OSError as e:
        logger.error(f"{args.command} failed: {e}", exc_info=True)
    return False


async def auto_start(context: CommandContext) -> None:
    """Start the default dataset's clients when AutoStartClient is set."""
    count = context.node.auto_start_client
    if count <= 0:
        return
    logger.info(f"Auto-starting {count} client(s) for {context.node.default_dataset}")
    try:
        await context.client(context.node.default_dataset).startup(count)
    except ClientManagerError as e:
        logger.error(f"Auto-start failed: {e}")
    except OSError as e:
        logger.error(f"Auto-start failed: {e}", exc_info=True)


async def interactive_loop(context: CommandContext, parser: argparse.ArgumentParser) -> None:
    while True:
        try:
            line = await asyncio.to_thread(input, "> ")
        except EOFError:
            break
        argv = shlex.split(line)
        if not argv:
            continue
        if argv[0] in EXIT_COMMANDS:
            break
        await execute(context, parser, argv)


async def run(argv: List[str]) -> int:
    auto = NO_CLIENT_FLAG not in argv
    argv = [arg for arg in argv if arg != NO_CLIENT_FLAG]

    context = CommandContext(ConfigManager())
    parser = build_parser()
    try:
        if auto:
            await auto_start(context)
        if argv:
            await execute(context, parser, argv)
        await interactive_loop(context, parser)
    finally:
        stopped = await context.registry.kill_all()
        if stopped:
            logger.info(f"Stopped {stopped} client(s) on exit")
    return 0


def main() -> int:
    logger.info("Client manager starting...")
    return asyncio.run(run(sys.argv[1:]))
