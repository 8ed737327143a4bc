#!/usr/bin/env python3

import argparse
import json
import logging
import sys
from typing import List, Optional

import yaml

from loopvol.api.dispatcher import CommandDispatcher
from loopvol.config import VolumeConfig
from loopvol.errors import VolumeError
from loopvol.manager import VolumeManager
from loopvol.utils.logger import configure_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="loopvol",
        description="Provision named loopback-backed volumes",
    )
    parser.add_argument("--config", help="YAML or JSON configuration file")
    parser.add_argument("--log-level", help="Log level (overrides configuration)")

    subparsers = parser.add_subparsers(dest="command", required=True)

    for verb, help_text in (
        ("create", "Create a volume"),
        ("remove", "Remove a volume"),
        ("attach", "Attach a volume (no-op)"),
        ("detach", "Detach a volume (no-op)"),
    ):
        sub = subparsers.add_parser(verb, help=help_text)
        sub.add_argument("name", help="Volume name")

    subparsers.add_parser("list", help="List volumes as a JSON array")
    subparsers.add_parser("serve", help="Serve JSON commands on stdin/stdout")

    return parser


# ---------------------------------------------------------------------------

def cmd_create(manager: VolumeManager, args) -> int:
    result = manager.create(args.name)
    for ignored in result.ignored_errors:
        logger.debug(str(ignored))
    print(result.volume.device_path)
    return 0


def cmd_remove(manager: VolumeManager, args) -> int:
    manager.remove(args.name)
    return 0


def cmd_attach(manager: VolumeManager, args) -> int:
    manager.attach(args.name)
    return 0


def cmd_detach(manager: VolumeManager, args) -> int:
    manager.detach(args.name)
    return 0


def cmd_list(manager: VolumeManager, args) -> int:
    print(json.dumps([record.model_dump() for record in manager.list()]))
    return 0


def cmd_serve(manager: VolumeManager, args) -> int:
    CommandDispatcher(manager=manager).run()
    return 0


COMMANDS = {
    "create": cmd_create,
    "remove": cmd_remove,
    "attach": cmd_attach,
    "detach": cmd_detach,
    "list": cmd_list,
    "serve": cmd_serve,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point of the loopvol command."""
    args = build_parser().parse_args(argv)

    try:
        config = VolumeConfig.load(args.config)
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"loopvol: cannot load configuration: {e}", file=sys.stderr)
        return 2

    try:
        configure_logging(args.log_level or config.log_level, file_path=config.log_file)
    except ValueError as e:
        print(f"loopvol: {e}", file=sys.stderr)
        return 2

    manager = VolumeManager(config)
    try:
        return COMMANDS[args.command](manager, args)
    except VolumeError as e:
        print(f"loopvol: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
