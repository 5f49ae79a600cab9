"""
extlink command line

  extlink get [NAME]
  extlink enable NAME [--version V] [--host-version V]
  extlink disable NAME [--version V] [--host-version V]
  extlink resolve NAME [--version V] [--host-version V]
  extlink candidates NAME [--version V]
"""

import argparse
import os
import sys
from typing import List, Optional

from extlink.config import build_registry, configure_logging, load_settings
from extlink.core.errors import RegistryError
from extlink.core.registry import ExtensionModuleRegistry


def _add_version_args(parser: argparse.ArgumentParser, host: bool = True) -> None:
    parser.add_argument("--version", dest="module_version", help="Extension version or wildcard pattern")
    if host:
        parser.add_argument("--host-version", help="Host version or wildcard pattern")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="extlink", description="Extension module link registry")
    parser.add_argument("--module-path", help=f"Module search roots separated by '{os.pathsep}'")
    parser.add_argument("--host", help="Host module name")
    parser.add_argument("--env-file", help="Read settings from this .env file")

    commands = parser.add_subparsers(dest="command", required=True)

    get = commands.add_parser("get", help="List enabled extension modules")
    get.add_argument("name", nargs="?", help="Only show this extension")
    get.add_argument("--host-version", help="Host version or wildcard pattern")

    for command, help_text in (
        ("enable", "Enable an extension module"),
        ("disable", "Disable an extension module"),
        ("resolve", "Show which host and extension installations would be linked"),
    ):
        sub = commands.add_parser(command, help=help_text)
        sub.add_argument("name", help="Extension module name")
        _add_version_args(sub)

    candidates = commands.add_parser("candidates", help="List installations in resolution order")
    candidates.add_argument("name", help="Extension module name")
    _add_version_args(candidates, host=False)

    return parser


def run_command(registry: ExtensionModuleRegistry, args: argparse.Namespace) -> None:
    if args.command == "get":
        records = registry.get_extension_module(args.name, host_version=args.host_version)
        if not records:
            print("No extension modules enabled.")
        for record in sorted(records, key=lambda r: r.name.casefold()):
            print(f"{record.name}\t{record.version}\t{record.path}")

    elif args.command == "enable":
        record = registry.enable_extension_module(args.name, args.module_version, args.host_version)
        print(f"Enabled {record.name} {record.version} ({record.path})")

    elif args.command == "disable":
        record = registry.disable_extension_module(args.name, args.module_version, args.host_version)
        print(f"Disabled {record.name} {record.version}")

    elif args.command == "resolve":
        resolved = registry.resolve_extension_module(args.name, args.module_version, args.host_version)
        print(f"Host:      {resolved.host.name} {resolved.host.version} ({resolved.host.base_path})")
        print(f"Extension: {resolved.extension.name} {resolved.extension.version} ({resolved.extension.base_path})")
        print(f"Link:      {resolved.link_path}")

    elif args.command == "candidates":
        found = registry.list_candidates(args.name, args.module_version)
        if not found:
            print(f"No installations of '{args.name}' found.")
        for candidate in found:
            marker = "loaded" if candidate.is_loaded else "installed"
            print(f"{candidate.version}\t{marker}\t{candidate.base_path}")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    settings = load_settings(args.env_file)
    if args.module_path:
        settings.module_paths = [p for p in args.module_path.split(os.pathsep) if p]
    if args.host:
        settings.host_name = args.host
    configure_logging(settings.log_level)

    try:
        registry = build_registry(settings)
        run_command(registry, args)
    except (RegistryError, ValueError) as e:
        print(f"Error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
