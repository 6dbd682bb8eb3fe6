#!/usr/bin/env python3
"""Command-line interface for inspecting scenario folders."""

import argparse
import logging
import sys
from pathlib import Path

import requests

from .config import load_settings
from .exceptions import HttpMockerError
from .loaders import FileLoader
from .mappers import mapper_for
from .policies import MirrorPathPolicy, is_body_file
from .providers import StaticMockProvider


def _scenario_files(root: Path, file_type: str):
    if not root.exists():
        return []
    return [
        path
        for path in sorted(root.rglob(f"*.{file_type}"))
        if path.is_file() and not is_body_file(path.name)
    ]


def _scenarios_root(args) -> Path:
    if args.scenarios:
        return Path(args.scenarios)
    return Path(load_settings().get("scenarios_path") or "./scenarios")


def _format(args) -> str:
    return args.format or load_settings().get("format", "json")


def cmd_scenarios_list(args):
    root = _scenarios_root(args)
    mapper = mapper_for(_format(args))
    files = _scenario_files(root, mapper.supported_format)
    if not files:
        print("No scenarios found.")
        return 0

    for path in files:
        try:
            count = len(mapper.decode(path.read_bytes()))
        except HttpMockerError:
            print(f"{path.relative_to(root)}: unreadable (run 'scenarios validate')")
            continue
        print(f"{path.relative_to(root)}: {count} rule{'s' if count != 1 else ''}")
    return 0


def cmd_scenarios_validate(args):
    root = _scenarios_root(args)
    mapper = mapper_for(_format(args))
    errors = []
    for path in _scenario_files(root, mapper.supported_format):
        try:
            scenario = mapper.decode(path.read_bytes())
        except HttpMockerError as e:
            errors.append((path, str(e)))
            continue
        for index, rule in enumerate(scenario.rules):
            body_file = rule.response.body_file
            if body_file and not (path.parent / body_file).is_file():
                errors.append((path, f"rule {index}: missing body file {body_file}"))

    if not errors:
        print("All scenarios passed validation.")
        return 0

    print("Validation errors detected:")
    for path, message in errors:
        print(f"- {path}: {message}")
    return 1


def cmd_scenarios_match(args):
    root = _scenarios_root(args)
    mapper = mapper_for(_format(args))
    headers = {}
    for item in args.header or []:
        name, sep, value = item.partition(":")
        if not sep:
            print(f"Invalid header {item!r}, expected NAME:VALUE")
            return 1
        headers[name.strip()] = value.strip()

    request = requests.Request(args.method.upper(), args.url, headers=headers, data=args.data).prepare()
    provider = StaticMockProvider(MirrorPathPolicy(mapper.supported_format), FileLoader(root), mapper)
    try:
        response = provider.resolve(request)
    except HttpMockerError as e:
        print(f"Error: {e}")
        return 1

    if response is None:
        print(f"No scenario matched {request.method} {request.url}")
        return 1

    print(f"HTTP {response.code} ({response.media_type})")
    for header in response.headers:
        print(f"{header.name}: {header.value}")
    if response.delay is not None:
        print(f"(delay {response.delay} ms)")
    print()
    print(response.payload().decode("utf-8", "replace"))
    return 0


def _setup_logging(debug: bool) -> None:
    if debug:
        logging.basicConfig(level=logging.DEBUG)
        return

    level_name = str(load_settings().get("log_level", "INFO")).upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        logging.warning(
            "Unknown log level '%s' in configuration. Falling back to INFO.",
            level_name,
        )
        level = logging.INFO
    logging.basicConfig(level=level)


def main(argv=None):
    """Main CLI entry point"""
    parser = argparse.ArgumentParser(
        prog="httpmocker",
        description="Inspect and check HTTP mock scenarios",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    scenarios_parser = subparsers.add_parser("scenarios", help="Manage scenario files")
    scenarios_subparsers = scenarios_parser.add_subparsers(dest="scenarios_command")

    scenarios_parent = argparse.ArgumentParser(add_help=False)
    scenarios_parent.add_argument("--scenarios", help="Scenario directory (default from settings)")
    scenarios_parent.add_argument("--format", choices=["json", "json5"], help="Scenario file format")

    list_parser = scenarios_subparsers.add_parser("list", parents=[scenarios_parent], help="List scenario files")
    list_parser.set_defaults(func=cmd_scenarios_list)

    validate_parser = scenarios_subparsers.add_parser(
        "validate", parents=[scenarios_parent], help="Validate scenario structure"
    )
    validate_parser.set_defaults(func=cmd_scenarios_validate)

    match_parser = scenarios_subparsers.add_parser(
        "match", parents=[scenarios_parent], help="Show the response a request would get"
    )
    match_parser.add_argument("method", help="HTTP method")
    match_parser.add_argument("url", help="Request URL")
    match_parser.add_argument("--header", "-H", action="append", help="Request header as NAME:VALUE")
    match_parser.add_argument("--data", "-d", help="Request body")
    match_parser.set_defaults(func=cmd_scenarios_match)

    args = parser.parse_args(argv)

    if getattr(args, "command", None) == "scenarios" and getattr(args, "scenarios_command", None) is None:
        scenarios_parser.print_help()
        return 0

    _setup_logging(args.debug)

    if hasattr(args, "func"):
        return args.func(args)
    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
