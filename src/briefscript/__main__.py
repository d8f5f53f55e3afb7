"""CLI entry point for briefscript.

Usage:
    python -m briefscript storage <directory>
    python -m briefscript consent {on,off}
    python -m briefscript pull-source aggregate <url> [-u USER -p PASSWORD]
    python -m briefscript pull-source central <url> <project_id> -u EMAIL -p PASSWORD
    python -m briefscript push-source ...   (same arguments as pull-source)
    python -m briefscript show
    python -m briefscript generate <output_dir> [--form FORM_ID]... [--export-dir DIR]
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import NoReturn

from loguru import logger

from briefscript.automation import Automation
from briefscript.composer import AutomationConfiguration
from briefscript.config import get_settings
from briefscript.exceptions import BriefscriptError, EndpointUnavailableError
from briefscript.logging import setup_logging
from briefscript.preferences import (
    APP_SCOPE,
    JsonFilePreferences,
    get_storage_directory,
    get_store_passwords_consent,
    set_storage_directory,
    set_store_passwords_consent,
)
from briefscript.sources import AggregateServer, CentralServer, Source


def main(argv: list[str] | None = None) -> NoReturn:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(json_logs=settings.json_logs, log_level=args.log_level or settings.log_level)

    try:
        args.handler(args)
    except BriefscriptError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nAborted", file=sys.stderr)
        sys.exit(130)

    sys.exit(0)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="briefscript",
        description="Generate pull/export/push automation scripts for form data",
    )
    parser.add_argument(
        "--log-level",
        help="Minimum log level (default: from BRIEFSCRIPT_LOG_LEVEL or INFO)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # storage command
    storage_parser = subparsers.add_parser(
        "storage",
        help="Set the storage directory used by every phase",
    )
    storage_parser.add_argument("directory", help="Storage directory")
    storage_parser.set_defaults(handler=cmd_storage)

    # consent command
    consent_parser = subparsers.add_parser(
        "consent",
        help="Allow or forbid saving passwords in preferences",
    )
    consent_parser.add_argument("value", choices=["on", "off"])
    consent_parser.set_defaults(handler=cmd_consent)

    # pull-source / push-source commands
    for role in ("pull", "push"):
        role_parser = subparsers.add_parser(
            f"{role}-source",
            help=f"Configure the server to {role} forms {'from' if role == 'pull' else 'to'}",
        )
        kinds = role_parser.add_subparsers(dest="kind", required=True)

        aggregate_parser = kinds.add_parser("aggregate", help="ODK Aggregate server")
        aggregate_parser.add_argument("url", help="Server URL")
        aggregate_parser.add_argument("-u", "--username", help="Username")
        aggregate_parser.add_argument("-p", "--password", help="Password")

        central_parser = kinds.add_parser("central", help="ODK Central project")
        central_parser.add_argument("url", help="Server URL")
        central_parser.add_argument("project_id", type=int, help="Project ID")
        central_parser.add_argument("-u", "--username", required=True, help="Account email")
        central_parser.add_argument("-p", "--password", required=True, help="Password")

        role_parser.set_defaults(handler=cmd_source, role=role)

    # show command
    show_parser = subparsers.add_parser(
        "show",
        help="Show configured sources and known forms",
    )
    show_parser.set_defaults(handler=cmd_show)

    # generate command
    generate_parser = subparsers.add_parser(
        "generate",
        help="Write the automation script",
    )
    generate_parser.add_argument("output_dir", help="Directory to write the script into")
    generate_parser.add_argument(
        "--form",
        dest="forms",
        action="append",
        metavar="FORM_ID",
        help="Form to include (repeatable; default: all known forms)",
    )
    generate_parser.add_argument(
        "--export-dir",
        help="Directory the export phase writes CSV files to",
    )
    generate_parser.set_defaults(handler=cmd_generate)

    return parser


def cmd_storage(args: argparse.Namespace) -> None:
    """Execute the storage command."""
    directory = Path(args.directory).expanduser().resolve()
    set_storage_directory(_app_preferences(), directory)
    print(f"Storage directory: {directory}")


def cmd_consent(args: argparse.Namespace) -> None:
    """Execute the consent command."""
    set_store_passwords_consent(_app_preferences(), args.value == "on")
    print(f"Store passwords: {args.value}")


def cmd_source(args: argparse.Namespace) -> None:
    """Execute the pull-source and push-source commands."""
    timeout = get_settings().http_timeout
    source: Source
    if args.kind == "aggregate":
        source = AggregateServer(args.url, args.username, args.password, timeout=timeout)
    else:
        source = CentralServer(
            args.url, args.project_id, args.username, args.password, timeout=timeout
        )

    automation = Automation.from_settings()
    if args.role == "pull":
        automation.set_pull_source(source)
    else:
        automation.set_push_source(source)

    print(f"{args.role.capitalize()} source: {source}")
    print(f"Forms available: {len(automation.forms)}")


def cmd_show(args: argparse.Namespace) -> None:  # noqa: ARG001
    """Execute the show command."""
    automation = _restored_automation()
    app_preferences = _app_preferences()

    print(f"Storage directory: {get_storage_directory(app_preferences) or '(not set)'}")
    print(f"Store passwords: {'on' if get_store_passwords_consent(app_preferences) else 'off'}")
    print(f"Pull source: {automation.pull_source or '(not set)'}")
    print(f"Push source: {automation.push_source or '(not set)'}")
    print("Forms:")
    for form in automation.forms:
        print(f"  {form.form_id}\t{form.name}")


def cmd_generate(args: argparse.Namespace) -> None:
    """Execute the generate command."""
    automation = _restored_automation()
    automation.update_forms()

    if args.forms:
        for form_id in args.forms:
            if form_id not in automation.forms:
                raise BriefscriptError(f"Unknown form: {form_id}")
            automation.forms.select(form_id)
    else:
        automation.forms.select_all()

    configuration = AutomationConfiguration(Path(args.output_dir).expanduser())
    path = automation.generate(configuration, export_directory=args.export_dir)
    print(f"Automation script written to {path}")


def _app_preferences() -> JsonFilePreferences:
    return JsonFilePreferences(get_settings().preferences_path, APP_SCOPE)


def _restored_automation() -> Automation:
    """Restore saved sources, tolerating servers that cannot be reached."""
    automation = Automation.from_settings()
    try:
        automation.restore()
    except EndpointUnavailableError as e:
        logger.warning("Using saved sources without refreshing their forms: {}", e)
    return automation


if __name__ == "__main__":
    main()
