"""CLI entrypoint for erpdash."""

import argparse
import getpass
import json
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from erpdash.api.auth_api import get_profile, login, logout
from erpdash.api.lookups_api import select_options
from erpdash.config.loader import (
    get_api_settings,
    get_items_per_page,
    get_log_level,
    get_session_path,
    load_config,
)
from erpdash.config.session_store import build_session, clear_session, save_session
from erpdash.output.render import render_json, render_page_footer, render_table
from erpdash.resources.catalog import RESOURCES, get_resource_spec, list_resource_names
from erpdash.resources.paginated import PaginatedResource
from erpdash.resources.query import VALID_ORDERS, QueryState
from erpdash.resources.service import ResourceService
from erpdash.transport.client import ApiClient
from erpdash.transport.errors import ApiError
from erpdash.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


@dataclass
class CliContext:
    config: Dict[str, Any]
    client: ApiClient
    session_path: Path
    had_credentials: bool


def build_context(args: argparse.Namespace) -> CliContext:
    """Load config and stored session, and build the API client."""
    config = load_config(args.config)
    api_settings = get_api_settings(config)
    session_path = get_session_path(config)
    session = build_session(api_settings["base_url"], session_path, api_settings.get("language"))
    if getattr(args, "company_id", None) is not None:
        session.company_id = args.company_id
    client = ApiClient.from_settings(api_settings, session=session)
    return CliContext(
        config=config,
        client=client,
        session_path=session_path,
        had_credentials=session.is_authenticated,
    )


def _finish(ctx: CliContext) -> None:
    """Drop the stored session when the server expired it during the command."""
    if ctx.had_credentials and not ctx.client.session.is_authenticated:
        clear_session(ctx.session_path)
        print("Session expired. Run 'erpdash login' to sign in again.")


def _coerce(value: str) -> Any:
    lowered = value.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    if value.isdigit():
        return int(value)
    return value


def _parse_filters(values: Optional[List[str]]) -> Dict[str, Any]:
    """Parse repeated ``--filter key=value`` options."""
    filters: Dict[str, Any] = {}
    for raw in values or []:
        key, sep, value = raw.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Invalid filter '{raw}', expected key=value")
        filters[key.strip()] = _coerce(value.strip())
    return filters


def _parse_payload(text: str) -> Dict[str, Any]:
    """Parse a JSON object given inline or as ``@path/to/file.json``."""
    if text.startswith("@"):
        text = Path(text[1:]).read_text(encoding="utf-8")
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON payload: {e}") from e
    if not isinstance(payload, dict):
        raise ValueError("Payload must be a JSON object")
    return payload


def _print_record(record: Any) -> None:
    print(render_json(record))


def cmd_resources(args: argparse.Namespace) -> None:
    """List the resources this client knows about."""
    print(f"{'NAME':<18} {'PATH':<18} {'SYNC':<6} {'FILTERS'}")
    print("-" * 100)
    for name in list_resource_names():
        spec = RESOURCES[name]
        sync = "Yes" if spec.sync_path else "No"
        filters = ", ".join(spec.filters) or "-"
        print(f"{name:<18} {spec.path:<18} {sync:<6} {filters}")


def cmd_list(args: argparse.Namespace) -> None:
    """List one page of a resource."""
    spec = get_resource_spec(args.resource)
    ctx = build_context(args)
    query = QueryState(
        search=args.search or "",
        page=args.page,
        items_per_page=args.items_per_page or get_items_per_page(ctx.config),
        order=args.order,
        filters=_parse_filters(args.filter),
    )
    resource = PaginatedResource(ResourceService(ctx.client, spec), query, auto_refresh=False)
    resource.load()
    _finish(ctx)

    if resource.error:
        print(f"Error: {resource.error}")
        raise SystemExit(1)

    if args.format == "json":
        print(render_json({
            "items": resource.items,
            "page": query.page,
            "itemsPerPage": query.items_per_page,
            "total": resource.total,
            "totalPages": resource.total_pages,
        }))
        return

    if not resource.items:
        print(f"No {spec.label} found.")
        return
    print(render_table(resource.items, spec.table_columns()))
    print(render_page_footer(query.page, resource.total_pages, resource.total))


def cmd_get(args: argparse.Namespace) -> None:
    spec = get_resource_spec(args.resource)
    ctx = build_context(args)
    try:
        _print_record(ResourceService(ctx.client, spec).get(args.id))
    finally:
        _finish(ctx)


def cmd_create(args: argparse.Namespace) -> None:
    spec = get_resource_spec(args.resource)
    payload = _parse_payload(args.data)
    ctx = build_context(args)
    try:
        _print_record(ResourceService(ctx.client, spec).create(payload))
    finally:
        _finish(ctx)


def cmd_update(args: argparse.Namespace) -> None:
    spec = get_resource_spec(args.resource)
    payload = _parse_payload(args.data)
    ctx = build_context(args)
    try:
        _print_record(ResourceService(ctx.client, spec).update(args.id, payload))
    finally:
        _finish(ctx)


def cmd_delete(args: argparse.Namespace) -> None:
    spec = get_resource_spec(args.resource)
    ctx = build_context(args)
    try:
        ResourceService(ctx.client, spec).delete(args.id)
    finally:
        _finish(ctx)
    print(f"Deleted {spec.singular} {args.id}")


def cmd_sync(args: argparse.Namespace) -> None:
    """Push records from the ERP through a resource sync endpoint."""
    spec = get_resource_spec(args.resource)
    payload = _parse_payload(args.data)
    ctx = build_context(args)
    try:
        result = ResourceService(ctx.client, spec).sync(payload)
    finally:
        _finish(ctx)
    message = result.get("message") if isinstance(result, dict) else None
    print(message or f"Synced {spec.label}")


def cmd_options(args: argparse.Namespace) -> None:
    """Print select options (id, label, code) for a resource."""
    spec = get_resource_spec(args.resource)
    ctx = build_context(args)
    query = QueryState(search=args.search or "", filters=_parse_filters(args.filter))
    try:
        options = select_options(ResourceService(ctx.client, spec), query)
    finally:
        _finish(ctx)

    if args.format == "json":
        print(render_json(options))
        return
    if not options:
        print(f"No {spec.label} found.")
        return
    print(render_table([o.model_dump() for o in options], ("value", "label", "code")))


def cmd_login(args: argparse.Namespace) -> None:
    ctx = build_context(args)
    password = args.password or getpass.getpass("Password: ")
    result = login(ctx.client, args.email, password, legal_tax_id=args.legal_tax_id)
    save_session(ctx.session_path, ctx.client.session)
    name = (result.user or {}).get("username") or args.email
    print(f"Logged in as {name}")


def cmd_logout(args: argparse.Namespace) -> None:
    ctx = build_context(args)
    logout(ctx.client)
    clear_session(ctx.session_path)
    print("Logged out")


def cmd_whoami(args: argparse.Namespace) -> None:
    ctx = build_context(args)
    if not ctx.client.session.is_authenticated:
        print("Not logged in.")
        return
    try:
        _print_record(get_profile(ctx.client))
    finally:
        _finish(ctx)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="erpdash",
        description="ERP front-office client: paginated resources over the REST API",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config file (default: erpdash.config.yaml)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Logging level (default: from config, else WARNING)",
    )
    parser.add_argument(
        "--company-id",
        type=int,
        default=None,
        help="Selected company for company-scoped resources",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    resources_parser = subparsers.add_parser("resources", help="List known resources")
    resources_parser.set_defaults(func=cmd_resources)

    # list command
    list_parser = subparsers.add_parser("list", help="List one page of a resource")
    list_parser.add_argument("resource", help="Resource name (see 'erpdash resources')")
    list_parser.add_argument("--search", type=str, default="", help="Search text")
    list_parser.add_argument("--page", type=int, default=1, help="Page number (default: 1)")
    list_parser.add_argument(
        "--items-per-page",
        type=int,
        default=None,
        help="Page size (default: from config, else 10)",
    )
    list_parser.add_argument("--order", type=str, choices=VALID_ORDERS, help="Sort order")
    list_parser.add_argument(
        "--filter",
        action="append",
        metavar="KEY=VALUE",
        help="Resource filter, repeatable (e.g. --filter is_active=true)",
    )
    list_parser.add_argument(
        "--format",
        type=str,
        choices=["table", "json"],
        default="table",
        help="Output format (default: table)",
    )
    list_parser.set_defaults(func=cmd_list)

    get_parser = subparsers.add_parser("get", help="Show one record")
    get_parser.add_argument("resource")
    get_parser.add_argument("id")
    get_parser.set_defaults(func=cmd_get)

    create_parser = subparsers.add_parser("create", help="Create a record")
    create_parser.add_argument("resource")
    create_parser.add_argument("--data", required=True, help="JSON object or @file.json")
    create_parser.set_defaults(func=cmd_create)

    update_parser = subparsers.add_parser("update", help="Update a record")
    update_parser.add_argument("resource")
    update_parser.add_argument("id")
    update_parser.add_argument("--data", required=True, help="JSON object or @file.json")
    update_parser.set_defaults(func=cmd_update)

    delete_parser = subparsers.add_parser("delete", help="Delete a record")
    delete_parser.add_argument("resource")
    delete_parser.add_argument("id")
    delete_parser.set_defaults(func=cmd_delete)

    sync_parser = subparsers.add_parser("sync", help="Sync records from the ERP")
    sync_parser.add_argument("resource")
    sync_parser.add_argument("--data", required=True, help="JSON object or @file.json")
    sync_parser.set_defaults(func=cmd_sync)

    options_parser = subparsers.add_parser("options", help="Select options for a resource")
    options_parser.add_argument("resource")
    options_parser.add_argument("--search", type=str, default="", help="Search text")
    options_parser.add_argument("--filter", action="append", metavar="KEY=VALUE")
    options_parser.add_argument("--format", type=str, choices=["table", "json"], default="table")
    options_parser.set_defaults(func=cmd_options)

    # auth commands
    login_parser = subparsers.add_parser("login", help="Log in and store the session")
    login_parser.add_argument("--email", required=True)
    login_parser.add_argument("--password", help="Password (prompted when omitted)")
    login_parser.add_argument("--legal-tax-id", help="Company tax id")
    login_parser.set_defaults(func=cmd_login)

    logout_parser = subparsers.add_parser("logout", help="Forget the stored session")
    logout_parser.set_defaults(func=cmd_logout)

    whoami_parser = subparsers.add_parser("whoami", help="Show the logged-in user")
    whoami_parser.set_defaults(func=cmd_whoami)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return

    log_level = args.log_level
    if log_level is None and args.command != "resources":
        try:
            log_level = get_log_level(load_config(args.config))
        except (FileNotFoundError, ValueError, yaml.YAMLError):
            log_level = None
    configure_logging(log_level)

    try:
        args.func(args)
    except (ApiError, KeyError, ValueError, FileNotFoundError, yaml.YAMLError) as e:
        message = e.user_message(str(e)) if isinstance(e, ApiError) else str(e).strip("'\"")
        logger.error(f"Command '{args.command}' failed: {e}")
        print(f"Error: {message}", file=sys.stderr)
        raise SystemExit(1) from e
    except Exception as e:
        logger.error(f"Error running command '{args.command}': {e}", exc_info=True)
        raise


if __name__ == "__main__":
    main()
