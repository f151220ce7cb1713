from __future__ import annotations

import argparse
import asyncio
import getpass
import json
import logging
import sys
from collections.abc import Sequence
from typing import Any

import httpx
from pydantic import BaseModel

from .config import ConfigError, load_config
from .context import AdminContext, build_context
from .clients import VERIFICATION_RETRY_STATUS, is_eligible_for_verification_retry
from .exceptions import ApiError, MissingSecretError, SessionExpiredError
from .export import export_current_view
from .export.csv_exporter import normalize_value
from .query import RESOURCES
from .ui_errors import describe_failure


EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_NOT_LOGGED_IN = 2

LIST_COLUMNS: dict[str, list[tuple[str, str]]] = {
    "payments": [
        ("id", "ID"),
        ("cmpss_payment_id", "CMPSS ID"),
        ("merchant_payment_id", "Merchant ID"),
        ("merchant_name", "Merchant"),
        ("order_amount", "Amount"),
        ("currency_code", "Currency"),
        ("order_status", "Status"),
        ("created_at", "Created"),
    ],
    "disbursements": [
        ("id", "ID"),
        ("cmpss_disbursement_id", "CMPSS ID"),
        ("merchant_disbursement_id", "Merchant ID"),
        ("merchant_name", "Merchant"),
        ("order_amount", "Amount"),
        ("currency_code", "Currency"),
        ("order_status", "Status"),
        ("created_at", "Created"),
    ],
    "settlements": [
        ("id", "ID"),
        ("merchant_name", "Merchant"),
        ("fiat_amount", "Fiat"),
        ("currency_name", "Currency"),
        ("usdt_amount", "USDT"),
        ("status", "Status"),
        ("created_at", "Created"),
    ],
    "provider-settlements": [
        ("id", "ID"),
        ("provider_name", "Provider"),
        ("fiat_amount", "Fiat"),
        ("settlement_fee", "Fee"),
        ("currency_code", "Currency"),
        ("status", "Status"),
        ("created_at", "Created"),
    ],
}


class NotLoggedIn(Exception):
    pass


def print_table(title: str, rows: list[dict[str, Any]], columns: list[tuple[str, str]]) -> None:
    print(f"\n{title}")
    if not rows:
        print("(no results)")
        return

    widths = []
    for key, header in columns:
        max_cell = max(len(normalize_value(row.get(key))) for row in rows)
        widths.append(max(len(header), max_cell))

    print(" | ".join(header.ljust(widths[idx]) for idx, (_, header) in enumerate(columns)))
    print("-+-".join("-" * width for width in widths))
    for row in rows:
        print(" | ".join(normalize_value(row.get(key)).ljust(widths[idx]) for idx, (key, _) in enumerate(columns)))


def _dump(value: Any) -> None:
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json", by_alias=True)
    elif isinstance(value, list):
        value = [item.model_dump(mode="json") if isinstance(item, BaseModel) else item for item in value]
    print(json.dumps(value, indent=2, sort_keys=True))


def _require_login(ctx: AdminContext) -> None:
    if not ctx.session.is_authenticated():
        raise NotLoggedIn()


def _parse_filter_args(pairs: Sequence[str]) -> dict[str, str]:
    filters: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Filters must look like key=value, got {pair!r}")
        filters[key.strip()] = value
    return filters


async def cmd_login(ctx: AdminContext, args: argparse.Namespace) -> int:
    password = args.password or getpass.getpass("Password: ")
    identity = await ctx.session.login(args.username, password)
    print(f"Logged in as {identity.username} ({identity.role})")
    return EXIT_OK


async def cmd_logout(ctx: AdminContext, args: argparse.Namespace) -> int:
    ctx.session.logout()
    print("Logged out")
    return EXIT_OK


async def cmd_whoami(ctx: AdminContext, args: argparse.Namespace) -> int:
    identity = ctx.session.current_identity()
    if identity is None:
        raise NotLoggedIn()
    _dump(identity)
    return EXIT_OK


async def cmd_list(ctx: AdminContext, args: argparse.Namespace) -> int:
    _require_login(ctx)
    controller = ctx.controller(args.resource, per_page=args.per_page)
    if args.all_dates:
        controller.set_filter("start_date", None)
    for key, value in _parse_filter_args(args.filter).items():
        try:
            controller.set_filter(key, value)
        except KeyError as exc:
            known = ", ".join(controller.resource.filter_keys)
            raise ValueError(f"Unknown filter {key!r} for {args.resource}; expected one of: {known}") from exc
    if args.status:
        controller.set_filter("status", args.status)
    if args.start_date:
        controller.set_filter("start_date", args.start_date)
    if args.end_date:
        controller.set_filter("end_date", args.end_date)
    controller.set_page(args.page)

    result = await controller.refresh()
    if not ctx.session.is_authenticated():
        raise NotLoggedIn()
    if controller.error_message:
        print(controller.error_message, file=sys.stderr)
        return EXIT_FAILURE

    rows = [item.model_dump(mode="json") for item in result.items]
    if args.json:
        _dump({"items": rows, "total": result.total, "page": result.page, "total_pages": result.total_pages,
               "aggregates": controller.aggregates})
    else:
        print_table(f"{controller.resource.label.capitalize()}", rows, LIST_COLUMNS[args.resource])
        print(f"\nPage {result.page} of {result.total_pages} ({result.total} total)")
        for key, value in controller.aggregates.items():
            print(f"{key}: {normalize_value(value)}")

    if args.export:
        path = export_current_view(
            resource=args.resource,
            rows=rows,
            headers=[key for key, _ in LIST_COLUMNS[args.resource]],
            output_dir=args.export,
            filters=controller.build_params(),
        )
        print(f"Exported to {path}")
    return EXIT_OK


def _detail_client(ctx: AdminContext, resource: str) -> Any:
    return {
        "payments": ctx.payments,
        "disbursements": ctx.disbursements,
        "settlements": ctx.settlements,
        "provider-settlements": ctx.provider_settlements,
    }[resource]


async def cmd_show(ctx: AdminContext, args: argparse.Namespace) -> int:
    _require_login(ctx)
    item = await _detail_client(ctx, args.resource).get(args.id)
    _dump(item)
    return EXIT_OK


async def _retry_verification(ctx: AdminContext, args: argparse.Namespace) -> Any:
    reference = args.reference
    if args.id is not None:
        item = await ctx.disbursements.get(args.id)
        if not is_eligible_for_verification_retry(item):
            raise ValueError(
                f"Disbursement {args.id} is {item.order_status!r}; "
                f"verification retry only applies to {VERIFICATION_RETRY_STATUS!r} orders"
            )
        reference = reference or item.cmpss_disbursement_id
    if not reference:
        raise ValueError("disbursement-verify needs a CMPSS disbursement id or --id")
    return await ctx.disbursements.query_timeout_order(reference)


async def cmd_action(ctx: AdminContext, args: argparse.Namespace) -> int:
    _require_login(ctx)
    name = args.action_name
    if name == "payment-callback":
        result = await ctx.payments.trigger_callback(args.reference)
    elif name == "payment-refunded":
        result = await ctx.payments.mark_paid_order_refunded(args.reference)
    elif name == "payment-third-party-id":
        result = await ctx.payments.update_third_party_id(args.reference, args.third_party_provider_id)
    elif name == "disbursement-callback":
        result = await ctx.disbursements.trigger_callback(args.reference)
    elif name == "disbursement-verify":
        result = await _retry_verification(ctx, args)
    elif name == "disbursement-repush":
        result = await ctx.disbursements.repush_disbursement_order(args.reference)
    elif name == "settlement-approve":
        client = ctx.provider_settlements if args.provider else ctx.settlements
        result = await client.approve(
            args.id, note=args.note, usdt_amount=args.usdt_amount, tronscan_url=args.tronscan_url
        )
    elif name == "settlement-reject":
        client = ctx.provider_settlements if args.provider else ctx.settlements
        result = await client.reject(args.id, args.reason)
    elif name == "settlement-create":
        result = await ctx.settlements.create(args.merchant_method_id, args.amount, args.note)
    elif name == "merchant-methods":
        result = await ctx.settlements.merchant_methods()
    else:
        raise ValueError(f"Unknown action {name!r}")
    _dump(result)
    return EXIT_OK


ACTION_LABELS = {
    "payment-callback": "trigger callbacks",
    "payment-refunded": "mark payments refunded",
    "payment-third-party-id": "update third-party ids",
    "disbursement-callback": "trigger callbacks",
    "disbursement-verify": "retry verification",
    "disbursement-repush": "repush disbursements",
    "settlement-approve": "approve settlements",
    "settlement-reject": "reject settlements",
    "settlement-create": "create settlements",
    "merchant-methods": "view merchant methods",
}


def _failure_action(args: argparse.Namespace) -> tuple[str, str]:
    if args.command == "action":
        return ACTION_LABELS.get(args.action_name, "complete the action"), "Resource"
    if args.command in {"list", "show"}:
        resource = RESOURCES[args.resource]
        verb = "view" if args.command == "list" else "load"
        return f"{verb} {resource.label}", resource.detail_label
    if args.command == "login":
        return "log in", "Resource"
    return args.command, "Resource"


async def _run(args: argparse.Namespace, transport: httpx.AsyncBaseTransport | None) -> int:
    config = load_config(args.env_file)

    def _redirect() -> None:
        print("Session expired. Please log in again with `cmpss-admin login`.", file=sys.stderr)

    ctx = build_context(config, on_login_redirect=_redirect, transport=transport)
    async with ctx:
        try:
            return await args.func(ctx, args)
        except NotLoggedIn:
            print("Not logged in. Run `cmpss-admin login` first.", file=sys.stderr)
            return EXIT_NOT_LOGGED_IN
        except SessionExpiredError:
            return EXIT_NOT_LOGGED_IN
        except (MissingSecretError, ValueError) as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return EXIT_FAILURE
        except ApiError as exc:
            action, label = _failure_action(args)
            failure = describe_failure(exc, action=action, resource_label=label)
            if failure.category == "forbidden":
                print(f"Access denied: {failure.message}", file=sys.stderr)
            else:
                print(failure.message, file=sys.stderr)
            return EXIT_FAILURE


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cmpss-admin", description="CMPSS payment backend admin console")
    parser.add_argument("--env-file", default=None)
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    login_parser = subparsers.add_parser("login", help="Log in and store the session")
    login_parser.add_argument("--username", "-u", required=True)
    login_parser.add_argument("--password", "-p", default=None, help="Prompted for when omitted")
    login_parser.set_defaults(func=cmd_login)

    subparsers.add_parser("logout", help="Clear the stored session").set_defaults(func=cmd_logout)
    subparsers.add_parser("whoami", help="Show the logged-in admin").set_defaults(func=cmd_whoami)

    list_parser = subparsers.add_parser("list", help="List a resource page")
    list_parser.add_argument("resource", choices=sorted(RESOURCES))
    list_parser.add_argument("--status")
    list_parser.add_argument("--start-date", help="YYYY-MM-DD; payments and disbursements default to today")
    list_parser.add_argument("--end-date", help="YYYY-MM-DD")
    list_parser.add_argument("--all-dates", action="store_true", help="Drop the default start date")
    list_parser.add_argument("--filter", "-f", action="append", default=[], metavar="KEY=VALUE")
    list_parser.add_argument("--page", type=int, default=1)
    list_parser.add_argument("--per-page", type=int, default=None)
    list_parser.add_argument("--json", action="store_true", help="Print raw JSON instead of a table")
    list_parser.add_argument("--export", metavar="DIR", help="Also write the page to a CSV file in DIR")
    list_parser.set_defaults(func=cmd_list)

    show_parser = subparsers.add_parser("show", help="Show one item")
    show_parser.add_argument("resource", choices=sorted(RESOURCES))
    show_parser.add_argument("id", type=int)
    show_parser.set_defaults(func=cmd_show)

    action_parser = subparsers.add_parser("action", help="Run a mutation endpoint")
    actions = action_parser.add_subparsers(dest="action_name", required=True)
    for name in ("payment-callback", "payment-refunded", "disbursement-callback", "disbursement-repush"):
        sub = actions.add_parser(name)
        sub.add_argument("reference", help="CMPSS order id")
    verify = actions.add_parser("disbursement-verify")
    verify.add_argument("reference", nargs="?", help="CMPSS disbursement id")
    verify.add_argument("--id", type=int, help="Check that this disbursement is still processing first")
    third_party = actions.add_parser("payment-third-party-id")
    third_party.add_argument("reference", help="CMPSS payment id")
    third_party.add_argument("third_party_provider_id")

    approve = actions.add_parser("settlement-approve")
    approve.add_argument("id", type=int)
    approve.add_argument("--provider", action="store_true", help="Target a provider settlement")
    approve.add_argument("--note")
    approve.add_argument("--usdt-amount")
    approve.add_argument("--tronscan-url")

    reject = actions.add_parser("settlement-reject")
    reject.add_argument("id", type=int)
    reject.add_argument("--provider", action="store_true", help="Target a provider settlement")
    reject.add_argument("--reason", required=True)

    create = actions.add_parser("settlement-create")
    create.add_argument("--merchant-method-id", type=int, required=True)
    create.add_argument("--amount", required=True)
    create.add_argument("--note")

    actions.add_parser("merchant-methods")
    action_parser.set_defaults(func=cmd_action)
    return parser


def main(argv: Sequence[str] | None = None, *, transport: httpx.AsyncBaseTransport | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    try:
        return asyncio.run(_run(args, transport))
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_FAILURE
