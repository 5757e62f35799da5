"""Command-line front end for vendor-remit.

Usage:
    vendor-remit search 農會
    vendor-remit batch add 農會 --id V001
    vendor-remit batch payable V001 12000
    vendor-remit batch fee V001 15
    vendor-remit batch reason V001 cash
    vendor-remit batch show
    vendor-remit generate
    vendor-remit --fresh batch show     # discard the stored batch first
"""

import argparse
import asyncio
import sys
from collections.abc import Sequence

import structlog

from vendor_remit.clients import AppsScriptClient, init_vendor_parser
from vendor_remit.config import configure_logging, get_settings
from vendor_remit.desk import RemittanceDesk
from vendor_remit.models import FeeReason, TransferItem, Vendor
from vendor_remit.session_store import SessionStore
from vendor_remit.vendor_form import SHEET_OPTIONS, VendorForm

logger = structlog.get_logger(__name__)

FEE_REASON_CHOICES = {
    "unset": FeeReason.UNSET,
    "cash": FeeReason.CASH,
    "waived": FeeReason.WAIVED,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vendor-remit",
        description="Search vendors, stage a transfer batch and generate the remittance sheet",
    )
    parser.add_argument(
        "--fresh",
        action="store_true",
        help="Discard the stored transfer batch and start with an empty one",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Override LOG_LEVEL",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    search = commands.add_parser("search", help="Search the vendor directory")
    search.add_argument("term")

    banks = commands.add_parser("banks", help="Look up bank names and codes")
    banks.add_argument("term")

    parse = commands.add_parser("parse", help="Extract vendor fields from free text")
    parse.add_argument("text")

    add_vendor = commands.add_parser("add-vendor", help="Create a vendor in the directory")
    add_vendor.add_argument("--paste", default="", help="Free text to prefill the fields from")
    add_vendor.add_argument("--name", default="")
    add_vendor.add_argument("--bank", default="")
    add_vendor.add_argument("--bank-code", default="")
    add_vendor.add_argument("--account", default="")
    add_vendor.add_argument("--sheet", choices=SHEET_OPTIONS, default=SHEET_OPTIONS[0])
    add_vendor.add_argument("--tax-id", default="")
    add_vendor.add_argument("--address", default="")
    add_vendor.add_argument("--remarks", default="")

    batch = commands.add_parser("batch", help="Inspect or edit the transfer batch")
    batch_commands = batch.add_subparsers(dest="batch_command", required=True)
    batch_commands.add_parser("show", help="List the batch and its totals")
    batch_add = batch_commands.add_parser("add", help="Search and add a vendor to the batch")
    batch_add.add_argument("term")
    batch_add.add_argument("--id", dest="vendor_id", default=None)
    batch_remove = batch_commands.add_parser("remove", help="Remove a vendor from the batch")
    batch_remove.add_argument("vendor_id")
    payable = batch_commands.add_parser("payable", help="Set the amount payable")
    payable.add_argument("vendor_id")
    payable.add_argument("value")
    fee = batch_commands.add_parser("fee", help="Set the manual transfer fee")
    fee.add_argument("vendor_id")
    fee.add_argument("value")
    reason = batch_commands.add_parser("reason", help="Set why no fee is deducted")
    reason.add_argument("vendor_id")
    reason.add_argument("reason", choices=list(FEE_REASON_CHOICES))

    commands.add_parser("generate", help="Generate and download the remittance sheet")
    commands.add_parser("sheet", help="Print the backing spreadsheet URL")
    return parser


def _format_vendor(vendor: Vendor) -> str:
    sheet = f" [{vendor.sheet_name}]" if vendor.sheet_name else ""
    return f"{vendor.id}\t{vendor.name}{sheet}\t{vendor.bank} ({vendor.bank_code})\t{vendor.account_number}"


def _format_item(item: TransferItem) -> str:
    reason = f"\t{item.fee_reason.value}" if item.fee_reason is not FeeReason.UNSET else ""
    return (
        f"{item.id}\t{item.vendor.name}\t"
        f"payable={item.amount_payable:,}\tfee={item.manual_fee:,}\t"
        f"actual={item.actual_amount:,}{reason}"
    )


def _print_batch(desk: RemittanceDesk) -> None:
    for item in desk.batch:
        print(_format_item(item))
    totals = desk.batch.compute_totals()
    print(
        f"Total payable: {totals.total_payable:,}  "
        f"Total fee: {totals.total_fee:,}  "
        f"Total to remit: {totals.total_actual:,}"
    )


def _fail(message: str) -> int:
    print(message, file=sys.stderr)
    return 1


async def _run_batch(args: argparse.Namespace, desk: RemittanceDesk) -> int:
    command = args.batch_command
    if command == "add":
        results = await desk.search(args.term)
        if desk.search_error:
            return _fail(desk.search_error)
        if args.vendor_id:
            matches = [v for v in results if v.id == args.vendor_id]
        else:
            matches = results
        if len(matches) != 1:
            for vendor in results:
                print(_format_vendor(vendor))
            return _fail("Pick exactly one vendor with --id.")
        if not desk.add_to_batch(matches[0]):
            print(f"{matches[0].name} is already in the batch.")
    elif command == "remove":
        desk.remove_from_batch(args.vendor_id)
    elif command == "payable":
        desk.set_amount_payable(args.vendor_id, args.value)
    elif command == "fee":
        desk.set_manual_fee(args.vendor_id, args.value)
    elif command == "reason":
        desk.set_fee_reason(args.vendor_id, FEE_REASON_CHOICES[args.reason])
    _print_batch(desk)
    return 0


async def _run_add_vendor(args: argparse.Namespace, client: AppsScriptClient, desk: RemittanceDesk) -> int:
    form = VendorForm(client, parser=init_vendor_parser())
    form.set_field("sheet_name", args.sheet)
    for name, value in (
        ("name", args.name),
        ("bank", args.bank),
        ("bank_code", args.bank_code),
        ("account_number", args.account),
        ("tax_id", args.tax_id),
        ("address", args.address),
        ("remarks", args.remarks),
    ):
        if value:
            form.set_field(name, value)

    if args.paste:
        if not form.can_parse:
            return _fail("Text parsing is unavailable: set GOOGLE_API_KEY to enable it.")
        if not await form.parse_text(args.paste):
            return _fail(form.error or "Nothing could be parsed.")
        form.bank_lookup.cancel()

    if not await form.submit(desk.add_new_vendor):
        return _fail(form.error or "Failed to add vendor.")
    for vendor in desk.search_results:
        print(_format_vendor(vendor))
    return 0


async def run(args: argparse.Namespace) -> int:
    settings = get_settings()

    if args.command == "sheet":
        if not settings.sheet_url:
            return _fail("SHEET_URL is not configured.")
        print(settings.sheet_url)
        return 0

    if args.command == "parse":
        parser = init_vendor_parser()
        if parser is None:
            return _fail("Text parsing is unavailable: set GOOGLE_API_KEY to enable it.")
        parsed = await parser.parse(args.text)
        if parsed is None:
            return _fail("Could not extract vendor details from the provided text.")
        for key, value in vars(parsed).items():
            print(f"{key}: {value}")
        return 0

    async with AppsScriptClient() as client:
        desk = RemittanceDesk(client, SessionStore(settings.session_dir), fresh_start=args.fresh)

        if args.command == "search":
            results = await desk.search(args.term)
            if desk.search_error:
                return _fail(desk.search_error)
            for vendor in results:
                print(_format_vendor(vendor))
            return 0

        if args.command == "banks":
            for bank in await client.search_banks(args.term):
                print(f"{bank.full_code}\t{bank.full_name}")
            return 0

        if args.command == "add-vendor":
            return await _run_add_vendor(args, client, desk)

        if args.command == "batch":
            return await _run_batch(args, desk)

        if args.command == "generate":
            path = await desk.generate()
            if path is None:
                return _fail(desk.batch.generate_error or "Generation failed.")
            print(path)
            return 0

    return _fail(f"Unknown command: {args.command}")


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for the vendor-remit command."""
    args = build_parser().parse_args(argv)
    configure_logging(level=args.log_level)

    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        logger.info("interrupted")
        return 130
    except Exception as e:
        logger.exception("command_failed", command=args.command)
        return _fail(str(e))


if __name__ == "__main__":
    sys.exit(main())
