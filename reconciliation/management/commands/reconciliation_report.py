import json

from django.core.management.base import BaseCommand, CommandError
from django.core.serializers.json import DjangoJSONEncoder
from django.utils.dateparse import parse_date
from reconciliation.selectors import get_line_item, list_rejected_item_reports, list_short_item_reports
from reconciliation.serializers import (
    RejectedItemReportSerializer,
    ResolutionEventSerializer,
    ShortItemReportSerializer,
)
from reconciliation.services import LineItemNotFound

TABLE_COLUMNS = {
    "rejected": [
        "report_number",
        "original_invoice_number",
        "received_date",
        "sku_code",
        "rejected_quantity",
        "sent_to_vendor",
        "received_back",
        "scrapped",
        "net_rejected",
        "status",
    ],
    "short": [
        "original_invoice_number",
        "received_date",
        "sku_code",
        "short_quantity",
        "short_received_back",
        "available_short",
        "status",
    ],
    "history": ["created_at", "action", "quantity", "short_portion", "action_date", "invoice_reference"],
}


def _parse_date_option(value, name):
    if not value:
        return None
    parsed = parse_date(value)
    if parsed is None:
        raise CommandError(f"--{name} must be a date in YYYY-MM-DD format, got {value!r}")
    return parsed


class Command(BaseCommand):
    help = "Print the rejected-item or short-item report, or the action history of one line item."

    def add_arguments(self, parser):
        parser.add_argument("--kind", choices=["rejected", "short"], default="rejected")
        parser.add_argument("--from", dest="date_from", help="Inclusive start of the received date range")
        parser.add_argument("--to", dest="date_to", help="Inclusive end of the received date range")
        parser.add_argument("--search", default="", help="Match invoice, report number, SKU code or item name")
        parser.add_argument("--limit", type=int, help="Print at most this many rows")
        parser.add_argument("--offset", type=int, default=0, help="Skip this many rows first")
        parser.add_argument("--line-item", type=int, help="Show the action history of this line item instead")
        parser.add_argument("--format", choices=["table", "json"], default="table")

    def handle(self, *args, **options):
        if options["line_item"] is not None:
            try:
                item = get_line_item(options["line_item"])
            except LineItemNotFound as exc:
                raise CommandError(str(exc))
            rows = ResolutionEventSerializer(item.events.order_by("created_at", "id"), many=True).data
            columns = TABLE_COLUMNS["history"]
        else:
            date_from = _parse_date_option(options["date_from"], "from")
            date_to = _parse_date_option(options["date_to"], "to")
            if date_from and date_to and date_from > date_to:
                raise CommandError("--from must not be after --to")
            if options["offset"] < 0 or (options["limit"] is not None and options["limit"] < 0):
                raise CommandError("--limit and --offset must not be negative")
            filters = {
                "date_from": date_from,
                "date_to": date_to,
                "search": options["search"],
                "limit": options["limit"],
                "offset": options["offset"],
            }
            if options["kind"] == "short":
                rows = ShortItemReportSerializer(list_short_item_reports(**filters), many=True).data
            else:
                rows = RejectedItemReportSerializer(list_rejected_item_reports(**filters), many=True).data
            columns = TABLE_COLUMNS[options["kind"]]

        if options["format"] == "json":
            self.stdout.write(json.dumps(list(rows), cls=DjangoJSONEncoder, indent=2))
            return
        self._write_table(rows, columns)
        self.stdout.write(self.style.SUCCESS(f"Rows: {len(rows)}"))

    def _write_table(self, rows, columns):
        cells = [[str(row.get(col, "")) for col in columns] for row in rows]
        widths = [max([len(col)] + [len(line[i]) for line in cells]) for i, col in enumerate(columns)]
        self.stdout.write("  ".join(col.ljust(w) for col, w in zip(columns, widths)))
        for line in cells:
            self.stdout.write("  ".join(cell.ljust(w) for cell, w in zip(line, widths)))
