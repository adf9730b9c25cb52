"""Read-only report queries over line items.

Report rows are plain dicts. Derived quantities and statuses are recomputed
from the stored counters on every call, so repeated reads without an
intervening write return identical rows.
"""

import logging
from typing import Optional

from common.choices import RejectedStatus, ShortStatus
from django.db.models import Q, QuerySet

from .models import LineItemRecord, ResolutionEvent
from .services import LineItemNotFound

logger = logging.getLogger("stockrecon.reports")


def rejected_status(item: LineItemRecord) -> str:
    if item.net_rejected == 0:
        return RejectedStatus.RESOLVED
    if item.net_rejected < item.rejected_quantity:
        return RejectedStatus.IN_PROGRESS
    return RejectedStatus.PENDING


def short_status(item: LineItemRecord) -> str:
    if item.available_short == 0:
        return ShortStatus.RECEIVED_BACK
    if item.short_received_back > 0:
        return ShortStatus.PARTIALLY_RECEIVED
    return ShortStatus.PENDING


def _filtered(qs: QuerySet, *, date_from=None, date_to=None, search: Optional[str] = None) -> QuerySet:
    if date_from:
        qs = qs.filter(received_date__gte=date_from)
    if date_to:
        qs = qs.filter(received_date__lte=date_to)
    search = (search or "").strip()
    if search:
        qs = qs.filter(
            Q(original_invoice_number__icontains=search)
            | Q(report_number__icontains=search)
            | Q(sku__code__icontains=search)
            | Q(sku__item_name__icontains=search)
        )
    return qs.select_related("sku", "vendor", "brand").order_by("-received_date", "-id")


def _paginate(qs: QuerySet, *, limit: Optional[int] = None, offset: Optional[int] = None) -> QuerySet:
    offset = offset or 0
    if offset < 0 or (limit is not None and limit < 0):
        raise ValueError("limit and offset must not be negative")
    if limit is not None:
        return qs[offset : offset + limit]
    return qs[offset:] if offset else qs


def _base_row(item: LineItemRecord) -> dict:
    return {
        "id": item.id,
        "report_number": item.report_number,
        "original_invoice_number": item.original_invoice_number,
        "received_date": item.received_date,
        "sku_id": item.sku_id,
        "sku_code": item.sku.code,
        "item_name": item.sku.item_name,
        "vendor_id": item.vendor_id,
        "vendor_name": item.vendor.name,
        "brand_id": item.brand_id,
        "brand_name": item.brand.name,
        "unit_price": item.unit_price,
        "version": item.version,
    }


def list_rejected_item_reports(
    *,
    date_from=None,
    date_to=None,
    search: Optional[str] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> list[dict]:
    """Line items with rejections, newest first, optionally one page at a time."""

    qs = _filtered(
        LineItemRecord.objects.filter(rejected_quantity__gt=0),
        date_from=date_from,
        date_to=date_to,
        search=search,
    )
    rows = []
    for item in _paginate(qs, limit=limit, offset=offset):
        row = _base_row(item)
        row.update(
            {
                "received_quantity": item.received_quantity,
                "rejected_quantity": item.rejected_quantity,
                "sent_to_vendor": item.sent_to_vendor,
                "received_back": item.received_back,
                "scrapped": item.scrapped,
                "net_rejected": item.net_rejected,
                "reason": item.reason,
                "status": rejected_status(item),
            }
        )
        rows.append(row)
    logger.info(
        "reports.rejected_listed",
        extra={"event": "reports.rejected_listed", "count": len(rows), "search": search or ""},
    )
    return rows


def list_short_item_reports(
    *,
    date_from=None,
    date_to=None,
    search: Optional[str] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> list[dict]:
    """Line items with short units, newest first, optionally one page at a time."""

    qs = _filtered(
        LineItemRecord.objects.filter(short_quantity__gt=0),
        date_from=date_from,
        date_to=date_to,
        search=search,
    )
    rows = []
    for item in _paginate(qs, limit=limit, offset=offset):
        row = _base_row(item)
        row.update(
            {
                "received_quantity": item.received_quantity,
                "short_quantity": item.short_quantity,
                "short_received_back": item.short_received_back,
                "available_short": item.available_short,
                "source_line_id": item.source_line_id,
                "status": short_status(item),
            }
        )
        rows.append(row)
    logger.info(
        "reports.short_listed",
        extra={"event": "reports.short_listed", "count": len(rows), "search": search or ""},
    )
    return rows


def get_line_item(line_item_id: int) -> LineItemRecord:
    try:
        return LineItemRecord.objects.select_related("sku", "vendor", "brand").get(id=line_item_id)
    except LineItemRecord.DoesNotExist:
        raise LineItemNotFound(f"Line item {line_item_id} not found")


def list_history_for_line_item(line_item_id: int) -> list[dict]:
    """Resolution events for a line item in the order they were recorded."""

    return list(
        ResolutionEvent.objects.filter(line_item_id=line_item_id)
        .order_by("created_at", "id")
        .values(
            "id",
            "action",
            "quantity",
            "short_portion",
            "vendor_id",
            "brand_id",
            "action_date",
            "reason",
            "condition",
            "scrap_reason",
            "scrap_note",
            "approved_by_id",
            "received_by_id",
            "invoice_reference",
            "unit_price",
            "movement_id",
            "receiving_line_id",
            "performed_by_id",
            "created_at",
        )
    )


# EOF
