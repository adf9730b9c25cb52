"""Reconciliation services: transactional resolution of rejected and short units.

Every operation locks one ``LineItemRecord``, validates the transfer against
its current counters, commits the new counters with a version guard, appends
at most one stock movement, and records a ``ResolutionEvent``. All of it runs
in a single transaction: a failure anywhere leaves the record untouched.
"""

import functools
import logging
from decimal import Decimal, InvalidOperation

from common.choices import MovementType, ResolutionAction, ScrapReason
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone
from inventory.services import MovementError, append_movement, quantize_price
from library.selectors import get_unit_price

from .models import INVOICE_MAX_LENGTH, LineItemRecord, ResolutionEvent

logger = logging.getLogger("stockrecon.reconciliation")

REPORT_NUMBER_ATTEMPTS = 3


class LedgerError(Exception):
    """Base class for ledger failures surfaced to callers."""


class InvalidQuantity(LedgerError):
    """Requested quantity is non-positive or exceeds the source bucket."""

    def __init__(self, message: str, *, requested=None, available=None):
        super().__init__(message)
        self.requested = requested
        self.available = available


class MissingField(LedgerError):
    """A required correlating field was absent."""

    def __init__(self, field: str):
        super().__init__(f"{field} is required")
        self.field = field


class FieldTooLong(LedgerError):
    """A free-text identifier is longer than its column allows."""

    def __init__(self, field: str, max_length: int):
        super().__init__(f"{field} exceeds {max_length} characters")
        self.field = field
        self.max_length = max_length


class ConcurrentModification(LedgerError):
    """The record changed between read and commit; re-fetch and retry."""


class StockLogFailure(LedgerError):
    """The paired stock movement could not be appended."""


class LineItemNotFound(LedgerError):
    pass


def _log_rejections(func):
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except LedgerError as exc:
            logger.warning(
                "reconciliation.rejected",
                extra={
                    "event": "reconciliation.rejected",
                    "operation": func.__name__,
                    "line_item_id": kwargs.get("line_item_id"),
                    "error": type(exc).__name__,
                    "detail": str(exc),
                },
            )
            raise

    return wrapper


def _require(**fields) -> None:
    for name, value in fields.items():
        if value is None or (isinstance(value, str) and not value.strip()):
            raise MissingField(name)


def _check_length(*, max_length: int = INVOICE_MAX_LENGTH, **fields) -> None:
    for name, value in fields.items():
        if value and len(value) > max_length:
            raise FieldTooLong(name, max_length)


def _check_whole_number(value, *, name: str = "quantity", allow_zero: bool = False) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidQuantity(f"{name} must be a whole number", requested=value)
    if value < 0 or (value == 0 and not allow_zero):
        raise InvalidQuantity(f"{name} must be positive", requested=value)


def _check_available(quantity: int, *, available: int, bucket: str) -> None:
    if quantity > available:
        raise InvalidQuantity(
            f"Cannot move {quantity} units; only {available} available in {bucket}",
            requested=quantity,
            available=available,
        )


def _lock_line_item(line_item_id, expected_version=None) -> LineItemRecord:
    try:
        item = LineItemRecord.objects.select_for_update().get(id=line_item_id)
    except LineItemRecord.DoesNotExist:
        raise LineItemNotFound(f"Line item {line_item_id} not found")
    if expected_version is not None and item.version != expected_version:
        raise ConcurrentModification(
            f"Line item {line_item_id} is at version {item.version}, expected {expected_version}"
        )
    return item


def _commit_counters(item: LineItemRecord, **counters) -> None:
    """Write absolute counter values computed from the locked snapshot."""

    updated = LineItemRecord.objects.filter(id=item.id, version=item.version).update(
        version=F("version") + 1,
        updated_at=timezone.now(),
        **counters,
    )
    if updated != 1:
        raise ConcurrentModification(f"Line item {item.id} changed before commit")
    item.refresh_from_db()


def _append_stock(**kwargs):
    try:
        return append_movement(**kwargs)
    except MovementError as exc:
        raise StockLogFailure(str(exc)) from exc


def _record_event(item: LineItemRecord, *, action: str, user=None, **fields) -> ResolutionEvent:
    return ResolutionEvent.objects.create(
        line_item=item,
        action=action,
        performed_by=user if getattr(user, "id", None) else None,
        **fields,
    )


def placeholder_unit_price() -> Decimal:
    price = quantize_price(getattr(settings, "RECON_PLACEHOLDER_UNIT_PRICE", Decimal("0.01")))
    if price <= 0:
        raise ImproperlyConfigured("RECON_PLACEHOLDER_UNIT_PRICE must be at least 0.01")
    return price


def resolve_unit_price(explicit, *, sku_id: int, fallback=None) -> Decimal:
    """Pick the unit price sent to the stock log.

    Order: explicit positive price, the SKU's last known price, the line's
    stored price, then the nominal placeholder. The stock log rejects zero,
    so a non-positive candidate is never returned.
    """

    if explicit is not None:
        try:
            explicit = quantize_price(explicit)
        except (InvalidOperation, ValueError):
            raise InvalidQuantity("unit_price must be numeric", requested=explicit)
        if explicit < 0:
            raise InvalidQuantity("unit_price must not be negative", requested=explicit)
        if explicit > 0:
            return explicit
    for candidate in (get_unit_price(sku_id), fallback):
        if candidate is not None and quantize_price(candidate) > 0:
            return quantize_price(candidate)
    return placeholder_unit_price()


def generate_report_number(invoice_number: str) -> str:
    """Next report number for an invoice, formatted REJ/<invoice>/<seq>."""

    prefix = f"REJ/{invoice_number}/"
    highest = 0
    for number in LineItemRecord.objects.filter(report_number__startswith=prefix).values_list(
        "report_number", flat=True
    ):
        tail = number[len(prefix) :]
        if tail.isdigit():
            highest = max(highest, int(tail))
    return f"{prefix}{highest + 1:03d}"


@transaction.atomic
def create_line_item(
    *,
    sku_id: int,
    vendor_id: int,
    brand_id: int,
    invoice_number: str,
    received_date,
    received_quantity: int,
    rejected_quantity: int = 0,
    short_quantity: int = 0,
    unit_price=None,
    reason: str = "",
    source_line_id=None,
) -> LineItemRecord:
    """Record one (shipment, SKU) line at receipt time with counters at zero.

    Lines carrying rejections get a report number sequenced per invoice.
    """

    _require(
        sku_id=sku_id,
        vendor_id=vendor_id,
        brand_id=brand_id,
        invoice_number=invoice_number,
        received_date=received_date,
    )
    _check_length(invoice_number=invoice_number)
    _check_whole_number(received_quantity, name="received_quantity", allow_zero=True)
    _check_whole_number(rejected_quantity, name="rejected_quantity", allow_zero=True)
    _check_whole_number(short_quantity, name="short_quantity", allow_zero=True)
    _check_available(rejected_quantity, available=received_quantity, bucket="received")
    if unit_price is not None:
        unit_price = quantize_price(unit_price)

    return _insert_line_item(
        sku_id=sku_id,
        vendor_id=vendor_id,
        brand_id=brand_id,
        original_invoice_number=invoice_number,
        received_date=received_date,
        received_quantity=received_quantity,
        rejected_quantity=rejected_quantity,
        short_quantity=short_quantity,
        unit_price=unit_price,
        reason=reason,
        source_line_id=source_line_id,
    )


def _insert_line_item(**fields) -> LineItemRecord:
    """Insert a validated line, allocating its report number when it has rejections.

    A concurrent insert can take the same report number first; the insert is
    retried in a savepoint with a fresh number.
    """

    invoice_number = fields["original_invoice_number"]
    if fields["rejected_quantity"] > 0:
        for attempt in range(1, REPORT_NUMBER_ATTEMPTS + 1):
            report_number = generate_report_number(invoice_number)
            try:
                with transaction.atomic():
                    item = LineItemRecord.objects.create(report_number=report_number, **fields)
                break
            except IntegrityError:
                if not LineItemRecord.objects.filter(report_number=report_number).exists():
                    raise
                logger.info(
                    "reconciliation.report_number_taken",
                    extra={
                        "event": "reconciliation.report_number_taken",
                        "report_number": report_number,
                        "attempt": attempt,
                    },
                )
        else:
            raise ConcurrentModification(f"Could not allocate a report number for invoice {invoice_number}")
    else:
        item = LineItemRecord.objects.create(report_number="", **fields)

    logger.info(
        "reconciliation.line_item_created",
        extra={
            "event": "reconciliation.line_item_created",
            "line_item_id": item.id,
            "sku_id": item.sku_id,
            "invoice_number": invoice_number,
            "report_number": item.report_number,
            "rejected_quantity": item.rejected_quantity,
            "short_quantity": item.short_quantity,
            "source_line_id": item.source_line_id,
        },
    )
    return item


# Rejection ledger


@_log_rejections
@transaction.atomic
def send_to_vendor(
    *,
    line_item_id: int,
    quantity: int,
    vendor_id: int,
    brand_id: int,
    action_date,
    reason: str,
    unit_price=None,
    remarks: str = "",
    user=None,
    expected_version=None,
) -> LineItemRecord:
    """Move rejected units out to the vendor and record an outgoing movement."""

    _require(vendor_id=vendor_id, brand_id=brand_id, action_date=action_date, reason=reason)
    _check_whole_number(quantity)
    item = _lock_line_item(line_item_id, expected_version)
    _check_available(quantity, available=item.net_rejected, bucket="net rejected")
    price = resolve_unit_price(unit_price, sku_id=item.sku_id, fallback=item.unit_price)

    _commit_counters(item, sent_to_vendor=item.sent_to_vendor + quantity)
    movement = _append_stock(
        sku_id=item.sku_id,
        movement_type=MovementType.OUTBOUND,
        quantity=quantity,
        unit_price=price,
        movement_date=action_date,
        counterparty_id=vendor_id,
        remarks=remarks or f"Rejected items sent to vendor. Reason: {reason}",
        reference=item.report_number or item.original_invoice_number,
    )
    _record_event(
        item,
        action=ResolutionAction.SEND_TO_VENDOR,
        user=user,
        quantity=quantity,
        vendor_id=vendor_id,
        brand_id=brand_id,
        action_date=action_date,
        reason=reason,
        unit_price=price,
        movement=movement,
    )
    logger.info(
        "reconciliation.sent_to_vendor",
        extra={
            "event": "reconciliation.sent_to_vendor",
            "line_item_id": item.id,
            "vendor_id": vendor_id,
            "quantity": quantity,
            "net_rejected": item.net_rejected,
            "movement_id": movement.id,
            "user_id": getattr(user, "id", None),
        },
    )
    return item


@_log_rejections
@transaction.atomic
def receive_from_vendor(
    *,
    line_item_id: int,
    quantity: int,
    vendor_id: int,
    brand_id: int,
    action_date,
    condition: str,
    short_portion: int = 0,
    unit_price=None,
    invoice_reference: str = "",
    remarks: str = "",
    user=None,
    expected_version=None,
) -> LineItemRecord:
    """Take units back from the vendor.

    ``quantity`` leaves ``sent_to_vendor`` and lands in ``received_back``.
    The receipt is booked as a new receiving line whose ``short_quantity`` is
    ``short_portion``, so any units the vendor failed to return become a short
    obligation of their own. Only ``quantity - short_portion`` units enter stock.
    """

    _require(vendor_id=vendor_id, brand_id=brand_id, action_date=action_date, condition=condition)
    _check_length(invoice_reference=invoice_reference)
    _check_whole_number(quantity)
    short_portion = 0 if short_portion is None else short_portion
    _check_whole_number(short_portion, name="short_portion", allow_zero=True)
    if short_portion > quantity:
        raise InvalidQuantity(
            "short_portion cannot exceed the quantity received",
            requested=short_portion,
            available=quantity,
        )
    item = _lock_line_item(line_item_id, expected_version)
    _check_available(quantity, available=item.sent_to_vendor, bucket="sent to vendor")
    price = resolve_unit_price(unit_price, sku_id=item.sku_id, fallback=item.unit_price)

    _commit_counters(
        item,
        sent_to_vendor=item.sent_to_vendor - quantity,
        received_back=item.received_back + quantity,
    )
    reference = invoice_reference or f"RECV/{item.report_number or item.original_invoice_number}"
    usable = quantity - short_portion
    receiving_line = _insert_line_item(
        sku_id=item.sku_id,
        vendor_id=vendor_id,
        brand_id=brand_id,
        original_invoice_number=reference,
        received_date=action_date,
        received_quantity=usable,
        rejected_quantity=0,
        short_quantity=short_portion,
        unit_price=price,
        reason=f"Received from vendor against {item.report_number or item.original_invoice_number}",
        source_line_id=item.id,
    )
    movement = None
    if usable > 0:
        movement = _append_stock(
            sku_id=item.sku_id,
            movement_type=MovementType.INBOUND,
            quantity=usable,
            unit_price=price,
            movement_date=action_date,
            counterparty_id=vendor_id,
            remarks=remarks or f"Items received from vendor. Condition: {condition}.",
            reference=reference,
        )
    _record_event(
        item,
        action=ResolutionAction.RECEIVE_FROM_VENDOR,
        user=user,
        quantity=quantity,
        short_portion=short_portion,
        vendor_id=vendor_id,
        brand_id=brand_id,
        action_date=action_date,
        condition=condition,
        invoice_reference=reference,
        unit_price=price,
        movement=movement,
        receiving_line=receiving_line,
    )
    logger.info(
        "reconciliation.received_from_vendor",
        extra={
            "event": "reconciliation.received_from_vendor",
            "line_item_id": item.id,
            "receiving_line_id": receiving_line.id,
            "vendor_id": vendor_id,
            "quantity": quantity,
            "short_portion": short_portion,
            "movement_id": getattr(movement, "id", None),
            "user_id": getattr(user, "id", None),
        },
    )
    return item


@_log_rejections
@transaction.atomic
def scrap(
    *,
    line_item_id: int,
    quantity: int,
    action_date,
    scrap_reason: str,
    approved_by_id: int,
    scrap_note: str = "",
    user=None,
    expected_version=None,
) -> LineItemRecord:
    """Write off rejected units. Scrapped units never re-enter stock."""

    _require(action_date=action_date, scrap_reason=scrap_reason, approved_by_id=approved_by_id)
    if scrap_reason == ScrapReason.OTHER:
        _require(scrap_note=scrap_note)
    _check_whole_number(quantity)
    item = _lock_line_item(line_item_id, expected_version)
    _check_available(quantity, available=item.net_rejected, bucket="net rejected")

    _commit_counters(item, scrapped=item.scrapped + quantity)
    _record_event(
        item,
        action=ResolutionAction.SCRAP,
        user=user,
        quantity=quantity,
        action_date=action_date,
        scrap_reason=scrap_reason,
        scrap_note=scrap_note,
        approved_by_id=approved_by_id,
    )
    logger.info(
        "reconciliation.scrapped",
        extra={
            "event": "reconciliation.scrapped",
            "line_item_id": item.id,
            "quantity": quantity,
            "scrap_reason": scrap_reason,
            "approved_by_id": approved_by_id,
            "net_rejected": item.net_rejected,
            "user_id": getattr(user, "id", None),
        },
    )
    return item


# Short ledger


@_log_rejections
@transaction.atomic
def receive_back_short(
    *,
    line_item_id: int,
    quantity: int,
    vendor_id: int,
    brand_id: int,
    action_date,
    invoice_reference: str,
    received_by_id: int,
    unit_price=None,
    remarks: str = "",
    user=None,
    expected_version=None,
) -> LineItemRecord:
    """Record arrival of previously short units and add them to stock."""

    _require(
        vendor_id=vendor_id,
        brand_id=brand_id,
        action_date=action_date,
        invoice_reference=invoice_reference,
        received_by_id=received_by_id,
    )
    _check_length(invoice_reference=invoice_reference)
    _check_whole_number(quantity)
    item = _lock_line_item(line_item_id, expected_version)
    _check_available(quantity, available=item.available_short, bucket="short")
    price = resolve_unit_price(unit_price, sku_id=item.sku_id, fallback=item.unit_price)

    _commit_counters(item, short_received_back=item.short_received_back + quantity)
    movement = _append_stock(
        sku_id=item.sku_id,
        movement_type=MovementType.INBOUND,
        quantity=quantity,
        unit_price=price,
        movement_date=action_date,
        counterparty_id=vendor_id,
        remarks=remarks or f"Short items received back. Original invoice: {item.original_invoice_number}",
        reference=invoice_reference,
    )
    _record_event(
        item,
        action=ResolutionAction.SHORT_RECEIVE_BACK,
        user=user,
        quantity=quantity,
        vendor_id=vendor_id,
        brand_id=brand_id,
        action_date=action_date,
        invoice_reference=invoice_reference,
        received_by_id=received_by_id,
        unit_price=price,
        movement=movement,
    )
    logger.info(
        "reconciliation.short_received_back",
        extra={
            "event": "reconciliation.short_received_back",
            "line_item_id": item.id,
            "vendor_id": vendor_id,
            "quantity": quantity,
            "available_short": item.available_short,
            "movement_id": movement.id,
            "user_id": getattr(user, "id", None),
        },
    )
    return item


# EOF
