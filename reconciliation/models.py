"""Reconciliation models.

A ``LineItemRecord`` is the per-(shipment, SKU) source of truth for rejected
and short quantities. Resolution counters are the only persisted state;
``net_rejected`` and ``available_short`` are always derived from them.
"""

from common.choices import ReceiveCondition, ResolutionAction, ScrapReason
from django.conf import settings
from django.db import models
from inventory.models import REFERENCE_MAX_LENGTH

# Invoice numbers and references supplied by callers.
INVOICE_MAX_LENGTH = 120


class TimeStampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class LineItemRecord(TimeStampedModel):
    sku = models.ForeignKey("library.Sku", on_delete=models.PROTECT, related_name="line_items")
    vendor = models.ForeignKey("library.Vendor", on_delete=models.PROTECT, related_name="line_items")
    brand = models.ForeignKey("library.Brand", on_delete=models.PROTECT, related_name="line_items")
    original_invoice_number = models.CharField(max_length=REFERENCE_MAX_LENGTH)
    report_number = models.CharField(max_length=160, blank=True)
    received_date = models.DateField()
    received_quantity = models.PositiveIntegerField(default=0)

    # Rejection lifecycle: rejected = sent + received back + scrapped + net
    rejected_quantity = models.PositiveIntegerField(default=0)
    sent_to_vendor = models.PositiveIntegerField(default=0)
    received_back = models.PositiveIntegerField(default=0)
    scrapped = models.PositiveIntegerField(default=0)

    # Short lifecycle
    short_quantity = models.PositiveIntegerField(default=0)
    short_received_back = models.PositiveIntegerField(default=0)

    unit_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    reason = models.CharField(max_length=255, blank=True)
    source_line = models.ForeignKey(
        "self", null=True, blank=True, on_delete=models.PROTECT, related_name="receiving_lines"
    )
    version = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["-created_at", "-id"]
        constraints = [
            models.CheckConstraint(
                name="rejection_buckets_within_rejected",
                condition=models.Q(
                    rejected_quantity__gte=models.F("sent_to_vendor") + models.F("received_back") + models.F("scrapped")
                ),
            ),
            models.CheckConstraint(
                name="short_received_within_short",
                condition=models.Q(short_received_back__lte=models.F("short_quantity")),
            ),
            models.CheckConstraint(
                name="rejected_within_received",
                condition=models.Q(rejected_quantity__lte=models.F("received_quantity")),
            ),
            models.UniqueConstraint(
                fields=["report_number"],
                condition=~models.Q(report_number=""),
                name="unique_report_number",
            ),
        ]
        indexes = [
            models.Index(fields=["original_invoice_number"], name="line_item_invoice_idx"),
            models.Index(fields=["received_date"], name="line_item_received_date_idx"),
        ]

    @property
    def net_rejected(self) -> int:
        return int(self.rejected_quantity) - int(self.sent_to_vendor) - int(self.received_back) - int(self.scrapped)

    @property
    def available_short(self) -> int:
        return int(self.short_quantity) - int(self.short_received_back)

    @property
    def is_resolved(self) -> bool:
        return self.net_rejected == 0 and self.available_short == 0

    def __str__(self) -> str:  # pragma: no cover
        return f"LineItem<{self.original_invoice_number}:{self.sku_id}> rej={self.rejected_quantity} short={self.short_quantity}"


class ResolutionEvent(models.Model):
    """Append-only history of ledger actions against a line item."""

    ACTION_CHOICES = ResolutionAction.choices

    line_item = models.ForeignKey(LineItemRecord, on_delete=models.PROTECT, related_name="events")
    action = models.CharField(max_length=32, choices=ACTION_CHOICES)
    quantity = models.PositiveIntegerField()
    short_portion = models.PositiveIntegerField(default=0)
    vendor = models.ForeignKey("library.Vendor", null=True, blank=True, on_delete=models.PROTECT, related_name="+")
    brand = models.ForeignKey("library.Brand", null=True, blank=True, on_delete=models.PROTECT, related_name="+")
    action_date = models.DateField()
    reason = models.CharField(max_length=255, blank=True)
    condition = models.CharField(max_length=16, choices=ReceiveCondition.choices, blank=True)
    scrap_reason = models.CharField(max_length=32, choices=ScrapReason.choices, blank=True)
    scrap_note = models.CharField(max_length=255, blank=True)
    approved_by = models.ForeignKey(
        "library.TeamMember", null=True, blank=True, on_delete=models.PROTECT, related_name="approved_events"
    )
    received_by = models.ForeignKey(
        "library.TeamMember", null=True, blank=True, on_delete=models.PROTECT, related_name="received_events"
    )
    invoice_reference = models.CharField(max_length=REFERENCE_MAX_LENGTH, blank=True)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    movement = models.ForeignKey(
        "inventory.StockMovement", null=True, blank=True, on_delete=models.PROTECT, related_name="resolution_events"
    )
    receiving_line = models.ForeignKey(
        LineItemRecord, null=True, blank=True, on_delete=models.PROTECT, related_name="originating_events"
    )
    performed_by = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        constraints = [
            models.CheckConstraint(name="event_positive_qty", condition=models.Q(quantity__gt=0)),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.action} {self.quantity} on {self.line_item_id}"


# EOF
