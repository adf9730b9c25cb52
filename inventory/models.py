"""Inventory models (single-location, append-only).

Physical stock is recorded as a log of incoming and outgoing movements per
SKU. On-hand quantity is derived from the log and never stored.
"""

from common.choices import MovementType
from django.db import models

# Wide enough for derived references such as RECV/<report number>.
REFERENCE_MAX_LENGTH = 180


class TimeStampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class StockMovement(TimeStampedModel):
    TYPE_INBOUND = MovementType.INBOUND
    TYPE_OUTBOUND = MovementType.OUTBOUND
    TYPE_CHOICES = MovementType.choices

    sku = models.ForeignKey("library.Sku", on_delete=models.PROTECT, related_name="movements")
    movement_type = models.CharField(max_length=16, choices=TYPE_CHOICES)
    quantity = models.PositiveIntegerField()  # direction comes from movement_type
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    counterparty = models.ForeignKey(
        "library.Vendor", null=True, blank=True, on_delete=models.PROTECT, related_name="movements"
    )
    movement_date = models.DateField()
    remarks = models.CharField(max_length=255, blank=True)
    reference = models.CharField(max_length=REFERENCE_MAX_LENGTH, blank=True)

    class Meta:
        ordering = ["-created_at", "id"]
        constraints = [
            models.CheckConstraint(name="movement_positive_qty", condition=models.Q(quantity__gt=0)),
            models.CheckConstraint(name="movement_positive_price", condition=models.Q(unit_price__gt=0)),
        ]
        indexes = [
            models.Index(fields=["sku", "movement_type"], name="movement_sku_type_idx"),
            models.Index(fields=["reference"], name="movement_reference_idx"),
        ]

    @property
    def total_value(self):
        return self.unit_price * self.quantity

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.movement_type} {self.quantity} of {self.sku_id}"


# EOF
