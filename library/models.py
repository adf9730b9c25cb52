"""Library app models.

Master data referenced by the reconciliation ledger: vendors, brands,
SKUs (with their last known unit price), and team members who approve or
receive stock.
"""

from common.choices import ActiveInactive
from django.db import models


class TimeStampedModel(models.Model):
    """Abstract base model adding created/updated timestamps."""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Vendor(TimeStampedModel):
    """Supplier that ships stock and accepts rejected units back."""

    STATUS_ACTIVE = ActiveInactive.ACTIVE
    STATUS_INACTIVE = ActiveInactive.INACTIVE
    STATUS_CHOICES = ActiveInactive.choices

    name = models.CharField(max_length=200)
    code = models.CharField(max_length=32, unique=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_ACTIVE)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:  # pragma: no cover
        return self.name


class Brand(TimeStampedModel):
    STATUS_ACTIVE = ActiveInactive.ACTIVE
    STATUS_INACTIVE = ActiveInactive.INACTIVE
    STATUS_CHOICES = ActiveInactive.choices

    name = models.CharField(max_length=120, unique=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_ACTIVE)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:  # pragma: no cover
        return self.name


class Sku(TimeStampedModel):
    """Stock keeping unit.

    ``unit_price`` holds the last known purchase price and is only used as a
    default when a ledger action omits one.
    """

    STATUS_ACTIVE = ActiveInactive.ACTIVE
    STATUS_INACTIVE = ActiveInactive.INACTIVE
    STATUS_CHOICES = ActiveInactive.choices

    code = models.CharField(max_length=64, unique=True)
    item_name = models.CharField(max_length=200)
    brand = models.ForeignKey(Brand, null=True, blank=True, related_name="skus", on_delete=models.SET_NULL)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_ACTIVE)

    class Meta:
        ordering = ["code"]
        constraints = [
            models.CheckConstraint(
                name="sku_unit_price_non_negative",
                condition=models.Q(unit_price__gte=0) | models.Q(unit_price__isnull=True),
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.item_name} [{self.code}]"


class TeamMember(TimeStampedModel):
    """Staff member recorded as approver of a scrap or receiver of stock."""

    name = models.CharField(max_length=120)
    email = models.EmailField(blank=True)
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:  # pragma: no cover
        return self.name


# EOF
