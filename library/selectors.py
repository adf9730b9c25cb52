"""Selectors for the library domain."""

from decimal import Decimal
from typing import Optional

from .models import Sku


def get_unit_price(sku_id: int) -> Optional[Decimal]:
    """Return the last known unit price for a SKU, or None when absent."""

    price = Sku.objects.filter(id=sku_id).values_list("unit_price", flat=True).first()
    return price


# EOF
