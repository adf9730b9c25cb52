"""Selectors for inventory domain (single-location)."""

from django.db.models import Q, Sum

from .models import StockMovement


def on_hand_quantity(sku_id: int) -> int:
    """Net physical stock for a SKU, derived from the movement log."""

    totals = StockMovement.objects.filter(sku_id=sku_id).aggregate(
        inbound=Sum("quantity", filter=Q(movement_type=StockMovement.TYPE_INBOUND)),
        outbound=Sum("quantity", filter=Q(movement_type=StockMovement.TYPE_OUTBOUND)),
    )
    return int(totals["inbound"] or 0) - int(totals["outbound"] or 0)


def list_movements_for_sku(sku_id: int):
    return list(
        StockMovement.objects.filter(sku_id=sku_id)
        .order_by("-created_at", "-id")
        .values("id", "movement_type", "quantity", "unit_price", "counterparty_id", "movement_date", "reference")
    )


# EOF
