"""Inventory services (single-location): append-only stock movements."""

import logging
from decimal import ROUND_HALF_UP, Decimal

from common.choices import MovementType
from django.db import transaction

from .models import REFERENCE_MAX_LENGTH, StockMovement

logger = logging.getLogger("stockrecon.inventory")

CENT = Decimal("0.01")


class MovementError(Exception):
    pass


class InvalidAmount(MovementError):
    """Raised when a movement quantity or unit price is not positive."""


def quantize_price(value) -> Decimal:
    """Round a price to the smallest currency unit."""

    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


@transaction.atomic
def append_movement(
    *,
    sku_id: int,
    movement_type: str,
    quantity: int,
    unit_price,
    movement_date,
    counterparty_id=None,
    remarks: str = "",
    reference: str = "",
) -> StockMovement:
    """Append one movement to the stock log.

    quantity: always positive; direction is given by movement_type.
    unit_price: rounded half-up to 0.01 before the positivity check.
    """
    if movement_type not in MovementType.values:
        raise MovementError(f"Unknown movement type: {movement_type}")
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidAmount("Movement quantity must be a positive integer")
    if len(reference) > REFERENCE_MAX_LENGTH:
        raise MovementError(f"Movement reference exceeds {REFERENCE_MAX_LENGTH} characters")
    if unit_price is None:
        raise InvalidAmount("Movement unit price is required")
    price = quantize_price(unit_price)
    if price <= 0:
        raise InvalidAmount("Movement unit price must be positive")

    movement = StockMovement.objects.create(
        sku_id=sku_id,
        movement_type=movement_type,
        quantity=quantity,
        unit_price=price,
        counterparty_id=counterparty_id,
        movement_date=movement_date,
        remarks=remarks[:255],
        reference=reference,
    )
    logger.info(
        "inventory.movement_appended",
        extra={
            "event": "inventory.movement_appended",
            "movement_id": movement.id,
            "sku_id": sku_id,
            "movement_type": movement_type,
            "quantity": quantity,
            "unit_price": str(price),
            "reference": movement.reference,
        },
    )
    return movement


# EOF
