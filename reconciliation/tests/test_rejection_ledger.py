import datetime
from decimal import Decimal

import pytest
from django.core.exceptions import ImproperlyConfigured
from inventory.models import StockMovement
from inventory.services import InvalidAmount
from library.tests.factories import BrandFactory, SkuFactory, TeamMemberFactory, VendorFactory
from reconciliation.models import LineItemRecord, ResolutionEvent
from reconciliation.services import (
    FieldTooLong,
    InvalidQuantity,
    LineItemNotFound,
    MissingField,
    StockLogFailure,
    create_line_item,
    receive_from_vendor,
    scrap,
    send_to_vendor,
)
from reconciliation.tests.factories import LineItemRecordFactory, UserFactory

TODAY = datetime.date(2024, 3, 15)


def _counters(item):
    item.refresh_from_db()
    return (item.sent_to_vendor, item.received_back, item.scrapped, item.version)


def _send(item, quantity, **overrides):
    kwargs = {
        "line_item_id": item.id,
        "quantity": quantity,
        "vendor_id": item.vendor_id,
        "brand_id": item.brand_id,
        "action_date": TODAY,
        "reason": "Defective",
    }
    kwargs.update(overrides)
    return send_to_vendor(**kwargs)


def _receive(item, quantity, short_portion=0, **overrides):
    kwargs = {
        "line_item_id": item.id,
        "quantity": quantity,
        "vendor_id": item.vendor_id,
        "brand_id": item.brand_id,
        "action_date": TODAY,
        "condition": "replaced",
        "short_portion": short_portion,
    }
    kwargs.update(overrides)
    return receive_from_vendor(**kwargs)


def _scrap(item, quantity, **overrides):
    kwargs = {
        "line_item_id": item.id,
        "quantity": quantity,
        "action_date": TODAY,
        "scrap_reason": "beyond-repair",
        "approved_by_id": TeamMemberFactory().id,
    }
    kwargs.update(overrides)
    return scrap(**kwargs)


@pytest.mark.django_db
def test_send_scrap_receive_walkthrough():
    item = LineItemRecordFactory(rejected_quantity=10, sku=SkuFactory(unit_price=Decimal("12.50")))

    item = _send(item, 6)
    assert item.sent_to_vendor == 6
    assert item.net_rejected == 4

    item = _scrap(item, 4)
    assert item.scrapped == 4
    assert item.net_rejected == 0

    item = _receive(item, 6, short_portion=1)
    assert item.sent_to_vendor == 0
    assert item.received_back == 6
    assert item.net_rejected == 0
    assert item.version == 3

    movements = StockMovement.objects.filter(sku_id=item.sku_id).order_by("id")
    assert [(m.movement_type, m.quantity) for m in movements] == [("out", 6), ("in", 5)]
    assert movements[0].unit_price == Decimal("12.50")
    assert movements[0].reference == item.report_number

    receiving = LineItemRecord.objects.get(source_line=item)
    assert receiving.short_quantity == 1
    assert receiving.received_quantity == 5
    assert receiving.rejected_quantity == 0
    assert receiving.available_short == 1


@pytest.mark.django_db
def test_conservation_holds_after_every_step():
    item = LineItemRecordFactory(rejected_quantity=12)
    steps = [
        lambda: _send(item, 5),
        lambda: _scrap(item, 2),
        lambda: _receive(item, 3),
        lambda: _send(item, 4),
        lambda: _receive(item, 6, short_portion=2),
        lambda: _scrap(item, 1),
    ]
    for step in steps:
        step()
        item.refresh_from_db()
        assert item.net_rejected >= 0
        assert item.sent_to_vendor + item.received_back + item.scrapped + item.net_rejected == item.rejected_quantity
    assert (item.sent_to_vendor, item.received_back, item.scrapped, item.net_rejected) == (0, 9, 3, 0)
    # The 2 units the vendor still owes live on the receiving line, not here.
    assert item.is_resolved
    assert sum(line.available_short for line in item.receiving_lines.all()) == 2


@pytest.mark.django_db
def test_send_more_than_net_rejected_is_refused_without_changes():
    item = LineItemRecordFactory(rejected_quantity=5)
    _send(item, 2)
    before = _counters(item)

    with pytest.raises(InvalidQuantity) as excinfo:
        _send(item, item.net_rejected + 1)

    assert excinfo.value.requested == 4
    assert excinfo.value.available == 3
    assert _counters(item) == before
    assert StockMovement.objects.filter(sku_id=item.sku_id).count() == 1


@pytest.mark.django_db
@pytest.mark.parametrize("quantity", [0, -1, 2.5, True])
def test_non_positive_or_fractional_quantity_is_refused(quantity):
    item = LineItemRecordFactory(rejected_quantity=5)
    with pytest.raises(InvalidQuantity):
        _send(item, quantity)
    assert _counters(item) == (0, 0, 0, 0)


@pytest.mark.django_db
def test_receive_more_than_sent_is_refused():
    item = LineItemRecordFactory(rejected_quantity=5)
    _send(item, 2)
    with pytest.raises(InvalidQuantity):
        _receive(item, 3)
    assert _counters(item) == (2, 0, 0, 1)


@pytest.mark.django_db
def test_short_portion_larger_than_quantity_is_refused():
    item = LineItemRecordFactory(rejected_quantity=5)
    _send(item, 3)
    with pytest.raises(InvalidQuantity):
        _receive(item, 2, short_portion=3)
    assert not LineItemRecord.objects.filter(source_line=item).exists()


@pytest.mark.django_db
def test_fully_short_receipt_books_obligation_without_stock_movement():
    item = LineItemRecordFactory(rejected_quantity=4)
    _send(item, 4)
    item = _receive(item, 4, short_portion=4)

    assert item.received_back == 4
    receiving = LineItemRecord.objects.get(source_line=item)
    assert receiving.short_quantity == 4
    assert receiving.received_quantity == 0
    assert StockMovement.objects.filter(sku_id=item.sku_id, movement_type="in").count() == 0
    event = ResolutionEvent.objects.get(line_item=item, action="receive_from_vendor")
    assert event.movement is None
    assert event.receiving_line == receiving


@pytest.mark.django_db
def test_scrap_without_approver_is_refused():
    item = LineItemRecordFactory(rejected_quantity=5)
    with pytest.raises(MissingField) as excinfo:
        _scrap(item, 2, approved_by_id=None)
    assert excinfo.value.field == "approved_by_id"
    assert _counters(item) == (0, 0, 0, 0)
    assert not ResolutionEvent.objects.exists()


@pytest.mark.django_db
def test_scrap_other_reason_requires_note():
    item = LineItemRecordFactory(rejected_quantity=5)
    with pytest.raises(MissingField) as excinfo:
        _scrap(item, 1, scrap_reason="other")
    assert excinfo.value.field == "scrap_note"

    item = _scrap(item, 1, scrap_reason="other", scrap_note="Water damage in transit")
    assert item.scrapped == 1


@pytest.mark.django_db
def test_scrap_appends_no_stock_movement():
    item = LineItemRecordFactory(rejected_quantity=5)
    _scrap(item, 5)
    assert StockMovement.objects.count() == 0


@pytest.mark.django_db
@pytest.mark.parametrize("field", ["vendor_id", "brand_id", "action_date", "reason"])
def test_send_requires_correlating_fields(field):
    item = LineItemRecordFactory(rejected_quantity=5)
    with pytest.raises(MissingField) as excinfo:
        _send(item, 1, **{field: None})
    assert excinfo.value.field == field


@pytest.mark.django_db
def test_blank_reason_counts_as_missing():
    item = LineItemRecordFactory(rejected_quantity=5)
    with pytest.raises(MissingField):
        _send(item, 1, reason="   ")


@pytest.mark.django_db
def test_receive_requires_condition():
    item = LineItemRecordFactory(rejected_quantity=5)
    _send(item, 2)
    with pytest.raises(MissingField):
        _receive(item, 1, condition="")


@pytest.mark.django_db
def test_unknown_line_item():
    with pytest.raises(LineItemNotFound):
        send_to_vendor(
            line_item_id=999999,
            quantity=1,
            vendor_id=1,
            brand_id=1,
            action_date=TODAY,
            reason="Defective",
        )


@pytest.mark.django_db
def test_stock_log_failure_rolls_back_counters(monkeypatch):
    item = LineItemRecordFactory(rejected_quantity=8)

    def boom(**kwargs):
        raise InvalidAmount("stock log unavailable")

    monkeypatch.setattr("reconciliation.services.append_movement", boom)

    with pytest.raises(StockLogFailure) as excinfo:
        _send(item, 3)

    assert isinstance(excinfo.value.__cause__, InvalidAmount)
    assert _counters(item) == (0, 0, 0, 0)
    assert not ResolutionEvent.objects.exists()


@pytest.mark.django_db
def test_stock_log_failure_on_receive_discards_receiving_line(monkeypatch):
    item = LineItemRecordFactory(rejected_quantity=8)
    _send(item, 4)

    def boom(**kwargs):
        raise InvalidAmount("stock log unavailable")

    monkeypatch.setattr("reconciliation.services.append_movement", boom)

    with pytest.raises(StockLogFailure):
        _receive(item, 4, short_portion=1)

    assert _counters(item) == (4, 0, 0, 1)
    assert not LineItemRecord.objects.filter(source_line=item).exists()


@pytest.mark.django_db
def test_explicit_price_wins_and_is_rounded():
    item = LineItemRecordFactory(rejected_quantity=5, sku=SkuFactory(unit_price=Decimal("9.00")))
    _send(item, 1, unit_price="4.005")
    movement = StockMovement.objects.get(sku_id=item.sku_id)
    assert movement.unit_price == Decimal("4.01")


@pytest.mark.django_db
def test_zero_explicit_price_falls_back_to_line_price():
    item = LineItemRecordFactory(rejected_quantity=5, sku=SkuFactory(unit_price=None), unit_price=Decimal("7.25"))
    _send(item, 1, unit_price=0)
    assert StockMovement.objects.get(sku_id=item.sku_id).unit_price == Decimal("7.25")


@pytest.mark.django_db
def test_placeholder_price_when_nothing_is_known(settings):
    settings.RECON_PLACEHOLDER_UNIT_PRICE = Decimal("0.01")
    item = LineItemRecordFactory(rejected_quantity=5, sku=SkuFactory(unit_price=None), unit_price=None)
    _send(item, 2)
    event = ResolutionEvent.objects.get(line_item=item)
    assert event.unit_price == Decimal("0.01")
    assert event.movement.unit_price == Decimal("0.01")


@pytest.mark.django_db
def test_negative_explicit_price_is_refused():
    item = LineItemRecordFactory(rejected_quantity=5)
    with pytest.raises(InvalidQuantity):
        _send(item, 1, unit_price=Decimal("-1.00"))
    assert _counters(item) == (0, 0, 0, 0)


@pytest.mark.django_db
def test_event_records_operator_and_metadata():
    user = UserFactory()
    approver = TeamMemberFactory()
    item = LineItemRecordFactory(rejected_quantity=5)
    _scrap(item, 2, approved_by_id=approver.id, scrap_reason="expired", user=user)

    event = ResolutionEvent.objects.get(line_item=item)
    assert event.action == "scrap"
    assert event.quantity == 2
    assert event.scrap_reason == "expired"
    assert event.approved_by == approver
    assert event.performed_by == user


@pytest.mark.django_db
def test_rejected_command_is_logged(caplog):
    item = LineItemRecordFactory(rejected_quantity=1)
    with caplog.at_level("WARNING", logger="stockrecon.reconciliation"):
        with pytest.raises(InvalidQuantity):
            _send(item, 2)
    record = next(r for r in caplog.records if r.msg == "reconciliation.rejected")
    assert record.operation == "send_to_vendor"
    assert record.error == "InvalidQuantity"
    assert record.line_item_id == item.id


@pytest.mark.django_db
def test_derived_receipt_reference_fits_and_matches_stock_log():
    item = create_line_item(
        sku_id=SkuFactory().id,
        vendor_id=VendorFactory().id,
        brand_id=BrandFactory().id,
        invoice_number="I" * 120,
        received_date=TODAY,
        received_quantity=5,
        rejected_quantity=2,
    )
    _send(item, 2)
    item = _receive(item, 2)

    receiving = LineItemRecord.objects.get(source_line=item)
    expected = f"RECV/{item.report_number}"
    assert receiving.original_invoice_number == expected
    assert len(expected) <= LineItemRecord._meta.get_field("original_invoice_number").max_length
    assert StockMovement.objects.get(sku_id=item.sku_id, movement_type="in").reference == expected
    assert ResolutionEvent.objects.get(line_item=item, action="receive_from_vendor").invoice_reference == expected


@pytest.mark.django_db
def test_overlong_receipt_reference_is_refused():
    item = LineItemRecordFactory(rejected_quantity=4)
    _send(item, 2)
    with pytest.raises(FieldTooLong) as excinfo:
        _receive(item, 2, invoice_reference="R" * 121)
    assert excinfo.value.field == "invoice_reference"
    assert _counters(item) == (2, 0, 0, 1)
    assert not LineItemRecord.objects.filter(source_line=item).exists()


@pytest.mark.django_db
@pytest.mark.parametrize("placeholder", [Decimal("0"), Decimal("-1.00"), Decimal("0.004")])
def test_non_positive_placeholder_price_is_a_configuration_error(settings, placeholder):
    settings.RECON_PLACEHOLDER_UNIT_PRICE = placeholder
    item = LineItemRecordFactory(rejected_quantity=5, sku=SkuFactory(unit_price=None), unit_price=None)
    with pytest.raises(ImproperlyConfigured):
        _send(item, 1)
    assert _counters(item) == (0, 0, 0, 0)
    assert not StockMovement.objects.exists()
