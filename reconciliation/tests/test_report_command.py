import datetime
import json
from io import StringIO

import pytest
from django.core.management import CommandError, call_command
from library.tests.factories import SkuFactory
from reconciliation.services import send_to_vendor
from reconciliation.tests.factories import LineItemRecordFactory


def _run(*args):
    out = StringIO()
    call_command("reconciliation_report", *args, stdout=out)
    return out.getvalue()


@pytest.mark.django_db
def test_json_rejected_report():
    item = LineItemRecordFactory(rejected_quantity=3, sku=SkuFactory(code="LAMP-01"))
    LineItemRecordFactory(rejected_quantity=0, short_quantity=2)

    rows = json.loads(_run("--format", "json"))
    assert len(rows) == 1
    assert rows[0]["id"] == item.id
    assert rows[0]["sku_code"] == "LAMP-01"
    assert rows[0]["net_rejected"] == 3
    assert rows[0]["status"] == "pending"


@pytest.mark.django_db
def test_table_short_report_with_filters():
    LineItemRecordFactory(rejected_quantity=0, short_quantity=2, original_invoice_number="INV-SHORT-1")
    LineItemRecordFactory(rejected_quantity=0, short_quantity=2, original_invoice_number="INV-OTHER")

    output = _run("--kind", "short", "--search", "short-1")
    assert "INV-SHORT-1" in output
    assert "INV-OTHER" not in output
    assert "Rows: 1" in output


@pytest.mark.django_db
def test_date_filters_are_parsed():
    LineItemRecordFactory(received_date=datetime.date(2024, 1, 5), original_invoice_number="JAN")
    LineItemRecordFactory(received_date=datetime.date(2024, 2, 5), original_invoice_number="FEB")

    rows = json.loads(_run("--from", "2024-02-01", "--to", "2024-02-28", "--format", "json"))
    assert [row["original_invoice_number"] for row in rows] == ["FEB"]


@pytest.mark.django_db
def test_invalid_dates_raise_command_error():
    with pytest.raises(CommandError):
        _run("--from", "05/02/2024")
    with pytest.raises(CommandError):
        _run("--from", "2024-03-01", "--to", "2024-02-01")


@pytest.mark.django_db
def test_history_for_line_item():
    item = LineItemRecordFactory(rejected_quantity=3)
    send_to_vendor(
        line_item_id=item.id,
        quantity=1,
        vendor_id=item.vendor_id,
        brand_id=item.brand_id,
        action_date=datetime.date(2024, 3, 1),
        reason="Scratched",
    )
    rows = json.loads(_run("--line-item", str(item.id), "--format", "json"))
    assert [row["action"] for row in rows] == ["send_to_vendor"]
    assert rows[0]["quantity"] == 1

    with pytest.raises(CommandError):
        _run("--line-item", "999999")


@pytest.mark.django_db
def test_limit_and_offset_page_the_report():
    for n in range(4):
        LineItemRecordFactory(
            received_date=datetime.date(2024, 1, 1) + datetime.timedelta(days=n),
            original_invoice_number=f"PAGE-{n}",
        )

    rows = json.loads(_run("--limit", "2", "--offset", "1", "--format", "json"))
    assert [row["original_invoice_number"] for row in rows] == ["PAGE-2", "PAGE-1"]

    output = _run("--limit", "1")
    assert "PAGE-3" in output
    assert "Rows: 1" in output

    with pytest.raises(CommandError):
        _run("--offset", "-1")
