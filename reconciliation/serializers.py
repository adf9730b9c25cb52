"""Read serializers for reconciliation reports and history."""

from common.choices import RejectedStatus, ShortStatus
from rest_framework import serializers

from .models import ResolutionEvent


class _ReportRowSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    report_number = serializers.CharField(allow_blank=True)
    original_invoice_number = serializers.CharField()
    received_date = serializers.DateField()
    sku_id = serializers.IntegerField()
    sku_code = serializers.CharField()
    item_name = serializers.CharField()
    vendor_id = serializers.IntegerField()
    vendor_name = serializers.CharField()
    brand_id = serializers.IntegerField()
    brand_name = serializers.CharField()
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, allow_null=True)
    received_quantity = serializers.IntegerField()
    version = serializers.IntegerField()


class RejectedItemReportSerializer(_ReportRowSerializer):
    """One row of the rejected-item report."""

    rejected_quantity = serializers.IntegerField()
    sent_to_vendor = serializers.IntegerField()
    received_back = serializers.IntegerField()
    scrapped = serializers.IntegerField()
    net_rejected = serializers.IntegerField()
    reason = serializers.CharField(allow_blank=True)
    status = serializers.ChoiceField(choices=RejectedStatus.choices)


class ShortItemReportSerializer(_ReportRowSerializer):
    """One row of the short-item report."""

    short_quantity = serializers.IntegerField()
    short_received_back = serializers.IntegerField()
    available_short = serializers.IntegerField()
    source_line_id = serializers.IntegerField(allow_null=True)
    status = serializers.ChoiceField(choices=ShortStatus.choices)


class ResolutionEventSerializer(serializers.ModelSerializer):
    class Meta:
        model = ResolutionEvent
        fields = [
            "id",
            "action",
            "quantity",
            "short_portion",
            "vendor",
            "brand",
            "action_date",
            "reason",
            "condition",
            "scrap_reason",
            "scrap_note",
            "approved_by",
            "received_by",
            "invoice_reference",
            "unit_price",
            "movement",
            "receiving_line",
            "created_at",
        ]
        read_only_fields = fields


# EOF
