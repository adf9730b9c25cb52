"""Admin registrations for reconciliation records.

Counters change only through the ledger services, so both models are
read-only here.
"""

from django.contrib import admin

from .models import LineItemRecord, ResolutionEvent


class ReadOnlyAdmin(admin.ModelAdmin):
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class ResolutionEventInline(admin.TabularInline):
    model = ResolutionEvent
    fk_name = "line_item"
    extra = 0
    can_delete = False
    fields = ("action", "quantity", "short_portion", "action_date", "invoice_reference", "movement", "created_at")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(LineItemRecord)
class LineItemRecordAdmin(ReadOnlyAdmin):
    list_display = (
        "report_number",
        "original_invoice_number",
        "sku",
        "vendor",
        "received_date",
        "rejected_quantity",
        "sent_to_vendor",
        "received_back",
        "scrapped",
        "short_quantity",
        "short_received_back",
    )
    search_fields = ("report_number", "original_invoice_number", "sku__code", "sku__item_name")
    list_filter = ("received_date", "vendor")
    inlines = [ResolutionEventInline]


@admin.register(ResolutionEvent)
class ResolutionEventAdmin(ReadOnlyAdmin):
    list_display = ("id", "line_item", "action", "quantity", "action_date", "performed_by", "created_at")
    list_filter = ("action",)
    search_fields = ("line_item__report_number", "invoice_reference")


# EOF
