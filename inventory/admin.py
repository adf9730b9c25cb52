"""Admin registrations for inventory app."""

from django.contrib import admin

from .models import StockMovement


@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    list_display = ("id", "sku", "movement_type", "quantity", "unit_price", "counterparty", "movement_date", "reference")
    list_filter = ("movement_type",)
    search_fields = ("sku__code", "reference")

    # The movement log is append-only; rows are written by services only.
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# EOF
