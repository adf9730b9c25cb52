"""Admin registration for library models."""

from django.contrib import admin

from .models import Brand, Sku, TeamMember, Vendor


@admin.register(Vendor)
class VendorAdmin(admin.ModelAdmin):
    list_display = ("name", "code", "status")
    search_fields = ("name", "code")
    list_filter = ("status",)


@admin.register(Brand)
class BrandAdmin(admin.ModelAdmin):
    list_display = ("name", "status")
    search_fields = ("name",)


@admin.register(Sku)
class SkuAdmin(admin.ModelAdmin):
    list_display = ("code", "item_name", "brand", "unit_price", "status")
    search_fields = ("code", "item_name")
    list_filter = ("status", "brand")


@admin.register(TeamMember)
class TeamMemberAdmin(admin.ModelAdmin):
    list_display = ("name", "email", "is_active")
    search_fields = ("name", "email")
