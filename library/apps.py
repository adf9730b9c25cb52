"""Django app configuration for the library app."""

from django.apps import AppConfig


class LibraryConfig(AppConfig):
    """Master data (vendors, brands, SKUs, team members)."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "library"
