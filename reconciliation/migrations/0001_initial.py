from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("library", "0001_initial"),
        ("inventory", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="LineItemRecord",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("original_invoice_number", models.CharField(max_length=120)),
                ("report_number", models.CharField(blank=True, max_length=160)),
                ("received_date", models.DateField()),
                ("received_quantity", models.PositiveIntegerField(default=0)),
                ("rejected_quantity", models.PositiveIntegerField(default=0)),
                ("sent_to_vendor", models.PositiveIntegerField(default=0)),
                ("received_back", models.PositiveIntegerField(default=0)),
                ("scrapped", models.PositiveIntegerField(default=0)),
                ("short_quantity", models.PositiveIntegerField(default=0)),
                ("short_received_back", models.PositiveIntegerField(default=0)),
                ("unit_price", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("reason", models.CharField(blank=True, max_length=255)),
                ("version", models.PositiveIntegerField(default=0)),
                (
                    "brand",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT, related_name="line_items", to="library.brand"
                    ),
                ),
                (
                    "sku",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT, related_name="line_items", to="library.sku"
                    ),
                ),
                (
                    "source_line",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="receiving_lines",
                        to="reconciliation.lineitemrecord",
                    ),
                ),
                (
                    "vendor",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT, related_name="line_items", to="library.vendor"
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["original_invoice_number"], name="line_item_invoice_idx"),
                    models.Index(fields=["received_date"], name="line_item_received_date_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            (
                                "rejected_quantity__gte",
                                models.F("sent_to_vendor") + models.F("received_back") + models.F("scrapped"),
                            )
                        ),
                        name="rejection_buckets_within_rejected",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("short_received_back__lte", models.F("short_quantity"))),
                        name="short_received_within_short",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("rejected_quantity__lte", models.F("received_quantity"))),
                        name="rejected_within_received",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(("report_number", ""), _negated=True),
                        fields=("report_number",),
                        name="unique_report_number",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ResolutionEvent",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "action",
                    models.CharField(
                        choices=[
                            ("send_to_vendor", "Sent to vendor"),
                            ("receive_from_vendor", "Received from vendor"),
                            ("scrap", "Scrapped"),
                            ("short_receive_back", "Short received back"),
                        ],
                        max_length=32,
                    ),
                ),
                ("quantity", models.PositiveIntegerField()),
                ("short_portion", models.PositiveIntegerField(default=0)),
                ("action_date", models.DateField()),
                ("reason", models.CharField(blank=True, max_length=255)),
                (
                    "condition",
                    models.CharField(
                        blank=True,
                        choices=[("replaced", "Replaced"), ("repaired", "Repaired"), ("as-is", "Returned as-is")],
                        max_length=16,
                    ),
                ),
                (
                    "scrap_reason",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("beyond-repair", "Beyond repair"),
                            ("expired", "Expired"),
                            ("vendor-declined", "Vendor declined return"),
                            ("other", "Other"),
                        ],
                        max_length=32,
                    ),
                ),
                ("scrap_note", models.CharField(blank=True, max_length=255)),
                ("invoice_reference", models.CharField(blank=True, max_length=120)),
                ("unit_price", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "approved_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="approved_events",
                        to="library.teammember",
                    ),
                ),
                (
                    "brand",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                        to="library.brand",
                    ),
                ),
                (
                    "line_item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="events",
                        to="reconciliation.lineitemrecord",
                    ),
                ),
                (
                    "movement",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="resolution_events",
                        to="inventory.stockmovement",
                    ),
                ),
                (
                    "performed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "received_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="received_events",
                        to="library.teammember",
                    ),
                ),
                (
                    "receiving_line",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="originating_events",
                        to="reconciliation.lineitemrecord",
                    ),
                ),
                (
                    "vendor",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                        to="library.vendor",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("quantity__gt", 0)), name="event_positive_qty"),
                ],
            },
        ),
    ]
