from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("reconciliation", "0001_initial"),
        ("inventory", "0002_widen_movement_reference"),
    ]

    operations = [
        migrations.AlterField(
            model_name="lineitemrecord",
            name="original_invoice_number",
            field=models.CharField(max_length=180),
        ),
        migrations.AlterField(
            model_name="resolutionevent",
            name="invoice_reference",
            field=models.CharField(blank=True, max_length=180),
        ),
    ]
