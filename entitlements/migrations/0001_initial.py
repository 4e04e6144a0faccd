import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Entitlement",
            fields=[
                ("user_id", models.CharField(max_length=255, primary_key=True, serialize=False)),
                (
                    "plan",
                    models.CharField(
                        choices=[("basic", "Basic"), ("pro", "Pro")],
                        default="basic",
                        max_length=10,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        default="active",
                        help_text="Entitlement status or raw provider status",
                        max_length=50,
                    ),
                ),
                (
                    "billing_customer_id",
                    models.CharField(blank=True, max_length=255, null=True, unique=True),
                ),
                (
                    "billing_subscription_id",
                    models.CharField(blank=True, db_index=True, max_length=255, null=True),
                ),
                (
                    "license_key",
                    models.CharField(blank=True, max_length=100, null=True, unique=True),
                ),
                ("promotion_code", models.CharField(blank=True, max_length=255, null=True)),
                ("activated_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                "db_table": "entitlements",
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["plan", "status"], name="entitlements_plan_status_idx")],
            },
        ),
        migrations.CreateModel(
            name="ProcessedWebhookEvent",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("event_id", models.CharField(max_length=255, unique=True)),
                ("event_type", models.CharField(max_length=100)),
                ("processed_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "db_table": "processed_webhook_events",
                "ordering": ["-processed_at"],
                "indexes": [models.Index(fields=["processed_at"], name="processed_webhook_at_idx")],
            },
        ),
    ]
