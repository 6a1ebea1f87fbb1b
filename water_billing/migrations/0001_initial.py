import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
import simple_history.models
import water_billing.models
import water_billing.utils.utils
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Plan",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("name", models.CharField(max_length=100)),
                (
                    "is_consumption_based",
                    models.BooleanField(
                        default=False,
                        help_text="Consumption plans bill per liter delivered, fixed plans bill a flat monthly fee",
                    ),
                ),
                (
                    "price",
                    models.DecimalField(
                        decimal_places=4,
                        help_text="Price per liter for consumption plans, monthly fee for fixed plans",
                        max_digits=14,
                        validators=[django.core.validators.MinValueValidator(0)],
                    ),
                ),
                (
                    "is_prepaid",
                    models.BooleanField(
                        default=False,
                        help_text="Prepaid plans draw down credits and are never invoiced monthly",
                    ),
                ),
                (
                    "created",
                    models.DateTimeField(default=water_billing.utils.utils.now_utc),
                ),
            ],
        ),
        migrations.CreateModel(
            name="Account",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "account_id",
                    models.CharField(
                        default=water_billing.models.account_uuid,
                        help_text="Stable account id. Its first five characters prefix every invoice id",
                        max_length=64,
                        unique=True,
                    ),
                ),
                (
                    "client_id",
                    models.CharField(
                        blank=True,
                        help_text="Human facing client code",
                        max_length=32,
                        null=True,
                    ),
                ),
                ("business_name", models.CharField(max_length=200)),
                (
                    "email",
                    models.EmailField(blank=True, max_length=100, null=True),
                ),
                (
                    "role",
                    models.CharField(
                        choices=[("User", "User"), ("Admin", "Admin")],
                        default="User",
                        max_length=10,
                    ),
                ),
                (
                    "account_type",
                    models.CharField(
                        choices=[
                            ("Single", "Single"),
                            ("Parent", "Parent"),
                            ("Branch", "Branch"),
                        ],
                        default="Single",
                        max_length=10,
                    ),
                ),
                (
                    "plan_change_effective_date",
                    models.DateTimeField(blank=True, null=True),
                ),
                ("previous_is_prepaid", models.BooleanField(default=False)),
                (
                    "plan_activated_at",
                    models.DateTimeField(blank=True, null=True),
                ),
                ("is_prepaid", models.BooleanField(default=False)),
                ("auto_refill_enabled", models.BooleanField(default=False)),
                (
                    "liters_per_month",
                    models.DecimalField(
                        decimal_places=4, default=Decimal("0"), max_digits=14
                    ),
                ),
                (
                    "bonus_liters",
                    models.DecimalField(
                        decimal_places=4, default=Decimal("0"), max_digits=14
                    ),
                ),
                (
                    "last_month_rollover",
                    models.DecimalField(
                        decimal_places=4, default=Decimal("0"), max_digits=14
                    ),
                ),
                (
                    "total_consumption_liters",
                    models.DecimalField(
                        decimal_places=4,
                        default=Decimal("0"),
                        help_text="Liters still available to a fixed plan account this month",
                        max_digits=14,
                    ),
                ),
                (
                    "gallon_price",
                    models.DecimalField(
                        decimal_places=2, default=Decimal("0"), max_digits=12
                    ),
                ),
                (
                    "gallon_payment_type",
                    models.CharField(
                        blank=True,
                        choices=[("Monthly", "Monthly"), ("One-Time", "One-Time")],
                        max_length=10,
                        null=True,
                    ),
                ),
                (
                    "dispenser_price",
                    models.DecimalField(
                        decimal_places=2, default=Decimal("0"), max_digits=12
                    ),
                ),
                (
                    "dispenser_payment_type",
                    models.CharField(
                        blank=True,
                        choices=[("Monthly", "Monthly"), ("One-Time", "One-Time")],
                        max_length=10,
                        null=True,
                    ),
                ),
                (
                    "top_up_balance_credits",
                    models.DecimalField(
                        decimal_places=4,
                        default=Decimal("0"),
                        help_text="Prepaid balance of a parent account, debited by branch deliveries",
                        max_digits=16,
                    ),
                ),
                ("last_billed_date", models.DateTimeField(blank=True, null=True)),
                (
                    "created",
                    models.DateTimeField(default=water_billing.utils.utils.now_utc),
                ),
                (
                    "parent",
                    models.ForeignKey(
                        blank=True,
                        help_text="The parent account whose credits pay for this branch",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="branches",
                        to="water_billing.account",
                    ),
                ),
                (
                    "previous_plan",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                        to="water_billing.plan",
                    ),
                ),
                (
                    "pending_plan",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                        to="water_billing.plan",
                    ),
                ),
                (
                    "plan",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                        to="water_billing.plan",
                    ),
                ),
            ],
            options={
                "indexes": [
                    models.Index(
                        fields=["role", "account_type"], name="account_role_type_idx"
                    ),
                    models.Index(fields=["parent"], name="account_parent_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="DeliveryRecord",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "delivery_id",
                    models.UUIDField(default=uuid.uuid4, editable=False, unique=True),
                ),
                (
                    "delivery_date",
                    models.DateTimeField(default=water_billing.utils.utils.now_utc),
                ),
                ("volume_containers", models.PositiveIntegerField(default=0)),
                (
                    "liters",
                    models.DecimalField(
                        blank=True,
                        decimal_places=4,
                        help_text="Measured liters, overrides the container conversion when set",
                        max_digits=14,
                        null=True,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("Pending", "Pending"),
                            ("In Transit", "In Transit"),
                            ("Delivered", "Delivered"),
                        ],
                        default="Pending",
                        max_length=20,
                    ),
                ),
                ("admin_notes", models.TextField(blank=True, default="")),
                (
                    "account",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="deliveries",
                        to="water_billing.account",
                    ),
                ),
            ],
            options={
                "indexes": [
                    models.Index(
                        fields=["account", "delivery_date"],
                        name="delivery_account_date_idx",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="Invoice",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "invoice_id",
                    models.CharField(
                        help_text="INV-{first 5 chars of the account id}-{YYYYMM}, one per account per cycle",
                        max_length=32,
                        unique=True,
                    ),
                ),
                (
                    "issue_date",
                    models.DateTimeField(default=water_billing.utils.utils.now_utc),
                ),
                ("description", models.CharField(max_length=255)),
                (
                    "amount",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=14,
                        validators=[django.core.validators.MinValueValidator(0)],
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("Upcoming", "Upcoming"),
                            ("Pending Review", "Pending Review"),
                            ("Paid", "Paid"),
                            ("Overdue", "Overdue"),
                            ("Rejected", "Rejected"),
                        ],
                        default="Upcoming",
                        max_length=20,
                    ),
                ),
                ("billing_period", models.CharField(max_length=50)),
                ("cycle_start", models.DateTimeField()),
                ("cycle_end", models.DateTimeField()),
                (
                    "consumed_liters",
                    models.DecimalField(
                        decimal_places=4, default=Decimal("0"), max_digits=14
                    ),
                ),
                (
                    "plan",
                    models.ForeignKey(
                        blank=True,
                        help_text="The plan the cycle was priced under",
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                        to="water_billing.plan",
                    ),
                ),
                (
                    "proof_of_payment_url",
                    models.URLField(blank=True, max_length=300, null=True),
                ),
                ("rejection_reason", models.TextField(blank=True, null=True)),
                (
                    "updated",
                    models.DateTimeField(default=water_billing.utils.utils.now_utc),
                ),
                (
                    "account",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="invoices",
                        to="water_billing.account",
                    ),
                ),
            ],
            options={
                "indexes": [
                    models.Index(
                        fields=["account", "status"], name="invoice_account_status_idx"
                    ),
                    models.Index(
                        fields=["account", "-issue_date"],
                        name="invoice_account_issued_idx",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PendingCharge",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("description", models.CharField(max_length=255)),
                (
                    "amount",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Positive for extra charges, negative for deductions",
                        max_digits=12,
                    ),
                ),
                (
                    "date_added",
                    models.DateTimeField(default=water_billing.utils.utils.now_utc),
                ),
                (
                    "account",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="pending_charges",
                        to="water_billing.account",
                    ),
                ),
                (
                    "invoice",
                    models.ForeignKey(
                        blank=True,
                        help_text="Set once the charge has been billed",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="manual_charges",
                        to="water_billing.invoice",
                    ),
                ),
            ],
        ),
        migrations.CreateModel(
            name="ParentCreditTransaction",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "transaction_id",
                    models.UUIDField(default=uuid.uuid4, editable=False, unique=True),
                ),
                (
                    "transaction_type",
                    models.CharField(
                        choices=[("Credit", "Credit"), ("Debit", "Debit")],
                        max_length=10,
                    ),
                ),
                (
                    "amount_credits",
                    models.DecimalField(
                        decimal_places=4,
                        max_digits=16,
                        validators=[django.core.validators.MinValueValidator(0)],
                    ),
                ),
                (
                    "description",
                    models.CharField(blank=True, default="", max_length=255),
                ),
                (
                    "date",
                    models.DateTimeField(default=water_billing.utils.utils.now_utc),
                ),
                (
                    "account",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="credit_transactions",
                        to="water_billing.account",
                    ),
                ),
                (
                    "branch",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to="water_billing.account",
                    ),
                ),
                (
                    "delivery",
                    models.OneToOneField(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="parent_debit",
                        to="water_billing.deliveryrecord",
                    ),
                ),
            ],
            options={
                "ordering": ["-date"],
            },
        ),
        migrations.CreateModel(
            name="HistoricalAccount",
            fields=[
                (
                    "id",
                    models.BigIntegerField(
                        auto_created=True, blank=True, db_index=True, verbose_name="ID"
                    ),
                ),
                (
                    "account_id",
                    models.CharField(
                        db_index=True,
                        default=water_billing.models.account_uuid,
                        help_text="Stable account id. Its first five characters prefix every invoice id",
                        max_length=64,
                    ),
                ),
                (
                    "client_id",
                    models.CharField(
                        blank=True,
                        help_text="Human facing client code",
                        max_length=32,
                        null=True,
                    ),
                ),
                ("business_name", models.CharField(max_length=200)),
                (
                    "email",
                    models.EmailField(blank=True, max_length=100, null=True),
                ),
                (
                    "role",
                    models.CharField(
                        choices=[("User", "User"), ("Admin", "Admin")],
                        default="User",
                        max_length=10,
                    ),
                ),
                (
                    "account_type",
                    models.CharField(
                        choices=[
                            ("Single", "Single"),
                            ("Parent", "Parent"),
                            ("Branch", "Branch"),
                        ],
                        default="Single",
                        max_length=10,
                    ),
                ),
                (
                    "plan_change_effective_date",
                    models.DateTimeField(blank=True, null=True),
                ),
                ("previous_is_prepaid", models.BooleanField(default=False)),
                (
                    "plan_activated_at",
                    models.DateTimeField(blank=True, null=True),
                ),
                ("is_prepaid", models.BooleanField(default=False)),
                ("auto_refill_enabled", models.BooleanField(default=False)),
                (
                    "liters_per_month",
                    models.DecimalField(
                        decimal_places=4, default=Decimal("0"), max_digits=14
                    ),
                ),
                (
                    "bonus_liters",
                    models.DecimalField(
                        decimal_places=4, default=Decimal("0"), max_digits=14
                    ),
                ),
                (
                    "last_month_rollover",
                    models.DecimalField(
                        decimal_places=4, default=Decimal("0"), max_digits=14
                    ),
                ),
                (
                    "total_consumption_liters",
                    models.DecimalField(
                        decimal_places=4,
                        default=Decimal("0"),
                        help_text="Liters still available to a fixed plan account this month",
                        max_digits=14,
                    ),
                ),
                (
                    "gallon_price",
                    models.DecimalField(
                        decimal_places=2, default=Decimal("0"), max_digits=12
                    ),
                ),
                (
                    "gallon_payment_type",
                    models.CharField(
                        blank=True,
                        choices=[("Monthly", "Monthly"), ("One-Time", "One-Time")],
                        max_length=10,
                        null=True,
                    ),
                ),
                (
                    "dispenser_price",
                    models.DecimalField(
                        decimal_places=2, default=Decimal("0"), max_digits=12
                    ),
                ),
                (
                    "dispenser_payment_type",
                    models.CharField(
                        blank=True,
                        choices=[("Monthly", "Monthly"), ("One-Time", "One-Time")],
                        max_length=10,
                        null=True,
                    ),
                ),
                (
                    "top_up_balance_credits",
                    models.DecimalField(
                        decimal_places=4,
                        default=Decimal("0"),
                        help_text="Prepaid balance of a parent account, debited by branch deliveries",
                        max_digits=16,
                    ),
                ),
                ("last_billed_date", models.DateTimeField(blank=True, null=True)),
                (
                    "created",
                    models.DateTimeField(default=water_billing.utils.utils.now_utc),
                ),
                ("history_id", models.AutoField(primary_key=True, serialize=False)),
                ("history_date", models.DateTimeField(db_index=True)),
                ("history_change_reason", models.CharField(max_length=100, null=True)),
                (
                    "history_type",
                    models.CharField(
                        choices=[("+", "Created"), ("~", "Changed"), ("-", "Deleted")],
                        max_length=1,
                    ),
                ),
                (
                    "history_user",
                    models.ForeignKey(
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "parent",
                    models.ForeignKey(
                        blank=True,
                        db_constraint=False,
                        help_text="The parent account whose credits pay for this branch",
                        null=True,
                        on_delete=django.db.models.deletion.DO_NOTHING,
                        related_name="+",
                        to="water_billing.account",
                    ),
                ),
                (
                    "previous_plan",
                    models.ForeignKey(
                        blank=True,
                        db_constraint=False,
                        null=True,
                        on_delete=django.db.models.deletion.DO_NOTHING,
                        related_name="+",
                        to="water_billing.plan",
                    ),
                ),
                (
                    "pending_plan",
                    models.ForeignKey(
                        blank=True,
                        db_constraint=False,
                        null=True,
                        on_delete=django.db.models.deletion.DO_NOTHING,
                        related_name="+",
                        to="water_billing.plan",
                    ),
                ),
                (
                    "plan",
                    models.ForeignKey(
                        blank=True,
                        db_constraint=False,
                        null=True,
                        on_delete=django.db.models.deletion.DO_NOTHING,
                        related_name="+",
                        to="water_billing.plan",
                    ),
                ),
            ],
            options={
                "verbose_name": "historical account",
                "verbose_name_plural": "historical accounts",
                "ordering": ("-history_date", "-history_id"),
                "get_latest_by": ("history_date", "history_id"),
            },
            bases=(simple_history.models.HistoricalChanges, models.Model),
        ),
        migrations.CreateModel(
            name="HistoricalInvoice",
            fields=[
                (
                    "id",
                    models.BigIntegerField(
                        auto_created=True, blank=True, db_index=True, verbose_name="ID"
                    ),
                ),
                (
                    "invoice_id",
                    models.CharField(
                        db_index=True,
                        help_text="INV-{first 5 chars of the account id}-{YYYYMM}, one per account per cycle",
                        max_length=32,
                    ),
                ),
                (
                    "issue_date",
                    models.DateTimeField(default=water_billing.utils.utils.now_utc),
                ),
                ("description", models.CharField(max_length=255)),
                (
                    "amount",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=14,
                        validators=[django.core.validators.MinValueValidator(0)],
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("Upcoming", "Upcoming"),
                            ("Pending Review", "Pending Review"),
                            ("Paid", "Paid"),
                            ("Overdue", "Overdue"),
                            ("Rejected", "Rejected"),
                        ],
                        default="Upcoming",
                        max_length=20,
                    ),
                ),
                ("billing_period", models.CharField(max_length=50)),
                ("cycle_start", models.DateTimeField()),
                ("cycle_end", models.DateTimeField()),
                (
                    "consumed_liters",
                    models.DecimalField(
                        decimal_places=4, default=Decimal("0"), max_digits=14
                    ),
                ),
                (
                    "proof_of_payment_url",
                    models.URLField(blank=True, max_length=300, null=True),
                ),
                ("rejection_reason", models.TextField(blank=True, null=True)),
                (
                    "updated",
                    models.DateTimeField(default=water_billing.utils.utils.now_utc),
                ),
                ("history_id", models.AutoField(primary_key=True, serialize=False)),
                ("history_date", models.DateTimeField(db_index=True)),
                ("history_change_reason", models.CharField(max_length=100, null=True)),
                (
                    "history_type",
                    models.CharField(
                        choices=[("+", "Created"), ("~", "Changed"), ("-", "Deleted")],
                        max_length=1,
                    ),
                ),
                (
                    "plan",
                    models.ForeignKey(
                        blank=True,
                        db_constraint=False,
                        help_text="The plan the cycle was priced under",
                        null=True,
                        on_delete=django.db.models.deletion.DO_NOTHING,
                        related_name="+",
                        to="water_billing.plan",
                    ),
                ),
                (
                    "account",
                    models.ForeignKey(
                        blank=True,
                        db_constraint=False,
                        null=True,
                        on_delete=django.db.models.deletion.DO_NOTHING,
                        related_name="+",
                        to="water_billing.account",
                    ),
                ),
                (
                    "history_user",
                    models.ForeignKey(
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "historical invoice",
                "verbose_name_plural": "historical invoices",
                "ordering": ("-history_date", "-history_id"),
                "get_latest_by": ("history_date", "history_id"),
            },
            bases=(simple_history.models.HistoricalChanges, models.Model),
        ),
    ]
