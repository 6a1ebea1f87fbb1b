from django.contrib import admin
from simple_history.admin import SimpleHistoryAdmin

from .models import (
    Account,
    DeliveryRecord,
    Invoice,
    ParentCreditTransaction,
    PendingCharge,
    Plan,
)


class InvoiceAdmin(SimpleHistoryAdmin):
    list_display = ("invoice_id", "account", "billing_period", "amount", "status")
    list_filter = ("status",)
    search_fields = ("invoice_id", "account__account_id", "account__business_name")


class AccountAdmin(SimpleHistoryAdmin):
    list_display = (
        "account_id",
        "business_name",
        "account_type",
        "plan",
        "pending_plan",
        "plan_change_effective_date",
    )
    list_filter = ("account_type", "role", "is_prepaid")
    search_fields = ("account_id", "client_id", "business_name")


admin.site.register(Plan)
admin.site.register(Account, AccountAdmin)
admin.site.register(DeliveryRecord)
admin.site.register(PendingCharge)
admin.site.register(Invoice, InvoiceAdmin)
admin.site.register(ParentCreditTransaction)
