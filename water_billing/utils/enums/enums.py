from django.db import models
from django.utils.translation import gettext_lazy as _


class ACCOUNT_ROLE(models.TextChoices):
    USER = ("User", _("User"))
    ADMIN = ("Admin", _("Admin"))


class ACCOUNT_TYPE(models.TextChoices):
    SINGLE = ("Single", _("Single"))
    PARENT = ("Parent", _("Parent"))
    BRANCH = ("Branch", _("Branch"))


class DELIVERY_STATUS(models.TextChoices):
    PENDING = ("Pending", _("Pending"))
    IN_TRANSIT = ("In Transit", _("In Transit"))
    DELIVERED = ("Delivered", _("Delivered"))


class INVOICE_STATUS(models.TextChoices):
    UPCOMING = ("Upcoming", _("Upcoming"))
    PENDING_REVIEW = ("Pending Review", _("Pending Review"))
    PAID = ("Paid", _("Paid"))
    OVERDUE = ("Overdue", _("Overdue"))
    REJECTED = ("Rejected", _("Rejected"))


class EQUIPMENT_PAYMENT_TYPE(models.TextChoices):
    MONTHLY = ("Monthly", _("Monthly"))
    ONE_TIME = ("One-Time", _("One-Time"))


class CREDIT_TRANSACTION_TYPE(models.TextChoices):
    CREDIT = ("Credit", _("Credit"))
    DEBIT = ("Debit", _("Debit"))


class EMIT_RESULT(models.TextChoices):
    CREATED = ("created", _("Created"))
    UPDATED = ("updated", _("Updated"))
    ALREADY_RECONCILED = ("already_reconciled", _("Already reconciled"))
