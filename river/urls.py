"""river URL Configuration

Only the Django admin is exposed; invoices are reviewed there by operators.
"""
from django.contrib import admin
from django.urls import path

urlpatterns = [
    path("admin/", admin.site.urls),
]
