from django.contrib import admin

from .models import Order


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("id", "client", "courier", "status", "amount", "created_at")
    list_filter = ("status", "package_type", "urgency")
    search_fields = ("id", "client__email", "pickup_address", "delivery_address")
