from django.contrib import admin

from .models import Courier, CourierApplication


@admin.register(CourierApplication)
class CourierApplicationAdmin(admin.ModelAdmin):
    list_display = ("full_name", "email", "transport", "availability", "created_at")
    search_fields = ("full_name", "email", "phone")


@admin.register(Courier)
class CourierAdmin(admin.ModelAdmin):
    list_display = ("full_name", "email", "status", "availability", "delivery_count", "rating", "updated_at")
    list_filter = ("status", "availability", "transport")
    search_fields = ("full_name", "email", "phone")
