from django.contrib import admin

from .models import User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ("email", "role", "email_verified", "provider", "is_active", "created_at")
    list_filter = ("role", "email_verified", "provider", "is_active")
    search_fields = ("email", "first_name", "last_name", "phone_number")
    exclude = ("password",)
