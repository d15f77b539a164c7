from django.contrib import admin

from .models import Feedback


@admin.register(Feedback)
class FeedbackAdmin(admin.ModelAdmin):
    list_display = ("id", "courier", "client", "rating", "created_at")
    search_fields = ("courier__full_name", "client__email")
