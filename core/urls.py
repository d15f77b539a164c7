from django.contrib import admin
from django.urls import path, include



urlpatterns = [
    path("admin/", admin.site.urls),
    path('api/', include('account.urls')),
    path('api/', include('courier.urls')),
    path('api/', include('order.urls')),
    path('api/feedback/', include('feedback.urls')),
    path('api/notifications/', include('notifications.urls')),
    path('api/upload/', include('storage.urls')),
    path('api/settings/', include('sitesettings.urls')),
    path('api/', include('marketing.urls')),
]
