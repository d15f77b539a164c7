from django.urls import path

from .views import FeedbackSubmitView

urlpatterns = [
    path("submit/", FeedbackSubmitView.as_view(), name="feedback-submit"),
]
