from django.urls import path

from .views import ContactMessageListView, ContactSubmitView, NewsletterSubscribeView

urlpatterns = [
    path("newsletter/subscribe/", NewsletterSubscribeView.as_view(), name="newsletter-subscribe"),
    path("contact/submit/", ContactSubmitView.as_view(), name="contact-submit"),
    path("messages/", ContactMessageListView.as_view(), name="contact-messages"),
]
