from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView

from .views import (
    CheckEmailVerifiedView,
    ClientListView,
    GoogleSigninView,
    MeView,
    PreferencesView,
    SendVerificationEmailView,
    SigninView,
    SignupView,
    VerifyEmailView,
)

urlpatterns = [
    path("auth/signup/", SignupView.as_view(), name="signup"),
    path("auth/verify-email/<str:uidb64>/<str:token>/", VerifyEmailView.as_view(), name="verify-email"),
    path("auth/check-email-verified/<uuid:uid>/", CheckEmailVerifiedView.as_view(), name="check-email-verified"),
    path("auth/send-verification-email/", SendVerificationEmailView.as_view(), name="send-verification-email"),
    path("auth/signin/", SigninView.as_view(), name="signin"),
    path("auth/signin-google/", GoogleSigninView.as_view(), name="signin-google"),
    path("auth/refresh/", TokenRefreshView.as_view(), name="refresh"),
    path("users/me/", MeView.as_view(), name="user-me"),
    path("users/preferences/", PreferencesView.as_view(), name="user-preferences"),
    path("clients/", ClientListView.as_view(), name="client-list"),
]
