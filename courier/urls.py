from django.urls import path

from .models import Courier, CourierApplication
from .views import (
    AvailableCourierListView,
    CourierApproveView,
    CourierDetailView,
    CourierListView,
    CourierPublicDetailView,
    CourierSubmitView,
)


urlpatterns = [
    path("coursiers/", CourierListView.as_view(model=CourierApplication), name="courier-application-list"),
    path(
        "coursiers/createCourier/",
        CourierSubmitView.as_view(model=CourierApplication),
        name="courier-application-create",
    ),
    path("coursiers/createtrueCourier/", CourierSubmitView.as_view(model=Courier), name="courier-create"),
    path(
        "coursiers/<uuid:pk>/",
        CourierDetailView.as_view(model=CourierApplication),
        name="courier-application-detail",
    ),
    path("coursiers/<uuid:pk>/approve/", CourierApproveView.as_view(), name="courier-application-approve"),
    path("truecoursiers/", CourierListView.as_view(model=Courier), name="courier-list"),
    path("truecoursiers/available/", AvailableCourierListView.as_view(), name="courier-available"),
    path("truecoursiers/<uuid:pk>/", CourierDetailView.as_view(model=Courier), name="courier-detail"),
    path("truecoursiers/<uuid:pk>/public/", CourierPublicDetailView.as_view(), name="courier-public"),
]
