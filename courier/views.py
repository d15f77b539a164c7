from rest_framework import permissions, status
from rest_framework.generics import ListAPIView, RetrieveAPIView
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.response import Response
from rest_framework.views import APIView
from django.shortcuts import get_object_or_404

from account.permissions import IsAdministrator
from .models import Courier, CourierApplication
from .serializers import (
    CourierApplicationSerializer,
    CourierSerializer,
    CourierSubmissionSerializer,
    CourierUpdateSerializer,
    PublicCourierSerializer,
)
from .services import approve_application, delete_record, submit_application, update_record

SERIALIZERS = {
    CourierApplication: CourierApplicationSerializer,
    Courier: CourierSerializer,
}


class CourierSubmitView(APIView):
    """Create or replace the caller's record in either collection (``model`` set in urls)."""

    permission_classes = [permissions.IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser, JSONParser]
    model = CourierApplication

    def post(self, request):
        serializer = CourierSubmissionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        record = submit_application(
            request.user,
            self.model,
            serializer.validated_data,
            files=request.FILES,
            raw_data=request.data,
        )
        return Response(
            {
                "message": "Courier information saved",
                "id": str(record.pk),
                "data": SERIALIZERS[self.model](record).data,
            },
            status=status.HTTP_201_CREATED,
        )


class CourierListView(ListAPIView):
    permission_classes = [permissions.IsAuthenticated, IsAdministrator]
    model = CourierApplication

    def get_queryset(self):
        return self.model.objects.all()

    def get_serializer_class(self):
        return SERIALIZERS[self.model]


class CourierDetailView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsAdministrator]
    parser_classes = [MultiPartParser, FormParser, JSONParser]
    model = CourierApplication

    def get_object(self, pk):
        return get_object_or_404(self.model, pk=pk)

    def get(self, request, pk):
        record = self.get_object(pk)
        return Response(SERIALIZERS[self.model](record).data)

    def patch(self, request, pk):
        record = self.get_object(pk)
        serializer = CourierUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        record = update_record(record, serializer.validated_data, files=request.FILES)
        return Response(
            {"message": "Courier updated", "data": SERIALIZERS[self.model](record).data},
            status=status.HTTP_200_OK,
        )

    def delete(self, request, pk):
        record = self.get_object(pk)
        delete_record(record)
        return Response({"message": "Courier deleted"}, status=status.HTTP_200_OK)


class CourierApproveView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsAdministrator]

    def post(self, request, pk):
        courier = approve_application(pk)
        return Response(
            {"message": "Courier approved", "data": CourierSerializer(courier).data},
            status=status.HTTP_200_OK,
        )


class AvailableCourierListView(ListAPIView):
    permission_classes = [permissions.AllowAny]
    authentication_classes = []
    serializer_class = PublicCourierSerializer

    def get_queryset(self):
        return Courier.objects.filter(status=Courier.Status.ACTIVE).order_by("-rating", "full_name")


class CourierPublicDetailView(RetrieveAPIView):
    permission_classes = [permissions.IsAuthenticated]
    serializer_class = PublicCourierSerializer
    queryset = Courier.objects.all()
