from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from .serializers import FeedbackSerializer, FeedbackSubmitSerializer
from .services import FeedbackService


class FeedbackSubmitView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = FeedbackSubmitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        feedback = FeedbackService.submit(request.user, **serializer.validated_data)
        return Response(
            {"message": "Feedback submitted", "data": FeedbackSerializer(feedback).data},
            status=status.HTTP_201_CREATED,
        )
