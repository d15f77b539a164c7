from rest_framework import permissions, status
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.response import Response
from rest_framework.views import APIView

from .services import upload_file, validate_upload


class UploadView(APIView):
    permission_classes = [permissions.IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser]

    def post(self, request):
        uploaded = validate_upload(request.FILES.get("file"))
        stored = upload_file(uploaded)
        return Response(stored.as_dict(), status=status.HTTP_200_OK)
