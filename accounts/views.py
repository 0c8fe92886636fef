from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .identity import resolve_caller


class MeAPIView(APIView):
    """Identity the engine resolved from the presented token."""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        caller = resolve_caller(request)
        data = {
            "id": caller.id,
            "role": caller.role,
            "company_id": caller.company_id,
            "is_elevated": caller.is_elevated,
        }
        return Response({"status": 200, "data": data}, status=status.HTTP_200_OK)
