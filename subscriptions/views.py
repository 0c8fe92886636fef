from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.identity import resolve_caller

from .limits import OBJECTIVE, check_creation_limit, get_subscription_info


class SubscriptionInfoAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        caller = resolve_caller(request)
        return Response({"status": 200, "data": get_subscription_info(caller.company_id)}, status=status.HTTP_200_OK)


class CanCreateOKRAPIView(APIView):
    """Whether the caller may create one more objective under the company's tier."""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        caller = resolve_caller(request)
        decision = check_creation_limit(caller.company_id, caller.id, caller.role, OBJECTIVE)
        return Response({"status": 200, "data": decision.as_dict()}, status=status.HTTP_200_OK)
