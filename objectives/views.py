from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.identity import resolve_caller

from . import selectors
from .choices import Level
from .exceptions import ValidationError
from .serializers import (
    ApprovalHistoryEntrySerializer,
    ContributorCreateSerializer,
    ContributorRoleSerializer,
    ContributorSerializer,
    KeyResultSerializer,
    KeyResultWriteSerializer,
    ObjectiveSerializer,
    ObjectiveSummarySerializer,
    ObjectiveWriteSerializer,
    ProgressHistoryEntrySerializer,
    TransitionSerializer,
)
from .services import ObjectiveLifecycle

lifecycle = ObjectiveLifecycle()


def ok(data, code=status.HTTP_200_OK):
    return Response({"status": code, "data": data}, status=code)


def serialize_tree(nodes):
    return [
        {**ObjectiveSummarySerializer(node["objective"]).data, "children": serialize_tree(node["children"])}
        for node in nodes
    ]


# Objective Views
class ObjectiveListCreateAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        caller = resolve_caller(request)
        filters = {name: request.query_params.get(name) for name in selectors.FILTERS}
        queryset = selectors.list_objectives(caller, filters)
        return ok(ObjectiveSerializer(queryset, many=True).data)

    def post(self, request):
        caller = resolve_caller(request)
        serializer = ObjectiveWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        objective = lifecycle.create_objective(caller, serializer.validated_data)
        return ok(ObjectiveSerializer(selectors.get_objective(caller, objective.pk)).data, status.HTTP_201_CREATED)


class ObjectiveDetailAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        caller = resolve_caller(request)
        return ok(ObjectiveSerializer(selectors.get_objective(caller, pk)).data)

    def put(self, request, pk):
        return self._update(request, pk, partial=False)

    def patch(self, request, pk):
        return self._update(request, pk, partial=True)

    def _update(self, request, pk, partial):
        caller = resolve_caller(request)
        serializer = ObjectiveWriteSerializer(data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        lifecycle.update_objective(caller, pk, serializer.validated_data)
        return ok(ObjectiveSerializer(selectors.get_objective(caller, pk)).data)

    def delete(self, request, pk):
        caller = resolve_caller(request)
        lifecycle.delete_objective(caller, pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


# Key Result Views
class KeyResultListCreateAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        caller = resolve_caller(request)
        objective = selectors.get_objective(caller, pk)
        return ok(KeyResultSerializer(objective.key_results.all(), many=True).data)

    def post(self, request, pk):
        caller = resolve_caller(request)
        serializer = KeyResultWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        key_result = lifecycle.add_key_result(caller, pk, serializer.validated_data)
        return ok(KeyResultSerializer(key_result).data, status.HTTP_201_CREATED)


class KeyResultDetailAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def put(self, request, pk):
        return self._update(request, pk, partial=False)

    def patch(self, request, pk):
        return self._update(request, pk, partial=True)

    def _update(self, request, pk, partial):
        caller = resolve_caller(request)
        serializer = KeyResultWriteSerializer(data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        key_result = lifecycle.update_key_result(caller, pk, serializer.validated_data)
        objective = selectors.get_objective(caller, key_result.objective_id)
        data = KeyResultSerializer(key_result).data
        data["objective_progress"] = objective.progress
        data["objective_status"] = objective.status
        return ok(data)

    def delete(self, request, pk):
        caller = resolve_caller(request)
        lifecycle.delete_key_result(caller, pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


# History Views
class ProgressHistoryAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        caller = resolve_caller(request)
        entries = selectors.get_progress_history(caller, pk)
        return ok(ProgressHistoryEntrySerializer(entries, many=True).data)


class ApprovalHistoryAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        caller = resolve_caller(request)
        entries = selectors.get_approval_history(caller, pk)
        return ok(ApprovalHistoryEntrySerializer(entries, many=True).data)


# Workflow Views
class ObjectiveTransitionAPIView(APIView):
    """One endpoint per workflow action; the action is bound in the URLconf."""

    permission_classes = [IsAuthenticated]

    def post(self, request, pk, action):
        caller = resolve_caller(request)
        serializer = TransitionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        lifecycle.transition(caller, pk, action, comment=serializer.validated_data.get("comment"))
        return ok(ObjectiveSerializer(selectors.get_objective(caller, pk)).data)


class PendingApprovalsAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        caller = resolve_caller(request)
        return ok(ObjectiveSerializer(selectors.get_pending_approvals(caller), many=True).data)


# Hierarchy Views
class ObjectiveChildrenAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        caller = resolve_caller(request)
        return ok(ObjectiveSerializer(selectors.get_children(caller, pk), many=True).data)


class ObjectiveAncestorsAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        caller = resolve_caller(request)
        return ok(ObjectiveSummarySerializer(selectors.get_ancestors(caller, pk), many=True).data)


class HierarchyAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        caller = resolve_caller(request)
        roots = selectors.get_hierarchy(caller, period=request.query_params.get("period"))
        return ok(serialize_tree(roots))


class AvailableParentsAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        caller = resolve_caller(request)
        level = request.query_params.get("level")
        if level not in Level.values:
            raise ValidationError(f"'level' must be one of {', '.join(Level.values)}", field="level")
        queryset = selectors.get_available_parents(caller, level, exclude_id=request.query_params.get("exclude_id"))
        return ok(ObjectiveSummarySerializer(queryset, many=True).data)


class StatsAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        caller = resolve_caller(request)
        return ok(selectors.get_stats(caller))


# Contributor Views
class ContributorListCreateAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        caller = resolve_caller(request)
        return ok(ContributorSerializer(selectors.get_contributors(caller, pk), many=True).data)

    def post(self, request, pk):
        caller = resolve_caller(request)
        serializer = ContributorCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        contributor = lifecycle.add_contributor(
            caller, pk, serializer.validated_data["user_id"], serializer.validated_data["role"]
        )
        return ok(ContributorSerializer(contributor).data, status.HTTP_201_CREATED)


class ContributorDetailAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def patch(self, request, pk, contributor_id):
        caller = resolve_caller(request)
        serializer = ContributorRoleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        contributor = lifecycle.update_contributor_role(caller, pk, contributor_id, serializer.validated_data["role"])
        return ok(ContributorSerializer(contributor).data)

    def delete(self, request, pk, contributor_id):
        caller = resolve_caller(request)
        lifecycle.remove_contributor(caller, pk, contributor_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class MyContributionsAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        caller = resolve_caller(request)
        return ok(ObjectiveSerializer(selectors.get_my_contributions(caller), many=True).data)
