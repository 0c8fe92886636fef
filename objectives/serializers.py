from rest_framework import serializers

from .choices import Confidence, ContributorRole, Level, MetricType, ObjectiveStatus
from .engine import classify_health, key_result_progress
from .engine.progress import round_half_up
from .models import ApprovalHistoryEntry, Contributor, KeyResult, Objective, ProgressHistoryEntry


# Key Result Serializers
class KeyResultWriteSerializer(serializers.Serializer):
    """Shape check for key result payloads; business rules live in the lifecycle service."""
    description = serializers.CharField()
    metric_type = serializers.ChoiceField(choices=MetricType.choices, required=False)
    start_value = serializers.DecimalField(max_digits=15, decimal_places=2, required=False)
    target_value = serializers.DecimalField(max_digits=15, decimal_places=2)
    current_value = serializers.DecimalField(max_digits=15, decimal_places=2, required=False)
    unit = serializers.CharField(max_length=50, required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=ObjectiveStatus.choices, required=False)
    confidence = serializers.ChoiceField(choices=Confidence.choices, required=False)


class KeyResultSerializer(serializers.ModelSerializer):
    progress = serializers.SerializerMethodField()

    class Meta:
        model = KeyResult
        fields = [
            "id", "objective", "description", "metric_type", "start_value", "target_value",
            "current_value", "unit", "status", "confidence", "progress", "created_at", "updated_at"
        ]
        read_only_fields = fields

    def get_progress(self, obj):
        """Completion of this key result alone, 0-100."""
        return round_half_up(key_result_progress(obj))


# Objective Serializers
class ObjectiveWriteSerializer(serializers.Serializer):
    """Serializer for creating and updating objectives."""
    title = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True)
    level = serializers.ChoiceField(choices=Level.choices)
    period = serializers.CharField(max_length=50)
    due_date = serializers.DateField(required=False, allow_null=True)
    parent_id = serializers.UUIDField(required=False, allow_null=True)
    team_id = serializers.IntegerField(required=False, allow_null=True)
    owner_id = serializers.IntegerField(required=False, min_value=1)
    key_results = KeyResultWriteSerializer(many=True, required=False)


class ContributorSerializer(serializers.ModelSerializer):
    class Meta:
        model = Contributor
        fields = ["id", "objective", "user_id", "role", "created_at"]
        read_only_fields = fields


class ObjectiveSummarySerializer(serializers.ModelSerializer):
    """Compact representation for pickers, breadcrumbs and trees."""

    class Meta:
        model = Objective
        fields = [
            "id", "title", "level", "period", "status", "progress",
            "approval_status", "owner_id", "parent_id", "due_date",
        ]
        read_only_fields = fields


class ObjectiveSerializer(serializers.ModelSerializer):
    """Serializer for objective detail with key results and read-time health metrics."""
    key_results = KeyResultSerializer(many=True, read_only=True)
    contributors = ContributorSerializer(many=True, read_only=True)
    parent_id = serializers.UUIDField(read_only=True)
    parent_title = serializers.SerializerMethodField()
    children_count = serializers.SerializerMethodField()
    health_metrics = serializers.SerializerMethodField()

    class Meta:
        model = Objective
        fields = [
            "id", "company_id", "title", "description", "owner_id", "level", "period",
            "progress", "status", "health_metrics", "due_date", "parent_id", "parent_title",
            "team_id", "approval_status", "approved_by", "approved_at", "children_count",
            "key_results", "contributors", "created_at", "updated_at"
        ]
        read_only_fields = fields

    def get_parent_title(self, obj):
        return obj.parent.title if obj.parent_id else None

    def get_children_count(self, obj):
        count = getattr(obj, "children_count", None)
        return count if count is not None else obj.children.count()

    def get_health_metrics(self, obj):
        report = classify_health(obj.progress, obj.due_date, obj.created_at, obj.key_results.all())
        return report.metrics.as_dict()


# Workflow and Contributor input
class TransitionSerializer(serializers.Serializer):
    comment = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class ContributorCreateSerializer(serializers.Serializer):
    user_id = serializers.IntegerField(min_value=1)
    role = serializers.ChoiceField(choices=ContributorRole.choices, default=ContributorRole.CONTRIBUTOR)


class ContributorRoleSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=ContributorRole.choices)


# History Serializers
class ProgressHistoryEntrySerializer(serializers.ModelSerializer):
    key_result_description = serializers.SerializerMethodField()

    class Meta:
        model = ProgressHistoryEntry
        fields = [
            "id", "objective", "key_result", "key_result_description",
            "previous_value", "new_value", "changed_by", "created_at"
        ]
        read_only_fields = fields

    def get_key_result_description(self, obj):
        return obj.key_result.description if obj.key_result_id else None


class ApprovalHistoryEntrySerializer(serializers.ModelSerializer):
    class Meta:
        model = ApprovalHistoryEntry
        fields = ["id", "objective", "action", "from_status", "to_status", "actor_id", "comment", "created_at"]
        read_only_fields = fields
