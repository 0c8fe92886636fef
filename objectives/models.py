import uuid

from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator
from django.db import models

from .choices import (
    ApprovalAction,
    ApprovalStatus,
    Confidence,
    ContributorRole,
    Level,
    MetricType,
    ObjectiveStatus,
)
from .engine.hierarchy import is_valid_parent_level


class Objective(models.Model):
    """A goal statement at one organizational level, measured by its key results."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company_id = models.PositiveIntegerField(db_index=True)
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    owner_id = models.PositiveIntegerField(db_index=True)
    level = models.CharField(max_length=20, choices=Level.choices)
    period = models.CharField(max_length=50, help_text="e.g., 'Q1 2026'")

    # Derived from key results, written back by the lifecycle service
    progress = models.PositiveSmallIntegerField(default=0, validators=[MaxValueValidator(100)])
    status = models.CharField(max_length=20, choices=ObjectiveStatus.choices, default=ObjectiveStatus.DRAFT)

    due_date = models.DateField(null=True, blank=True)
    parent = models.ForeignKey("self", on_delete=models.SET_NULL, null=True, blank=True, related_name="children")
    team_id = models.PositiveIntegerField(null=True, blank=True)

    approval_status = models.CharField(max_length=20, choices=ApprovalStatus.choices, default=ApprovalStatus.DRAFT)
    approved_by = models.PositiveIntegerField(null=True, blank=True)
    approved_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["company_id", "level"]),
            models.Index(fields=["company_id", "approval_status"]),
            models.Index(fields=["company_id", "period"]),
        ]

    def clean(self):
        """A parent must belong to the same company and sit at a broader level than its children."""
        if self.parent_id:
            if self.parent_id == self.pk:
                raise ValidationError("An objective cannot be its own parent.")
            if self.parent.company_id != self.company_id:
                raise ValidationError("Parent objective belongs to another company.")
            if not is_valid_parent_level(self.level, self.parent.level):
                raise ValidationError(f"A {self.level} objective cannot have a {self.parent.level} objective as parent.")
        if not self._state.adding:
            for child_level in self.children.values_list("level", flat=True).order_by().distinct():
                if not is_valid_parent_level(child_level, self.level):
                    raise ValidationError(f"A {self.level} objective cannot keep {child_level} objectives as children.")

    def __str__(self) -> str:
        return f"{self.title} ({self.get_level_display()})"


class KeyResult(models.Model):
    """A measurable sub-target owned by exactly one objective."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    objective = models.ForeignKey(Objective, on_delete=models.CASCADE, related_name="key_results")
    description = models.TextField()
    metric_type = models.CharField(max_length=20, choices=MetricType.choices, default=MetricType.NUMBER)
    start_value = models.DecimalField(max_digits=15, decimal_places=2, default=0)
    target_value = models.DecimalField(max_digits=15, decimal_places=2)
    current_value = models.DecimalField(max_digits=15, decimal_places=2, null=True, blank=True)
    unit = models.CharField(max_length=50, blank=True)
    # Informational only, never drives the objective status
    status = models.CharField(max_length=20, choices=ObjectiveStatus.choices, default=ObjectiveStatus.DRAFT)
    confidence = models.CharField(max_length=10, choices=Confidence.choices, default=Confidence.MEDIUM)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["created_at"]

    def save(self, *args, **kwargs):
        if self.current_value is None:
            self.current_value = self.start_value
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return self.description[:80]


class AppendOnlyModel(models.Model):
    """Rows are written once and never updated."""

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError(f"{type(self).__name__} entries are append-only")
        super().save(*args, **kwargs)


class ProgressHistoryEntry(AppendOnlyModel):
    """One change of a key result's current value."""

    objective = models.ForeignKey(Objective, on_delete=models.CASCADE, related_name="progress_history")
    key_result = models.ForeignKey(
        KeyResult, on_delete=models.SET_NULL, null=True, blank=True, related_name="progress_history"
    )
    previous_value = models.DecimalField(max_digits=15, decimal_places=2, null=True, blank=True)
    new_value = models.DecimalField(max_digits=15, decimal_places=2)
    changed_by = models.PositiveIntegerField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name_plural = "Progress history"

    def __str__(self) -> str:
        return f"{self.previous_value} -> {self.new_value}"


class ApprovalHistoryEntry(AppendOnlyModel):
    """One successful approval workflow transition."""

    objective = models.ForeignKey(Objective, on_delete=models.CASCADE, related_name="approval_history")
    action = models.CharField(max_length=30, choices=ApprovalAction.choices)
    from_status = models.CharField(max_length=20, choices=ApprovalStatus.choices)
    to_status = models.CharField(max_length=20, choices=ApprovalStatus.choices)
    actor_id = models.PositiveIntegerField()
    comment = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name_plural = "Approval history"

    def __str__(self) -> str:
        return f"{self.get_action_display()} ({self.from_status} -> {self.to_status})"


class Contributor(models.Model):
    """A user granted a contributor or reviewer role on someone else's objective."""

    objective = models.ForeignKey(Objective, on_delete=models.CASCADE, related_name="contributors")
    user_id = models.PositiveIntegerField(db_index=True)
    role = models.CharField(max_length=20, choices=ContributorRole.choices, default=ContributorRole.CONTRIBUTOR)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = [["objective", "user_id"]]
        ordering = ["created_at"]

    def clean(self):
        """The objective's owner cannot also be one of its contributors."""
        if self.objective_id and self.objective.owner_id == self.user_id:
            raise ValidationError("The owner of an objective cannot be added as a contributor.")

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"User {self.user_id} ({self.get_role_display()}) on {self.objective_id}"
