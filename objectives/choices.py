from django.db import models


class Level(models.TextChoices):
    COMPANY = "company", "Company"
    DEPARTMENT = "department", "Department"
    TEAM = "team", "Team"
    INDIVIDUAL = "individual", "Individual"


class ObjectiveStatus(models.TextChoices):
    DRAFT = "draft", "Draft"
    ON_TRACK = "on-track", "On track"
    AT_RISK = "at-risk", "At risk"
    OFF_TRACK = "off-track", "Off track"
    COMPLETED = "completed", "Completed"


class ApprovalStatus(models.TextChoices):
    DRAFT = "draft", "Draft"
    PENDING_REVIEW = "pending_review", "Pending review"
    APPROVED = "approved", "Approved"
    ACTIVE = "active", "Active"
    PAUSED = "paused", "Paused"
    STOPPED = "stopped", "Stopped"
    ARCHIVED = "archived", "Archived"


class WorkflowAction(models.TextChoices):
    SUBMIT_FOR_REVIEW = "submit_for_review", "Submit for review"
    APPROVE = "approve", "Approve"
    REJECT = "reject", "Reject"
    ACTIVATE = "activate", "Activate"
    PAUSE = "pause", "Pause"
    RESUME = "resume", "Resume"
    STOP = "stop", "Stop"
    REOPEN = "reopen", "Reopen"
    ARCHIVE = "archive", "Archive"
    REVERT_TO_DRAFT = "revert_to_draft", "Revert to draft"


class ApprovalAction(models.TextChoices):
    """Past-tense action names recorded in the approval history."""

    SUBMITTED = "submitted", "Submitted"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"
    RETURNED = "returned", "Returned"
    ACTIVATED = "activated", "Activated"
    PAUSED = "paused", "Paused"
    RESUMED = "resumed", "Resumed"
    STOPPED = "stopped", "Stopped"
    REOPENED = "reopened", "Reopened"
    ARCHIVED = "archived", "Archived"
    REVERTED_TO_DRAFT = "reverted_to_draft", "Reverted to draft"


class MetricType(models.TextChoices):
    PERCENTAGE = "percentage", "Percentage"
    NUMBER = "number", "Number"
    CURRENCY = "currency", "Currency"
    BOOLEAN = "boolean", "Boolean"


class Confidence(models.TextChoices):
    HIGH = "high", "High"
    MEDIUM = "medium", "Medium"
    LOW = "low", "Low"


class RiskLevel(models.TextChoices):
    LOW = "low", "Low"
    MEDIUM = "medium", "Medium"
    HIGH = "high", "High"
    CRITICAL = "critical", "Critical"


class ContributorRole(models.TextChoices):
    CONTRIBUTOR = "contributor", "Contributor"
    REVIEWER = "reviewer", "Reviewer"
