from django.urls import path

from .choices import WorkflowAction
from .views import (
    ApprovalHistoryAPIView,
    AvailableParentsAPIView,
    ContributorDetailAPIView,
    ContributorListCreateAPIView,
    HierarchyAPIView,
    KeyResultDetailAPIView,
    KeyResultListCreateAPIView,
    MyContributionsAPIView,
    ObjectiveAncestorsAPIView,
    ObjectiveChildrenAPIView,
    ObjectiveDetailAPIView,
    ObjectiveListCreateAPIView,
    ObjectiveTransitionAPIView,
    PendingApprovalsAPIView,
    ProgressHistoryAPIView,
    StatsAPIView,
)


urlpatterns = [
    # Objectives
    path("objectives/", ObjectiveListCreateAPIView.as_view(), name="objective-list"),
    path("objectives/<uuid:pk>/", ObjectiveDetailAPIView.as_view(), name="objective-detail"),

    # Key Results
    path("objectives/<uuid:pk>/key-results/", KeyResultListCreateAPIView.as_view(), name="key-result-list"),
    path("key-results/<uuid:pk>/", KeyResultDetailAPIView.as_view(), name="key-result-detail"),

    # History
    path("objectives/<uuid:pk>/history/", ProgressHistoryAPIView.as_view(), name="objective-progress-history"),
    path("objectives/<uuid:pk>/approval-history/", ApprovalHistoryAPIView.as_view(), name="objective-approval-history"),

    # Hierarchy
    path("objectives/<uuid:pk>/children/", ObjectiveChildrenAPIView.as_view(), name="objective-children"),
    path("objectives/<uuid:pk>/ancestors/", ObjectiveAncestorsAPIView.as_view(), name="objective-ancestors"),
    path("hierarchy/", HierarchyAPIView.as_view(), name="objective-hierarchy"),
    path("available-parents/", AvailableParentsAPIView.as_view(), name="objective-available-parents"),

    # Workflow
    path("pending-approvals/", PendingApprovalsAPIView.as_view(), name="objective-pending-approvals"),
    path("stats/", StatsAPIView.as_view(), name="objective-stats"),

    # Contributors
    path("objectives/<uuid:pk>/contributors/", ContributorListCreateAPIView.as_view(), name="contributor-list"),
    path(
        "objectives/<uuid:pk>/contributors/<int:contributor_id>/",
        ContributorDetailAPIView.as_view(),
        name="contributor-detail",
    ),
    path("my-contributions/", MyContributionsAPIView.as_view(), name="my-contributions"),
]

# One route per workflow action, e.g. objectives/<pk>/submit-for-review/
urlpatterns += [
    path(
        f"objectives/<uuid:pk>/{action.replace('_', '-')}/",
        ObjectiveTransitionAPIView.as_view(),
        {"action": action},
        name=f"objective-{action.replace('_', '-')}",
    )
    for action in WorkflowAction.values
]
