from django.urls import path

from .views import CanCreateOKRAPIView, SubscriptionInfoAPIView


urlpatterns = [
    path("", SubscriptionInfoAPIView.as_view(), name="subscription-info"),
    path("can-create-okr/", CanCreateOKRAPIView.as_view(), name="subscription-can-create-okr"),
]
