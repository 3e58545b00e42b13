from django.urls import path

from .views import HealthView, ResultsView, SaveInputView, SendToValidatorView, SpecEnumsView

urlpatterns = [
    path("save-input", SaveInputView.as_view(), name="save-input"),
    path("send-to-validator", SendToValidatorView.as_view(), name="send-to-validator"),
    path("results/<str:pk>", ResultsView.as_view(), name="results"),
    path("health", HealthView.as_view(), name="health"),
    path("spec/enums", SpecEnumsView.as_view(), name="spec-enums"),
]
