"""
URL configuration for billing API endpoints.
"""

from django.urls import path

from api.v1.billing import views

app_name = "billing"

urlpatterns = [
    path("checkout-session", views.CreateCheckoutSessionView.as_view(), name="checkout-session"),
    path("portal-session", views.CreatePortalSessionView.as_view(), name="portal-session"),
    path("auto-create-license", views.AutoCreateLicenseView.as_view(), name="auto-create-license"),
    path("webhook", views.WebhookView.as_view(), name="webhook"),
    path("debug/licenses", views.DebugListLicensesView.as_view(), name="debug-licenses"),
    path("debug/create-license", views.DebugCreateLicenseView.as_view(), name="debug-create-license"),
]
