"""
URL configuration for license API endpoints.
"""

from django.urls import path

from api.v1.license import views

app_name = "license"

urlpatterns = [
    path("license", views.GetLicenseView.as_view(), name="get-license"),
    path("verify-license", views.VerifyLicenseView.as_view(), name="verify-license"),
    path("verify-pro-status", views.VerifyProStatusView.as_view(), name="verify-pro-status"),
]
