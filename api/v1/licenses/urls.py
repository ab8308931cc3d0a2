"""
License API URLs.
"""
from django.urls import path

from api.v1.licenses.views import (
    AssignLicenseView,
    LicenseBrandView,
    LicenseCollectionView,
    LicenseDetailView,
    LicenseLifecycleView,
    LicenseStatsView,
    MyLicensesView,
    ValidateAccessView,
)

app_name = "licenses"

urlpatterns = [
    path("licenses", LicenseCollectionView.as_view(), name="licenses"),
    path("licenses/assign", AssignLicenseView.as_view(), name="assign-license"),
    path("licenses/validate", ValidateAccessView.as_view(), name="validate-access"),
    path("licenses/stats", LicenseStatsView.as_view(), name="license-stats"),
    path("licenses/mine", MyLicensesView.as_view(), name="my-licenses"),
    path("licenses/<uuid:license_id>", LicenseDetailView.as_view(), name="license-detail"),
    path(
        "licenses/<uuid:license_id>/<str:action>",
        LicenseLifecycleView.as_view(),
        name="license-lifecycle",
    ),
    path(
        "licenses/<uuid:license_id>/brands/<uuid:brand_id>",
        LicenseBrandView.as_view(),
        name="license-brand",
    ),
]
