"""
License API views.

Administrators issue and manage licenses; client software calls the
public validate endpoint on every access attempt.
"""

import uuid

from asgiref.sync import async_to_sync
from django.conf import settings
from django.http import Http404
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from api.permissions import IsAdminPrincipal, IsAuthenticatedPrincipal
from api.v1.licenses.serializers import (
    AccessValidationResultSerializer,
    AssignLicenseRequestSerializer,
    ChangeLicenseStatusRequestSerializer,
    IssueLicenseRequestSerializer,
    LicensePageSerializer,
    LicenseSerializer,
    LicenseStatsSerializer,
    ListLicensesQuerySerializer,
    UpdateLicenseBrandRequestSerializer,
    UpdateLicenseRequestSerializer,
    ValidateAccessRequestSerializer,
)
from brands.infrastructure.repositories.django_brand_repository import DjangoBrandRepository
from core.domain.pagination import PageRequest, SortOrder
from core.domain.value_objects import LicenseStatus
from core.instrumentation import Status, StatusCode, get_tracer
from license_types.infrastructure.repositories.django_license_type_repository import (
    DjangoLicenseTypeRepository,
)
from licenses.application.commands.change_license_status import ChangeLicenseStatusCommand
from licenses.application.commands.delete_license import DeleteLicenseCommand
from licenses.application.commands.issue_license import (
    AssignLicenseCommand,
    IssueLicenseCommand,
)
from licenses.application.commands.update_license import (
    UpdateLicenseBrandCommand,
    UpdateLicenseCommand,
)
from licenses.application.commands.validate_access import ValidateAccessCommand
from licenses.application.handlers.issue_license_handler import (
    AssignLicenseHandler,
    IssueLicenseHandler,
)
from licenses.application.handlers.license_lifecycle_handlers import (
    ActivateLicenseHandler,
    DeactivateLicenseHandler,
    RevokeLicenseHandler,
    SuspendLicenseHandler,
)
from licenses.application.handlers.license_query_handlers import (
    GetLicenseHandler,
    GetLicenseStatsHandler,
    ListLicensesHandler,
    ListUserLicensesHandler,
)
from licenses.application.handlers.update_license_handlers import (
    DeleteLicenseHandler,
    UpdateLicenseBrandHandler,
    UpdateLicenseHandler,
)
from licenses.application.handlers.validate_access_handler import ValidateAccessHandler
from licenses.application.queries.get_license import GetLicenseQuery
from licenses.application.queries.get_license_stats import GetLicenseStatsQuery
from licenses.application.queries.list_licenses import ListLicensesQuery, ListUserLicensesQuery
from licenses.infrastructure.email_notifier import EmailLicenseNotifier
from licenses.infrastructure.repositories.django_license_repository import DjangoLicenseRepository
from licenses.ports.license_repository import LicenseFilters
from users.infrastructure.repositories.django_user_repository import DjangoUserRepository

# Initialize repositories (in production, use DI container)
_user_repo = DjangoUserRepository()
_brand_repo = DjangoBrandRepository()
_license_type_repo = DjangoLicenseTypeRepository()
_license_repo = DjangoLicenseRepository()
_notifier = EmailLicenseNotifier()

tracer = get_tracer(__name__)

LIFECYCLE_HANDLERS = {
    "activate": ActivateLicenseHandler,
    "deactivate": DeactivateLicenseHandler,
    "suspend": SuspendLicenseHandler,
    "revoke": RevokeLicenseHandler,
}


def _issue_handler() -> IssueLicenseHandler:
    return IssueLicenseHandler(
        user_repository=_user_repo,
        license_type_repository=_license_type_repo,
        brand_repository=_brand_repo,
        license_repository=_license_repo,
        notifier=_notifier,
        default_download_url=getattr(settings, "LICENSES", {}).get("DEFAULT_DOWNLOAD_URL"),
    )


def _validation_failed(span, serializer) -> Response:
    span.set_attribute("error", "validation_failed")
    span.set_attribute("error.details", str(serializer.errors))
    span.set_status(Status(StatusCode.ERROR, "Validation failed"))
    return Response(
        {"error": {"code": "VALIDATION_ERROR", "message": "Invalid request", "details": serializer.errors}},
        status=status.HTTP_400_BAD_REQUEST,
    )


def _principal_id(request: Request):
    principal = getattr(request, "principal", None)
    return principal.id if principal else None


class LicenseCollectionView(APIView):
    """View for issuing and listing licenses."""

    permission_classes = [IsAdminPrincipal]

    @extend_schema(
        operation_id="issue_license",
        summary="Issue License",
        description=(
            "Issue a license of a license type to an existing user, granting "
            "access to one or more brands. The access password is only sent "
            "to the user by email."
        ),
        tags=["Licenses"],
        request=IssueLicenseRequestSerializer,
        responses={
            201: LicenseSerializer,
            400: {"description": "Bad Request"},
            401: {"description": "Unauthorized - Missing or invalid API key"},
            404: {"description": "User, license type or brand not found"},
            409: {"description": "User already holds a license of this type"},
        },
    )
    def post(self, request: Request) -> Response:
        """Issue a license."""
        return async_to_sync(self._handle_issue_license)(request)

    async def _handle_issue_license(self, request: Request) -> Response:
        """Async handler for issue license."""
        with tracer.start_as_current_span("issue_license") as span:
            span.set_attribute("operation", "issue_license")

            serializer = IssueLicenseRequestSerializer(data=request.data)
            if not serializer.is_valid():
                return _validation_failed(span, serializer)

            data = serializer.validated_data
            span.set_attribute("user.id", str(data["user_id"]))
            span.set_attribute("license_type.id", str(data["license_type_id"]))
            span.set_attribute("brands.count", len(data["brand_ids"]))

            command = IssueLicenseCommand(
                user_id=data["user_id"],
                license_type_id=data["license_type_id"],
                brand_ids=data["brand_ids"],
                expires_at=data.get("expires_at"),
                notes=data.get("notes"),
                assigned_by=data.get("assigned_by"),
                assignment_reason=data.get("assignment_reason"),
                principal_id=_principal_id(request),
            )
            result = await _issue_handler().handle(command)

            span.set_attribute("license.id", str(result.id))
            span.set_status(Status(StatusCode.OK))
            return Response(LicenseSerializer(result).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="list_licenses",
        summary="List Licenses",
        description="List licenses one page at a time with optional filters.",
        tags=["Licenses"],
        parameters=[
            OpenApiParameter("page", int, description="Page number (1-based)"),
            OpenApiParameter("limit", int, description="Page size"),
            OpenApiParameter("search", str, description="Search license key, notes or user email"),
            OpenApiParameter("sort_by", str, description="Sort field"),
            OpenApiParameter("sort_order", str, enum=["ASC", "DESC"]),
            OpenApiParameter("status", str, enum=[s.value for s in LicenseStatus]),
            OpenApiParameter("user_id", uuid.UUID),
            OpenApiParameter("license_type_id", uuid.UUID),
            OpenApiParameter("brand_id", uuid.UUID),
            OpenApiParameter("expired", bool),
            OpenApiParameter("expiring_within_days", int),
        ],
        responses={200: LicensePageSerializer},
    )
    def get(self, request: Request) -> Response:
        """List licenses."""
        return async_to_sync(self._handle_list_licenses)(request)

    async def _handle_list_licenses(self, request: Request) -> Response:
        """Async handler for list licenses."""
        with tracer.start_as_current_span("list_licenses") as span:
            serializer = ListLicensesQuerySerializer(data=request.query_params.dict())
            if not serializer.is_valid():
                return _validation_failed(span, serializer)

            data = serializer.validated_data
            query = ListLicensesQuery(
                page_request=PageRequest(
                    page=data["page"],
                    limit=data["limit"],
                    search=data.get("search") or None,
                    sort_by=data.get("sort_by"),
                    sort_order=SortOrder(data["sort_order"]),
                ),
                filters=LicenseFilters(
                    status=LicenseStatus(data["status"]) if data.get("status") else None,
                    user_id=data.get("user_id"),
                    license_type_id=data.get("license_type_id"),
                    brand_id=data.get("brand_id"),
                    expired=data.get("expired"),
                    expiring_within_days=data.get("expiring_within_days"),
                ),
            )
            result = await ListLicensesHandler(license_repository=_license_repo).handle(query)

            span.set_attribute("licenses.total", result.total)
            span.set_status(Status(StatusCode.OK))
            return Response(LicensePageSerializer(result).data, status=status.HTTP_200_OK)


class AssignLicenseView(APIView):
    """View for assigning a license to an email address."""

    permission_classes = [IsAdminPrincipal]

    @extend_schema(
        operation_id="assign_license",
        summary="Assign License",
        description=(
            "Issue a license to an email address. The user is created on "
            "first assignment."
        ),
        tags=["Licenses"],
        request=AssignLicenseRequestSerializer,
        responses={
            201: LicenseSerializer,
            400: {"description": "Bad Request"},
            404: {"description": "License type or brand not found"},
            409: {"description": "User already holds a license of this type"},
        },
    )
    def post(self, request: Request) -> Response:
        """Assign a license."""
        return async_to_sync(self._handle_assign_license)(request)

    async def _handle_assign_license(self, request: Request) -> Response:
        """Async handler for assign license."""
        with tracer.start_as_current_span("assign_license") as span:
            span.set_attribute("operation", "assign_license")

            serializer = AssignLicenseRequestSerializer(data=request.data)
            if not serializer.is_valid():
                return _validation_failed(span, serializer)

            data = serializer.validated_data
            command = AssignLicenseCommand(
                email=data["email"],
                license_type_id=data["license_type_id"],
                brand_ids=data["brand_ids"],
                expires_at=data.get("expires_at"),
                notes=data.get("notes"),
                assigned_by=data.get("assigned_by"),
                assignment_reason=data.get("assignment_reason"),
                principal_id=_principal_id(request),
            )
            handler = AssignLicenseHandler(user_repository=_user_repo, issue_handler=_issue_handler())
            result = await handler.handle(command)

            span.set_attribute("license.id", str(result.id))
            span.set_status(Status(StatusCode.OK))
            return Response(LicenseSerializer(result).data, status=status.HTTP_201_CREATED)


class ValidateAccessView(APIView):
    """
    View for validating an access attempt.

    Public: client software authenticates with the license key and
    access password. Denials are reported in the body, not the status.
    """

    @extend_schema(
        operation_id="validate_access",
        summary="Validate Access",
        description=(
            "Check a license key and access password, optionally binding a "
            "device fingerprint, and record the access when permitted."
        ),
        tags=["Access"],
        request=ValidateAccessRequestSerializer,
        responses={
            200: AccessValidationResultSerializer,
            400: {"description": "Bad Request"},
        },
    )
    def post(self, request: Request) -> Response:
        """Validate an access attempt."""
        return async_to_sync(self._handle_validate_access)(request)

    async def _handle_validate_access(self, request: Request) -> Response:
        """Async handler for validate access."""
        with tracer.start_as_current_span("validate_access") as span:
            span.set_attribute("operation", "validate_access")

            serializer = ValidateAccessRequestSerializer(data=request.data)
            if not serializer.is_valid():
                return _validation_failed(span, serializer)

            data = serializer.validated_data
            span.set_attribute("device.present", bool(data.get("device_fingerprint")))

            command = ValidateAccessCommand(
                license_key=data["license_key"],
                access_password=data["access_password"],
                device_fingerprint=data.get("device_fingerprint"),
            )
            result = await ValidateAccessHandler(license_repository=_license_repo).handle(command)

            span.set_attribute("access.valid", result.valid)
            if result.reason:
                span.set_attribute("access.reason", result.reason)
            span.set_status(Status(StatusCode.OK))
            return Response(AccessValidationResultSerializer(result).data, status=status.HTTP_200_OK)


class LicenseStatsView(APIView):
    """View for aggregate license counts."""

    permission_classes = [IsAdminPrincipal]

    @extend_schema(
        operation_id="license_stats",
        summary="License Statistics",
        tags=["Licenses"],
        responses={200: LicenseStatsSerializer},
    )
    def get(self, request: Request) -> Response:
        """Get license statistics."""
        return async_to_sync(self._handle_stats)(request)

    async def _handle_stats(self, request: Request) -> Response:
        with tracer.start_as_current_span("license_stats") as span:
            stats = await GetLicenseStatsHandler(license_repository=_license_repo).handle(
                GetLicenseStatsQuery()
            )
            span.set_attribute("licenses.total", stats.total)
            span.set_status(Status(StatusCode.OK))
            return Response(LicenseStatsSerializer(stats).data, status=status.HTTP_200_OK)


class MyLicensesView(APIView):
    """View for the licenses held by the calling principal."""

    permission_classes = [IsAuthenticatedPrincipal]

    @extend_schema(
        operation_id="my_licenses",
        summary="My Licenses",
        tags=["Licenses"],
        responses={200: LicenseSerializer(many=True)},
    )
    def get(self, request: Request) -> Response:
        """List the caller's licenses."""
        return async_to_sync(self._handle_my_licenses)(request)

    async def _handle_my_licenses(self, request: Request) -> Response:
        with tracer.start_as_current_span("my_licenses") as span:
            user_id = _principal_id(request)
            span.set_attribute("user.id", str(user_id))
            result = await ListUserLicensesHandler(license_repository=_license_repo).handle(
                ListUserLicensesQuery(user_id=user_id)
            )
            span.set_status(Status(StatusCode.OK))
            return Response(LicenseSerializer(result, many=True).data, status=status.HTTP_200_OK)


class LicenseDetailView(APIView):
    """View for reading, updating and deleting one license."""

    permission_classes = [IsAdminPrincipal]

    @extend_schema(
        operation_id="get_license",
        summary="Get License",
        tags=["Licenses"],
        responses={200: LicenseSerializer, 404: {"description": "License not found"}},
    )
    def get(self, request: Request, license_id: uuid.UUID) -> Response:
        """Get a license."""
        return async_to_sync(self._handle_get_license)(request, license_id)

    async def _handle_get_license(self, request: Request, license_id: uuid.UUID) -> Response:
        with tracer.start_as_current_span("get_license") as span:
            span.set_attribute("license.id", str(license_id))
            result = await GetLicenseHandler(license_repository=_license_repo).handle(
                GetLicenseQuery(license_id=license_id)
            )
            span.set_status(Status(StatusCode.OK))
            return Response(LicenseSerializer(result).data, status=status.HTTP_200_OK)

    @extend_schema(
        operation_id="update_license",
        summary="Update License",
        description="Change the expiry, ceilings or notes of a license. Omitted fields are left as they are.",
        tags=["Licenses"],
        request=UpdateLicenseRequestSerializer,
        responses={
            200: LicenseSerializer,
            400: {"description": "Bad Request"},
            404: {"description": "License not found"},
        },
    )
    def patch(self, request: Request, license_id: uuid.UUID) -> Response:
        """Update a license."""
        return async_to_sync(self._handle_update_license)(request, license_id)

    async def _handle_update_license(self, request: Request, license_id: uuid.UUID) -> Response:
        with tracer.start_as_current_span("update_license") as span:
            span.set_attribute("license.id", str(license_id))

            serializer = UpdateLicenseRequestSerializer(data=request.data, partial=True)
            if not serializer.is_valid():
                return _validation_failed(span, serializer)

            command = UpdateLicenseCommand(license_id=license_id, **serializer.validated_data)
            result = await UpdateLicenseHandler(license_repository=_license_repo).handle(command)

            span.set_status(Status(StatusCode.OK))
            return Response(LicenseSerializer(result).data, status=status.HTTP_200_OK)

    @extend_schema(
        operation_id="delete_license",
        summary="Delete License",
        description="Soft-delete a license and its brand grants.",
        tags=["Licenses"],
        responses={204: None, 404: {"description": "License not found"}},
    )
    def delete(self, request: Request, license_id: uuid.UUID) -> Response:
        """Delete a license."""
        return async_to_sync(self._handle_delete_license)(request, license_id)

    async def _handle_delete_license(self, request: Request, license_id: uuid.UUID) -> Response:
        with tracer.start_as_current_span("delete_license") as span:
            span.set_attribute("license.id", str(license_id))
            await DeleteLicenseHandler(license_repository=_license_repo).handle(
                DeleteLicenseCommand(license_id=license_id)
            )
            span.set_status(Status(StatusCode.OK))
            return Response(status=status.HTTP_204_NO_CONTENT)


class LicenseLifecycleView(APIView):
    """View for activating, deactivating, suspending and revoking a license."""

    permission_classes = [IsAdminPrincipal]

    @extend_schema(
        operation_id="change_license_status",
        summary="Change License Status",
        description=(
            "Move a license to another status. Revoked licenses cannot be "
            "reactivated."
        ),
        tags=["Licenses"],
        request=ChangeLicenseStatusRequestSerializer,
        responses={
            200: LicenseSerializer,
            404: {"description": "License not found"},
            409: {"description": "License is already in that status or cannot move to it"},
        },
    )
    def patch(self, request: Request, license_id: uuid.UUID, action: str) -> Response:
        """Change a license's status."""
        if action not in LIFECYCLE_HANDLERS:
            raise Http404(f"Unknown license action: {action}")
        return async_to_sync(self._handle_change_status)(request, license_id, action)

    async def _handle_change_status(
        self, request: Request, license_id: uuid.UUID, action: str
    ) -> Response:
        with tracer.start_as_current_span(f"{action}_license") as span:
            span.set_attribute("license.id", str(license_id))
            span.set_attribute("operation", action)

            serializer = ChangeLicenseStatusRequestSerializer(data=request.data)
            if not serializer.is_valid():
                return _validation_failed(span, serializer)

            handler = LIFECYCLE_HANDLERS[action](license_repository=_license_repo)
            result = await handler.handle(
                ChangeLicenseStatusCommand(
                    license_id=license_id,
                    reason=serializer.validated_data.get("reason") or None,
                )
            )

            span.set_attribute("license.status", result.status)
            span.set_status(Status(StatusCode.OK))
            return Response(LicenseSerializer(result).data, status=status.HTTP_200_OK)


class LicenseBrandView(APIView):
    """View for updating one brand grant of a license."""

    permission_classes = [IsAdminPrincipal]

    @extend_schema(
        operation_id="update_license_brand",
        summary="Update License Brand",
        tags=["Licenses"],
        request=UpdateLicenseBrandRequestSerializer,
        responses={
            200: LicenseSerializer,
            400: {"description": "Bad Request"},
            404: {"description": "License or brand grant not found"},
        },
    )
    def patch(self, request: Request, license_id: uuid.UUID, brand_id: uuid.UUID) -> Response:
        """Update a license brand."""
        return async_to_sync(self._handle_update_brand)(request, license_id, brand_id)

    async def _handle_update_brand(
        self, request: Request, license_id: uuid.UUID, brand_id: uuid.UUID
    ) -> Response:
        with tracer.start_as_current_span("update_license_brand") as span:
            span.set_attribute("license.id", str(license_id))
            span.set_attribute("brand.id", str(brand_id))

            serializer = UpdateLicenseBrandRequestSerializer(data=request.data, partial=True)
            if not serializer.is_valid():
                return _validation_failed(span, serializer)

            command = UpdateLicenseBrandCommand(
                license_id=license_id, brand_id=brand_id, **serializer.validated_data
            )
            result = await UpdateLicenseBrandHandler(license_repository=_license_repo).handle(command)

            span.set_status(Status(StatusCode.OK))
            return Response(LicenseSerializer(result).data, status=status.HTTP_200_OK)
