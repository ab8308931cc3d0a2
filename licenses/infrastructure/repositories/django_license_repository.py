"""
Django implementation of LicenseRepository port.

This adapter converts between domain entities and Django ORM models.
"""
import logging
import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence, Tuple

from asgiref.sync import sync_to_async
from django.db import IntegrityError, transaction
from django.db.models import Count, F, Prefetch, Q

from core.domain.events import utcnow
from core.domain.exceptions import ConflictError, DuplicateLicenseError
from core.domain.pagination import Page, PageRequest, SortOrder
from core.domain.value_objects import LicenseBrandStatus, LicenseStatus
from licenses.domain.license import License, LicenseBrand
from licenses.domain.services import AccessDenialReason, AccessPolicy
from licenses.infrastructure.models import License as LicenseModel
from licenses.infrastructure.models import LicenseBrand as LicenseBrandModel
from licenses.ports.license_repository import LicenseFilters, LicenseRepository, LicenseStats

logger = logging.getLogger(__name__)

UPDATABLE_LICENSE_FIELDS = {"expires_at", "max_access_count", "max_devices", "notes", "metadata"}
UPDATABLE_LICENSE_BRAND_FIELDS = {"status", "expires_at", "permissions", "restrictions", "notes"}
SORTABLE_FIELDS = {
    "created_at",
    "updated_at",
    "expires_at",
    "activated_at",
    "last_accessed_at",
    "status",
    "license_key",
    "access_count",
}

# Device writes lost to other device registrations before the race is
# reported as lost. Losing to plain accesses does not count.
MAX_DEVICE_WRITE_ATTEMPTS = 3


class DjangoLicenseRepository(LicenseRepository):
    """
    Django ORM implementation of LicenseRepository.

    This adapter:
    1. Converts Django models to domain entities
    2. Keeps every multi-row write inside one transaction
    3. Hides soft-deleted licenses and brand grants from reads
    """

    def _queryset(self):
        # pylint: disable=no-member
        return (
            LicenseModel.objects.alive()
            .select_related("user", "license_type")
            .prefetch_related(
                Prefetch(
                    "license_brands",
                    queryset=LicenseBrandModel.objects.alive().select_related("brand"),
                    to_attr="alive_brands",
                )
            )
        )

    def _brand_to_domain(self, model: LicenseBrandModel) -> LicenseBrand:
        return LicenseBrand(
            id=model.id,
            license_id=model.license_id,
            brand_id=model.brand_id,
            status=LicenseBrandStatus(model.status),
            activated_at=model.activated_at,
            expires_at=model.expires_at,
            access_count=model.access_count,
            last_accessed_at=model.last_accessed_at,
            permissions=model.permissions,
            restrictions=model.restrictions,
            notes=model.notes,
            metadata=model.metadata,
            assigned_by=model.assigned_by,
            assigned_at=model.assigned_at,
            brand_name=model.brand.name,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_domain(self, model: LicenseModel) -> License:
        """
        Convert Django model to domain entity.

        Args:
            model: Django License model

        Returns:
            License domain entity
        """
        brand_models = getattr(model, "alive_brands", None)
        if brand_models is None:
            brand_models = model.license_brands.alive().select_related("brand")
        return License(
            id=model.id,
            license_key=model.license_key,
            access_password=model.access_password,
            user_id=model.user_id,
            license_type_id=model.license_type_id,
            status=LicenseStatus(model.status),
            activated_at=model.activated_at,
            expires_at=model.expires_at,
            last_accessed_at=model.last_accessed_at,
            access_count=model.access_count,
            max_access_count=model.max_access_count,
            max_devices=model.max_devices,
            device_fingerprints=list(model.device_fingerprints or []),
            notes=model.notes,
            metadata=model.metadata,
            assigned_by=model.assigned_by,
            assigned_at=model.assigned_at,
            assignment_reason=model.assignment_reason,
            email_sent=model.email_sent,
            email_sent_at=model.email_sent_at,
            brands=tuple(self._brand_to_domain(brand) for brand in brand_models),
            user_email=model.user.email,
            user_name=" ".join(
                part for part in (model.user.first_name, model.user.last_name) if part
            ) or None,
            license_type_name=model.license_type.name,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _load(self, license_id: uuid.UUID) -> Optional[License]:
        model = self._queryset().filter(id=license_id).first()
        return self._to_domain(model) if model else None

    @sync_to_async
    def create_with_brands(
        self, license: License, license_brands: Sequence[LicenseBrand]
    ) -> License:
        """
        Insert a license and its brand grants in one transaction.

        Args:
            license: New License entity
            license_brands: Brand grants of the license

        Returns:
            Stored license with its brands loaded

        Raises:
            DuplicateLicenseError: If the user already holds a live license of
                this type, or the license key is taken
            ConflictError: If the same brand is granted twice
            IntegrityError: For any other constraint failure
        """
        try:
            with transaction.atomic():
                # pylint: disable=no-member
                LicenseModel.objects.create(
                    id=license.id,
                    license_key=license.license_key,
                    access_password=license.access_password,
                    user_id=license.user_id,
                    license_type_id=license.license_type_id,
                    status=license.status.value,
                    activated_at=license.activated_at,
                    expires_at=license.expires_at,
                    max_access_count=license.max_access_count,
                    max_devices=license.max_devices,
                    device_fingerprints=list(license.device_fingerprints),
                    notes=license.notes,
                    metadata=license.metadata,
                    assigned_by=license.assigned_by,
                    assigned_at=license.assigned_at,
                    assignment_reason=license.assignment_reason,
                )
                LicenseBrandModel.objects.bulk_create(
                    [
                        LicenseBrandModel(
                            id=license_brand.id,
                            license_id=license.id,
                            brand_id=license_brand.brand_id,
                            status=license_brand.status.value,
                            activated_at=license_brand.activated_at,
                            expires_at=license_brand.expires_at,
                            permissions=license_brand.permissions,
                            restrictions=license_brand.restrictions,
                            notes=license_brand.notes,
                            metadata=license_brand.metadata,
                            assigned_by=license_brand.assigned_by,
                            assigned_at=license_brand.assigned_at,
                        )
                        for license_brand in license_brands
                    ]
                )
        except IntegrityError as exc:
            conflict = self._unique_conflict(license, license_brands)
            if conflict is None:
                raise
            logger.warning(
                "License insert rejected by a unique index",
                extra={"user_id": str(license.user_id), "license_type_id": str(license.license_type_id)},
            )
            raise conflict from exc
        return self._load(license.id)

    def _unique_conflict(self, license: License, license_brands: Sequence[LicenseBrand]):
        """
        Name the unique index a failed insert ran into.

        Returns:
            The matching ConflictError, or None when the failure was not
            a uniqueness conflict (a missing foreign key for instance)
        """
        # pylint: disable=no-member
        if LicenseModel.objects.alive().filter(
            user_id=license.user_id, license_type_id=license.license_type_id
        ).exists():
            return DuplicateLicenseError("A license for this user and license type already exists")
        if LicenseModel.objects.filter(license_key=license.license_key).exists():
            return DuplicateLicenseError(f"License key {license.license_key} is already taken")
        brand_ids = [license_brand.brand_id for license_brand in license_brands]
        if len(set(brand_ids)) != len(brand_ids):
            return ConflictError(
                "A brand is granted more than once", code="DUPLICATE_LICENSE_BRAND"
            )
        return None

    @sync_to_async
    def find_by_id(self, license_id: uuid.UUID) -> Optional[License]:
        """
        Find a license by ID.

        Args:
            license_id: License UUID

        Returns:
            License entity or None if not found
        """
        return self._load(license_id)

    @sync_to_async
    def find_by_key(self, license_key: str) -> Optional[License]:
        """
        Find a license by its license key.

        Args:
            license_key: License key string

        Returns:
            License entity or None if not found
        """
        model = self._queryset().filter(license_key=license_key).first()
        return self._to_domain(model) if model else None

    @sync_to_async
    def find_by_user_and_type(
        self, user_id: uuid.UUID, license_type_id: uuid.UUID
    ) -> Optional[License]:
        model = (
            self._queryset()
            .filter(user_id=user_id, license_type_id=license_type_id)
            .first()
        )
        return self._to_domain(model) if model else None

    @sync_to_async
    def find_by_user(self, user_id: uuid.UUID) -> List[License]:
        models = self._queryset().filter(user_id=user_id).order_by("-created_at")
        return [self._to_domain(model) for model in models]

    def _apply_filters(self, queryset, filters: LicenseFilters, now: datetime):
        if filters.status is LicenseStatus.EXPIRED:
            queryset = queryset.filter(expires_at__lt=now)
        elif filters.status is not None:
            queryset = queryset.filter(status=filters.status.value)
        if filters.user_id:
            queryset = queryset.filter(user_id=filters.user_id)
        if filters.license_type_id:
            queryset = queryset.filter(license_type_id=filters.license_type_id)
        if filters.brand_id:
            queryset = queryset.filter(
                license_brands__brand_id=filters.brand_id,
                license_brands__deleted_at__isnull=True,
            ).distinct()
        if filters.expired is True:
            queryset = queryset.filter(expires_at__lt=now)
        elif filters.expired is False:
            queryset = queryset.filter(Q(expires_at__isnull=True) | Q(expires_at__gte=now))
        if filters.expiring_within_days is not None:
            queryset = queryset.filter(
                expires_at__gte=now,
                expires_at__lte=now + timedelta(days=filters.expiring_within_days),
            )
        return queryset

    @sync_to_async
    def list_filtered(
        self, page_request: PageRequest, filters: Optional[LicenseFilters] = None
    ) -> Page:
        """
        List licenses one page at a time.

        Search matches the license key, the holder's email and the notes.
        Unknown sort fields fall back to ``created_at``.

        Args:
            page_request: Page, size, search and ordering
            filters: Optional filters

        Returns:
            Page of License entities
        """
        queryset = self._apply_filters(self._queryset(), filters or LicenseFilters(), utcnow())
        if page_request.search:
            term = page_request.search.strip()
            queryset = queryset.filter(
                Q(license_key__icontains=term)
                | Q(user__email__icontains=term)
                | Q(notes__icontains=term)
            )

        sort_field = page_request.sort_by if page_request.sort_by in SORTABLE_FIELDS else "created_at"
        prefix = "-" if page_request.sort_order == SortOrder.DESC else ""
        queryset = queryset.order_by(f"{prefix}{sort_field}", "id")

        total = queryset.count()
        models = queryset[page_request.offset:page_request.offset + page_request.limit]
        return Page(
            items=[self._to_domain(model) for model in models],
            total=total,
            page=page_request.page,
            limit=page_request.limit,
        )

    @sync_to_async
    def update_fields(self, license_id: uuid.UUID, **fields: Any) -> Optional[License]:
        """
        Update plain attributes of a license.

        Args:
            license_id: License UUID
            **fields: Attribute values keyed by field name

        Returns:
            Updated license or None if not found

        Raises:
            ValueError: If a field is not updatable through this method
        """
        unknown = set(fields) - UPDATABLE_LICENSE_FIELDS
        if unknown:
            raise ValueError(f"Fields not updatable: {', '.join(sorted(unknown))}")
        # pylint: disable=no-member
        updated = LicenseModel.objects.alive().filter(id=license_id).update(
            updated_at=utcnow(), **fields
        )
        return self._load(license_id) if updated else None

    @sync_to_async
    def save_status(
        self, license: License, expected_status: LicenseStatus
    ) -> Optional[License]:
        """
        Persist ``status``, ``activated_at`` and ``updated_at`` of a license.

        The write only matches while the stored status is still
        ``expected_status``.

        Args:
            license: License entity after a transition
            expected_status: Status the transition was computed from

        Returns:
            Stored license, or None if the license was deleted or its
            status changed since it was read
        """
        # pylint: disable=no-member
        updated = LicenseModel.objects.alive().filter(
            id=license.id, status=expected_status.value
        ).update(
            status=license.status.value,
            activated_at=license.activated_at,
            updated_at=license.updated_at or utcnow(),
        )
        return self._load(license.id) if updated else None

    @sync_to_async
    def mark_email_sent(self, license_id: uuid.UUID, sent_at: datetime) -> None:
        # pylint: disable=no-member
        LicenseModel.objects.filter(id=license_id).update(email_sent=True, email_sent_at=sent_at)

    def _write_access(self, license_id, device_fingerprint, now):
        """
        One locked read-check-write cycle.

        Returns:
            Tuple of (snapshot or None, denial reason or None, rows updated)
        """
        with transaction.atomic():
            # pylint: disable=no-member
            locked = (
                LicenseModel.objects.alive()
                .select_for_update()
                .filter(id=license_id)
                .first()
            )
            if locked is None:
                return None, AccessDenialReason.INVALID_KEY, 0
            snapshot = self._to_domain(locked)

            reason = AccessPolicy.check_state(snapshot, device_fingerprint, now)
            if reason is not None:
                return snapshot, reason, 0

            guarded = (
                LicenseModel.objects.alive()
                .filter(id=license_id, status=LicenseStatus.ACTIVE.value)
                .filter(Q(expires_at__isnull=True) | Q(expires_at__gte=now))
                .filter(Q(max_access_count=0) | Q(access_count__lt=F("max_access_count")))
            )
            changes = {
                "access_count": F("access_count") + 1,
                "last_accessed_at": now,
                "updated_at": now,
            }
            devices = snapshot.devices_after_access(device_fingerprint, now)
            if len(devices) != len(snapshot.device_fingerprints):
                # Another writer may have registered a device since the
                # snapshot when the database ignores row locks.
                guarded = guarded.filter(updated_at=locked.updated_at)
                changes["device_fingerprints"] = devices
            return snapshot, None, self._guarded_update(guarded, changes)

    def _guarded_update(self, guarded, changes):
        return guarded.update(**changes)

    @sync_to_async
    def record_access(
        self,
        license_id: uuid.UUID,
        device_fingerprint: Optional[Dict[str, Any]],
        now: datetime,
    ) -> Tuple[Optional[License], Optional[AccessDenialReason]]:
        """
        Atomically record one granted access.

        The row is locked with ``SELECT ... FOR UPDATE``, the access and
        device rules are re-checked on the locked row, and the counter is
        bumped by a conditional UPDATE that only matches while the
        ceiling is not reached. Zero rows updated means the access lost
        a race and is denied.

        A new-device write also loses when any other write touched the
        row. It is retried on a fresh read for as long as the rules still
        grant it; only races lost to other device registrations are
        capped.

        Args:
            license_id: License UUID
            device_fingerprint: Optional fingerprint to register
            now: Time of the access

        Returns:
            Tuple of (updated license, None) on success, or
            (current license or None, denial reason) when refused
        """
        device_races = 0
        previous = None
        while device_races < MAX_DEVICE_WRITE_ATTEMPTS:
            snapshot, reason, updated = self._write_access(license_id, device_fingerprint, now)
            if reason is not None:
                return snapshot, reason
            if updated:
                return self._load(license_id), None
            if previous is not None and previous.device_fingerprints != snapshot.device_fingerprints:
                device_races += 1
            previous = snapshot
        fresh = self._load(license_id)
        if fresh is not None:
            reason = AccessPolicy.check_state(fresh, device_fingerprint, now)
            if reason is not None:
                return fresh, reason
        return fresh, AccessDenialReason.ACCESS_NOT_ALLOWED

    @sync_to_async
    def update_license_brand(
        self, license_id: uuid.UUID, brand_id: uuid.UUID, **fields: Any
    ) -> Optional[License]:
        """
        Update attributes of one brand grant.

        Args:
            license_id: License UUID
            brand_id: Brand UUID
            **fields: Attribute values keyed by field name

        Returns:
            Parent license with brands reloaded, or None if the grant
            does not exist
        """
        unknown = set(fields) - UPDATABLE_LICENSE_BRAND_FIELDS
        if unknown:
            raise ValueError(f"Fields not updatable: {', '.join(sorted(unknown))}")
        if isinstance(fields.get("status"), LicenseBrandStatus):
            fields["status"] = fields["status"].value
        # pylint: disable=no-member
        updated = LicenseBrandModel.objects.alive().filter(
            license_id=license_id,
            brand_id=brand_id,
            license__deleted_at__isnull=True,
        ).update(updated_at=utcnow(), **fields)
        return self._load(license_id) if updated else None

    @sync_to_async
    def soft_delete(self, license_id: uuid.UUID, now: datetime) -> bool:
        """
        Soft-delete a license together with its brand grants.

        Args:
            license_id: License UUID
            now: Deletion time

        Returns:
            True if a live license was deleted
        """
        with transaction.atomic():
            # pylint: disable=no-member
            deleted = LicenseModel.objects.alive().filter(id=license_id).update(
                deleted_at=now, updated_at=now
            )
            if deleted:
                LicenseBrandModel.objects.alive().filter(license_id=license_id).update(
                    deleted_at=now, updated_at=now
                )
        return bool(deleted)

    @sync_to_async
    def get_stats(self, now: datetime) -> LicenseStats:
        """
        Aggregate license counts.

        Args:
            now: Reference time for expiry buckets

        Returns:
            LicenseStats
        """
        # pylint: disable=no-member
        alive = LicenseModel.objects.alive()
        by_status = {status.value: 0 for status in LicenseStatus.stored()}
        for row in alive.values("status").annotate(count=Count("id")).order_by():
            by_status[row["status"]] = row["count"]
        by_license_type = {
            row["license_type__name"]: row["count"]
            for row in alive.values("license_type__name").annotate(count=Count("id")).order_by()
        }
        return LicenseStats(
            total=alive.count(),
            by_status=by_status,
            expired=alive.filter(expires_at__lt=now).count(),
            expiring_in_7_days=alive.filter(
                expires_at__gte=now, expires_at__lte=now + timedelta(days=7)
            ).count(),
            expiring_in_30_days=alive.filter(
                expires_at__gte=now, expires_at__lte=now + timedelta(days=30)
            ).count(),
            by_license_type=by_license_type,
        )

    @sync_to_async
    def find_expiring(self, within_days: int, now: datetime) -> List[License]:
        models = (
            self._queryset()
            .filter(
                status=LicenseStatus.ACTIVE.value,
                expires_at__gte=now,
                expires_at__lte=now + timedelta(days=within_days),
            )
            .order_by("expires_at")
        )
        return [self._to_domain(model) for model in models]
