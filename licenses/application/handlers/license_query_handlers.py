"""
License query handlers.

Read-only handlers: single license, listings and statistics.
"""
from core.domain.events import utcnow
from core.domain.exceptions import LicenseNotFoundError
from licenses.application.dto.license_dto import LicenseDTO, LicensePageDTO
from licenses.application.queries.get_license import GetLicenseByKeyQuery, GetLicenseQuery
from licenses.application.queries.get_license_stats import GetLicenseStatsQuery
from licenses.application.queries.list_licenses import ListLicensesQuery, ListUserLicensesQuery
from licenses.ports.license_repository import LicenseRepository, LicenseStats


class GetLicenseHandler:
    """Handler for GetLicenseQuery."""

    def __init__(self, license_repository: LicenseRepository):
        self.license_repository = license_repository

    async def handle(self, query: GetLicenseQuery) -> LicenseDTO:
        """
        Raises:
            LicenseNotFoundError: If license not found
        """
        license = await self.license_repository.find_by_id(query.license_id)
        if not license:
            raise LicenseNotFoundError(f"License {query.license_id} not found")
        return LicenseDTO.from_entity(license)


class GetLicenseByKeyHandler:
    """Handler for GetLicenseByKeyQuery."""

    def __init__(self, license_repository: LicenseRepository):
        self.license_repository = license_repository

    async def handle(self, query: GetLicenseByKeyQuery) -> LicenseDTO:
        license = await self.license_repository.find_by_key(query.license_key.strip())
        if not license:
            raise LicenseNotFoundError(f"License {query.license_key} not found")
        return LicenseDTO.from_entity(license)


class ListLicensesHandler:
    """Handler for ListLicensesQuery."""

    def __init__(self, license_repository: LicenseRepository):
        self.license_repository = license_repository

    async def handle(self, query: ListLicensesQuery) -> LicensePageDTO:
        page = await self.license_repository.list_filtered(query.page_request, query.filters)
        return LicensePageDTO.from_page(page)


class ListUserLicensesHandler:
    """Handler for ListUserLicensesQuery."""

    def __init__(self, license_repository: LicenseRepository):
        self.license_repository = license_repository

    async def handle(self, query: ListUserLicensesQuery) -> list:
        now = utcnow()
        licenses = await self.license_repository.find_by_user(query.user_id)
        return [LicenseDTO.from_entity(license, now) for license in licenses]


class GetLicenseStatsHandler:
    """Handler for GetLicenseStatsQuery."""

    def __init__(self, license_repository: LicenseRepository):
        self.license_repository = license_repository

    async def handle(self, query: GetLicenseStatsQuery) -> LicenseStats:
        return await self.license_repository.get_stats(utcnow())
