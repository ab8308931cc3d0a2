"""
API key authentication middleware.

Resolves the ``X-API-Key`` header to a Principal for the license API.
The license core trusts the principal attached here.
"""

import logging
from typing import Optional

from django.http import HttpRequest, HttpResponse, JsonResponse
from django.utils.deprecation import MiddlewareMixin

from core.domain.value_objects import Principal, UserRole

logger = logging.getLogger(__name__)

# Routes reachable without an API key, under PROTECTED_PREFIX.
PUBLIC_PATHS = ("/api/v1/licenses/validate",)
PROTECTED_PREFIX = "/api/v1/"


class PrincipalAuthenticationMiddleware(MiddlewareMixin):
    """
    Middleware for API key authentication.

    This middleware:
    1. Leaves non-API and public routes untouched
    2. Looks up the hashed API key of an active user
    3. Attaches ``request.principal`` or returns 401
    """

    def process_request(self, request: HttpRequest) -> Optional[HttpResponse]:
        """
        Process request and validate authentication.

        Args:
            request: HTTP request

        Returns:
            HttpResponse with 401 if authentication fails, None otherwise
        """
        request.principal = None  # type: ignore
        if not request.path.startswith(PROTECTED_PREFIX) or self._is_public(request.path):
            return None
        return self._authenticate(request)

    def _is_public(self, path: str) -> bool:
        return any(path.rstrip("/") == public for public in PUBLIC_PATHS)

    def _authenticate(self, request: HttpRequest) -> Optional[HttpResponse]:
        from users.infrastructure.models import ApiKey

        raw_key = request.headers.get("X-API-Key") or request.headers.get(
            "Authorization", ""
        ).replace("Bearer ", "")

        if not raw_key:
            return self._unauthorized("Missing API key. Provide X-API-Key header.")

        # pylint: disable=no-member
        api_key = (
            ApiKey.objects.select_related("user")
            .filter(key_hash=ApiKey.hash_key(raw_key), user__deleted_at__isnull=True)
            .first()
        )
        if not api_key:
            logger.warning("Invalid API key attempted: %s...", raw_key[:8])
            return self._unauthorized("Invalid API key")
        if not api_key.is_valid():
            logger.warning("Expired API key attempted: %s...", raw_key[:8])
            return self._unauthorized("API key expired")
        if api_key.user.status != "active":
            logger.warning("API key of inactive user %s attempted", api_key.user_id)
            return self._unauthorized("User is not active")

        api_key.mark_used()
        request.principal = Principal(id=api_key.user_id, role=UserRole(api_key.user.role))  # type: ignore
        return None

    @staticmethod
    def _unauthorized(message: str) -> JsonResponse:
        return JsonResponse({"error": {"code": "UNAUTHORIZED", "message": message}}, status=401)
