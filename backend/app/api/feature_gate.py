"""Feature-flag guards for public endpoints.

Every flag defaults to enabled: if a setting row is missing or the settings
store cannot be read, the request is let through.
"""

from __future__ import annotations

from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from typing import Any

from fastapi import Depends, HTTPException, Request

from app.api.deps import get_settings_service
from app.core.logging import get_logger
from app.services.settings import DEFAULT_MAINTENANCE_MESSAGE, SettingsService

logger = get_logger(__name__)

API_DISABLED_MESSAGE = "The service is temporarily unavailable. Please try again later."

# Flags that can switch off a single public feature
FEATURE_FLAGS = (
    "registration_enabled",
    "login_enabled",
    "product_creation_enabled",
    "product_editing_enabled",
    "wishlist_enabled",
)


@dataclass(frozen=True)
class GateDecision:
    """Outcome of a feature check."""

    allowed: bool
    reason: str | None = None


class FeatureGate:
    """Answers "is this flag on?" through the fail-open settings read."""

    def __init__(self, service: SettingsService):
        self.service = service

    async def check(self, flag: str) -> GateDecision:
        """Check an ``*_enabled`` flag."""
        enabled = await self.service.read_with_default(flag, True)
        if enabled:
            return GateDecision(allowed=True)
        return GateDecision(allowed=False, reason="This feature is currently disabled.")

    async def check_service_available(self) -> GateDecision:
        """Check the API kill switch first, then maintenance mode."""
        api_enabled = await self.service.read_with_default("api_enabled", True)
        if not api_enabled:
            return GateDecision(allowed=False, reason=API_DISABLED_MESSAGE)

        in_maintenance = await self.service.read_with_default("maintenance_mode", False)
        if in_maintenance:
            message = await self.service.read_with_default(
                "maintenance_message", DEFAULT_MAINTENANCE_MESSAGE
            )
            return GateDecision(allowed=False, reason=message or DEFAULT_MAINTENANCE_MESSAGE)

        return GateDecision(allowed=True)


async def ensure_service_available(
    request: Request,
    service: SettingsService = Depends(get_settings_service),
) -> None:
    """Router-level guard rejecting public traffic during maintenance or shutdown."""
    decision = await FeatureGate(service).check_service_available()
    if decision.allowed:
        return

    logger.info("request_rejected_unavailable", path=request.url.path)
    raise HTTPException(
        status_code=503,
        detail={
            "error": "Service unavailable",
            "message": decision.reason,
            "maintenance": True,
        },
    )


def require_feature(flag: str) -> Callable[..., Coroutine[Any, Any, None]]:
    """Build a dependency that rejects the request with 403 while ``flag`` is off."""
    if flag not in FEATURE_FLAGS:
        raise ValueError(f"Unknown feature flag: {flag}")

    async def check_feature(
        service: SettingsService = Depends(get_settings_service),
    ) -> None:
        decision = await FeatureGate(service).check(flag)
        if decision.allowed:
            return

        logger.info("feature_disabled_rejected", feature=flag)
        raise HTTPException(
            status_code=403,
            detail={
                "error": "Feature disabled",
                "message": decision.reason,
                "feature": flag,
            },
        )

    return check_feature
