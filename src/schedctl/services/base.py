"""BaseService — shared foundation for schedctl services.

Every service receives the merged :class:`SchedSettings` at construction
time and looks profiles up through it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from schedctl.services.result import ServiceResult

if TYPE_CHECKING:
    from schedctl.config.models import ProfileConfig
    from schedctl.config.settings import SchedSettings

logger = logging.getLogger(__name__)


class BaseService:
    """Base for all service-layer classes.

    Usage::

        class ScheduleService(BaseService):
            def show(self, name: str) -> ServiceResult:
                profile = self._profile("show", name)
                ...
    """

    def __init__(self, settings: SchedSettings) -> None:
        self._settings = settings

    def _profile(self, op: str, name: str) -> ProfileConfig | ServiceResult:
        """Look up profile *name*, or an error result explaining why not."""
        if self._settings.config_path is None and not self._settings.profiles:
            return ServiceResult.failure(
                op,
                "NO_CONFIG",
                "No profiles file found (use --config or SCHEDCTL_CONFIG)",
            )
        profile = self._settings.profiles.get(name)
        if profile is None:
            return ServiceResult.failure(
                op,
                "PROFILE_NOT_FOUND",
                f"No profile named {name!r}",
                detail={"available": sorted(self._settings.profiles)},
            )
        logger.debug("Resolved profile %s", name)
        return profile
