"""ProfileService — read-only view of the configured profiles."""

from __future__ import annotations

from schedctl.services.base import BaseService
from schedctl.services.result import ServiceResult


class ProfileService(BaseService):
    """List the profiles of the discovered profiles file."""

    def list_profiles(self) -> ServiceResult:
        op = "list_profiles"
        settings = self._settings
        if settings.config_path is None and not settings.profiles:
            return ServiceResult.failure(
                op,
                "NO_CONFIG",
                "No profiles file found (use --config or SCHEDCTL_CONFIG)",
            )

        items = [
            {
                "name": name,
                "command": profile.command,
                "schedules": list(profile.schedule),
                "permission": profile.permission or settings.scheduler.permission,
                "priority": profile.priority or settings.scheduler.priority,
            }
            for name, profile in sorted(settings.profiles.items())
        ]
        warnings = [f"Profile {i['name']!r} has no schedule" for i in items if not i["schedules"]]
        return ServiceResult(
            ok=True,
            op=op,
            data={"items": items, "count": len(items)},
            warnings=warnings,
            meta={"config_path": str(settings.config_path) if settings.config_path else None},
        )
