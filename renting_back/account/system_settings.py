"""Per-request snapshot of the runtime toggles stored in ``SystemSetting``."""
from dataclasses import dataclass, fields

from django.conf import settings


@dataclass(frozen=True)
class SystemSettingsSnapshot:
    enable_registration: bool = True
    enable_login: bool = True

    @classmethod
    def from_mapping(cls, values):
        known = {f.name for f in fields(cls)}
        return cls(**{key: bool(value) for key, value in values.items() if key in known})

    def as_dict(self):
        return {f.name: getattr(self, f.name) for f in fields(self)}


def load_system_settings():
    """Read every toggle once, falling back to DEFAULT_SYSTEM_SETTINGS."""
    from .models import SystemSetting

    values = dict(getattr(settings, "DEFAULT_SYSTEM_SETTINGS", {}))
    values.update(SystemSetting.objects.values_list("key", "is_enabled"))
    return SystemSettingsSnapshot.from_mapping(values)
