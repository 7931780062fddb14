"""CNC controller profiles.

Each supported controller maps onto one of three post-processing
dialects.  Siemens, Mazak and Okuma currently share the generic path;
Haas reuses the Fanuc path.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class ControllerType(Enum):
    FANUC = "fanuc"
    HEIDENHAIN = "heidenhain"
    SIEMENS = "siemens"
    HAAS = "haas"
    MAZAK = "mazak"
    OKUMA = "okuma"
    GENERIC = "generic"

    @classmethod
    def coerce(cls, value: Union[ControllerType, str]) -> ControllerType:
        """Accept an enum member or its (case-insensitive) name."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            known = ", ".join(c.value for c in cls)
            raise ValueError(
                f"Unknown controller {value!r}; expected one of: {known}"
            ) from None


class Dialect(Enum):
    FANUC = "fanuc"            # address-word G-code, Fanuc extensions
    HEIDENHAIN = "heidenhain"  # numbered conversational blocks
    GENERIC = "generic"        # address-word G-code, portable subset


@dataclass(frozen=True)
class ControllerProfile:
    """How programs for one controller family are post-processed."""

    controller: ControllerType
    display_name: str
    dialect: Dialect
    adaptation_note: Optional[str] = None   # appended to the improvements

    def __str__(self) -> str:
        return f"{self.display_name} ({self.dialect.value} dialect)"


_PROFILES: dict[ControllerType, ControllerProfile] = {
    ControllerType.FANUC: ControllerProfile(
        controller=ControllerType.FANUC,
        display_name="Fanuc",
        dialect=Dialect.FANUC,
    ),
    ControllerType.HEIDENHAIN: ControllerProfile(
        controller=ControllerType.HEIDENHAIN,
        display_name="Heidenhain",
        dialect=Dialect.HEIDENHAIN,
    ),
    ControllerType.SIEMENS: ControllerProfile(
        controller=ControllerType.SIEMENS,
        display_name="Siemens",
        dialect=Dialect.GENERIC,
    ),
    ControllerType.HAAS: ControllerProfile(
        controller=ControllerType.HAAS,
        display_name="Haas",
        dialect=Dialect.FANUC,
        adaptation_note="Adapted for Haas controller",
    ),
    ControllerType.MAZAK: ControllerProfile(
        controller=ControllerType.MAZAK,
        display_name="Mazak",
        dialect=Dialect.GENERIC,
    ),
    ControllerType.OKUMA: ControllerProfile(
        controller=ControllerType.OKUMA,
        display_name="Okuma",
        dialect=Dialect.GENERIC,
    ),
    ControllerType.GENERIC: ControllerProfile(
        controller=ControllerType.GENERIC,
        display_name="Generic",
        dialect=Dialect.GENERIC,
    ),
}


def get_profile(controller: Union[ControllerType, str]) -> ControllerProfile:
    return _PROFILES[ControllerType.coerce(controller)]


def list_profiles() -> list[ControllerProfile]:
    return list(_PROFILES.values())
