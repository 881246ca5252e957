"""
OSM POI Import — POI capability and shared value types

Every source record (survey beacon, gazetteer entry, Overpass element) is
usable as a POI as long as it exposes coordinates, an ordered list of names
and a tag mapping.  There is no shared base class; records satisfy the
``POI`` protocol structurally.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol, runtime_checkable


class NameKey(str, Enum):
    """Name classes, valued by their OSM tag key."""

    DEFAULT = "name"
    INTERNATIONAL = "int_name"
    NATIONAL = "nat_name"
    LOCAL = "loc_name"
    OLD = "old_name"
    ALTERNATIVE = "alt_name"
    ENGLISH = "name:en"
    AFRIKAANS = "name:af"


@dataclass(frozen=True)
class Name:
    """A single (name-class, value) pair.

    ``key`` is usually a ``NameKey`` but Overpass elements may carry any
    ``*name*`` tag, so plain strings are accepted too.
    """
    key: NameKey | str
    value: str

    @property
    def tag_key(self) -> str:
        return self.key.value if isinstance(self.key, NameKey) else str(self.key)


@dataclass(frozen=True)
class Attribute:
    """A key/value tag filter sent to the spatial query service."""
    key: str
    value: str


@runtime_checkable
class POI(Protocol):
    """Structural POI capability."""

    @property
    def latitude(self) -> float: ...

    @property
    def longitude(self) -> float: ...

    @property
    def names(self) -> list[Name]: ...

    @property
    def tags(self) -> dict[str, str]: ...


@runtime_checkable
class OSMPOI(POI, Protocol):
    """A POI that knows which tag filters locate it in OpenStreetMap."""

    def osm_filter(self) -> list[Attribute]: ...


@dataclass
class PointOfInterest:
    """Generic POI record for callers without a source-specific type."""

    latitude: float
    longitude: float
    names: list[Name] = field(default_factory=list)
    tags: dict[str, str] = field(default_factory=dict)

    def add_tag(self, key: str, value: str) -> None:
        """Attach a diagnostic tag (e.g. ``fixme``) after resolution."""
        self.tags[key] = value

    def __str__(self) -> str:
        label = self.names[0].value if self.names else "<unnamed>"
        return f"{label} ({self.latitude:.6f}, {self.longitude:.6f})"
