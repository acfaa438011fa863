"""Port and connection value types.

A port is addressed by its wire bundle (routing direction class) and an index
within that bundle. Ports are immutable and hashable so they can be used as
keys when a switchbox body is scanned for conflicts.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class WireBundle(Enum):
    """Routing direction classes of a tile boundary."""

    ME = "ME"
    DMA = "DMA"
    NORTH = "North"
    SOUTH = "South"
    EAST = "East"
    WEST = "West"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: Any) -> WireBundle:
        """Return the bundle named by ``value``.

        Accepts a ``WireBundle``, its canonical spelling (``"North"``) or any
        case variant of it.

        Raises:
            ValueError: If ``value`` names no bundle.
        """
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        for bundle in cls:
            if bundle.value.lower() == text:
                return bundle
        names = ", ".join(b.value for b in cls)
        raise ValueError(f"Unknown wire bundle '{value}'. Expected one of: {names}")


class EntityKind(Enum):
    """Entity kinds that carry a port capacity table."""

    SWITCHBOX = "switchbox"
    TILE = "tile"


class PortRole(Enum):
    """Whether a port is used as the driving or the driven end."""

    SOURCE = "source"
    DEST = "dest"


@dataclass(frozen=True)
class Port:
    """A ``(bundle, index)`` address.

    The index is kept exactly as given; negative values are representable so
    that range audits can report them.
    """

    bundle: WireBundle
    index: int

    def __str__(self) -> str:
        return f"{self.bundle.value},{self.index}"

    @classmethod
    def of(cls, bundle: Any, index: Any) -> Port:
        """Build a port from a bundle name and an integer or integer string.

        Raises:
            ValueError: If the bundle is unknown or the index is not an integer.
        """
        return cls(WireBundle.parse(bundle), _parse_index(index))


def _parse_index(value: Any) -> int:
    # bool is an int subclass; floats would be truncated by int()
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise ValueError(f"port index must be an integer, got {value!r}")


@dataclass(frozen=True)
class Connection:
    """Directed circuit-switched mapping ``source -> dest``."""

    source: Port
    dest: Port

    def __str__(self) -> str:
        return f"{self.source} -> {self.dest}"
