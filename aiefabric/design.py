"""In-memory design graph for a tile array configuration.

The ``Design`` owns every entity of a configuration: tiles, switchboxes, shim
switchboxes, packet flows, cores, memories, locks and lock uses. Entities refer
to each other through name handles (a switchbox names its tile, a lock use
names its lock). Every such reference is also recorded as an edge of a
``networkx.MultiDiGraph`` so that the dependents of an entity are a graph
query rather than a scan.

Entities and body entries are immutable once constructed. Malformed
construction (an empty core body, a second switchbox on a tile) raises
``DesignError``; everything else is left to the audits in
``aiefabric.validation``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Iterable, Iterator, Union

import networkx as nx

from aiefabric.capacity_lib import (
    CapacityTable,
    num_dest_connections,
    num_source_connections,
)
from aiefabric.log_config import get_logger
from aiefabric.naming import tile_name
from aiefabric.ports import Connection, EntityKind, Port, WireBundle

logger = get_logger(__name__)


class DesignError(ValueError):
    """Raised when a design cannot be constructed as described."""


class UnresolvedReferenceError(DesignError, LookupError):
    """Raised when a handle does not resolve to an entity of the expected kind."""


# --- Body entries ---------------------------------------------------------


@dataclass(frozen=True)
class Connect:
    """Circuit-switched connection inside a switchbox body."""

    op_name: ClassVar[str] = "connect"

    source: Port
    dest: Port
    name: str = ""

    @property
    def connection(self) -> Connection:
        return Connection(self.source, self.dest)


@dataclass(frozen=True)
class MasterSet:
    """Destination port driven through the arbiter selections ``amsels``."""

    op_name: ClassVar[str] = "masterset"

    dest: Port
    amsels: tuple[str, ...] = ()
    name: str = ""


@dataclass(frozen=True)
class PacketRules:
    """Packet-switched source port inside a switchbox body."""

    op_name: ClassVar[str] = "packet_rules"

    source: Port
    name: str = ""


@dataclass(frozen=True)
class AMSel:
    """Arbiter/select pair referenced by master sets."""

    op_name: ClassVar[str] = "amsel"

    name: str
    arbiter: int
    select: int = 0


@dataclass(frozen=True)
class PacketSource:
    op_name: ClassVar[str] = "packet_source"

    tile: str
    port: Port
    name: str = ""


@dataclass(frozen=True)
class PacketDest:
    op_name: ClassVar[str] = "packet_dest"

    tile: str
    port: Port
    name: str = ""


@dataclass(frozen=True)
class Alloc:
    """Memory allocation inside a mem body; ``attrs`` should carry an ``id``."""

    op_name: ClassVar[str] = "alloc"

    name: str = ""
    attrs: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def has_id(self) -> bool:
        return self.attrs.get("id") is not None


@dataclass(frozen=True)
class End:
    """Body terminator."""

    op_name: ClassVar[str] = "end"


@dataclass(frozen=True)
class GenericOp:
    """Any operation without a dedicated entry type."""

    op_name: str
    attrs: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)
    name: str = ""


BodyEntry = Union[
    Connect,
    MasterSet,
    PacketRules,
    AMSel,
    PacketSource,
    PacketDest,
    Alloc,
    End,
    GenericOp,
]


# --- Entities -------------------------------------------------------------


class _TileScoped:
    """Mixin for entities placed on a tile through a ``tile`` handle."""

    tile: str

    def column(self, design: Design) -> int:
        return design.tile_of(self).col

    def row(self, design: Design) -> int:
        return design.tile_of(self).row


@dataclass(frozen=True)
class Tile:
    """One grid cell of the array."""

    kind: ClassVar[str] = "tile"

    col: int
    row: int
    name: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            object.__setattr__(self, "name", tile_name(self.col, self.row))

    def num_source_connections(
        self, bundle: WireBundle | str, table: CapacityTable | None = None
    ) -> int:
        return num_source_connections(EntityKind.TILE, bundle, table)

    def num_dest_connections(
        self, bundle: WireBundle | str, table: CapacityTable | None = None
    ) -> int:
        return num_dest_connections(EntityKind.TILE, bundle, table)


@dataclass(frozen=True)
class Switchbox(_TileScoped):
    """Programmable router of a tile."""

    kind: ClassVar[str] = "switchbox"

    name: str
    tile: str
    body: tuple[BodyEntry, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "body", tuple(self.body))

    def num_source_connections(
        self, bundle: WireBundle | str, table: CapacityTable | None = None
    ) -> int:
        return num_source_connections(EntityKind.SWITCHBOX, bundle, table)

    def num_dest_connections(
        self, bundle: WireBundle | str, table: CapacityTable | None = None
    ) -> int:
        return num_dest_connections(EntityKind.SWITCHBOX, bundle, table)

    def connections(self) -> list[Connection]:
        return [e.connection for e in self.body if isinstance(e, Connect)]


@dataclass(frozen=True)
class ShimSwitchbox(_TileScoped):
    """Router of a boundary tile; circuit-switched connections only."""

    kind: ClassVar[str] = "shim_switchbox"

    name: str
    tile: str
    body: tuple[BodyEntry, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "body", tuple(self.body))


@dataclass(frozen=True)
class PacketFlow:
    """Named packet route built from packet source and destination entries."""

    kind: ClassVar[str] = "packet_flow"

    name: str
    flow_id: int = 0
    body: tuple[BodyEntry, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "body", tuple(self.body))

    def endpoint_tiles(self) -> list[str]:
        tiles: list[str] = []
        for entry in self.body:
            if not isinstance(entry, (PacketSource, PacketDest)):
                continue
            if entry.tile not in tiles:
                tiles.append(entry.tile)
        return tiles


@dataclass(frozen=True)
class Core(_TileScoped):
    """Compute core of a tile. The body must not be empty."""

    kind: ClassVar[str] = "core"

    name: str
    tile: str
    body: tuple[BodyEntry, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "body", tuple(self.body))
        if not self.body:
            raise DesignError(f"core '{self.name}' must have a non-empty body")


@dataclass(frozen=True)
class Mem(_TileScoped):
    """Local memory of a tile. The body must not be empty.

    A mem is callable by downstream lowering: its body is the callable region
    and ``result_types`` are the types that region produces.
    """

    kind: ClassVar[str] = "mem"

    name: str
    tile: str
    body: tuple[BodyEntry, ...] = ()
    result_types: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "body", tuple(self.body))
        object.__setattr__(self, "result_types", tuple(self.result_types))
        if not self.body:
            raise DesignError(f"mem '{self.name}' must have a non-empty body")

    def callable_region(self) -> tuple[BodyEntry, ...]:
        return self.body

    def callable_results(self) -> tuple[str, ...]:
        return self.result_types

    def allocs(self) -> list[Alloc]:
        return [e for e in self.body if isinstance(e, Alloc)]


@dataclass(frozen=True)
class Lock(_TileScoped):
    kind: ClassVar[str] = "lock"

    name: str
    tile: str
    lock_id: int = 0


LOCK_ACTIONS = ("acquire", "release")


@dataclass(frozen=True)
class UseLock:
    """Acquire or release of a lock by consuming code."""

    kind: ClassVar[str] = "use_lock"

    name: str
    lock: str
    action: str = "acquire"
    value: int = 0

    def __post_init__(self) -> None:
        if self.action not in LOCK_ACTIONS:
            raise DesignError(
                f"use_lock '{self.name}' action must be one of {LOCK_ACTIONS}, "
                f"got '{self.action}'"
            )


# --- Design store ---------------------------------------------------------


def _handle(ref: Any) -> str:
    """Return the name handle for an entity or a handle string."""
    name = getattr(ref, "name", ref)
    return str(name)


class Design:
    """Graph store owning all entities of one configuration.

    Args:
        name: Design name used in logs and reports.
        enforce_single_switchbox: When True, adding a second switchbox to a
            tile raises ``DesignError``. When False the design is accepted
            and the tile audit reports the violation instead.
    """

    def __init__(
        self, name: str = "design", *, enforce_single_switchbox: bool = True
    ) -> None:
        self.name = name
        self.enforce_single_switchbox = enforce_single_switchbox
        self.tiles: dict[str, Tile] = {}
        self.switchboxes: dict[str, Switchbox] = {}
        self.shim_switchboxes: dict[str, ShimSwitchbox] = {}
        self.packet_flows: dict[str, PacketFlow] = {}
        self.cores: dict[str, Core] = {}
        self.mems: dict[str, Mem] = {}
        self.locks: dict[str, Lock] = {}
        self.use_locks: dict[str, UseLock] = {}
        self.graph = nx.MultiDiGraph()
        self._coords: dict[tuple[int, int], str] = {}

    def __repr__(self) -> str:
        return (
            f"Design(name={self.name!r}, entities={len(self)}, "
            f"references={self.graph.number_of_edges()})"
        )

    def __len__(self) -> int:
        return sum(1 for _ in self.entities())

    # -- registration

    def _register(self, name: str, kind: str) -> None:
        if not name:
            raise DesignError(f"{kind} name cannot be empty")
        if self.graph.nodes.get(name, {}).get("kind") is not None:
            existing = self.graph.nodes[name]["kind"]
            raise DesignError(f"duplicate entity name '{name}' (already a {existing})")
        self.graph.add_node(name, kind=kind)

    def _reference(self, user: str, target: str, ref: str) -> None:
        # Dangling targets become kind-less nodes; resolution reports them.
        self.graph.add_edge(user, target, ref=ref)

    def _unique_name(self, prefix: str) -> str:
        name = prefix
        suffix = 1
        while name in self.graph:
            name = f"{prefix}_{suffix}"
            suffix += 1
        return name

    def add_tile(self, col: int, row: int, name: str | None = None) -> Tile:
        """Add the tile at ``(col, row)``.

        Raises:
            DesignError: If coordinates are negative, or the coordinates or
                name are already taken.
        """
        col, row = int(col), int(row)
        if col < 0 or row < 0:
            raise DesignError(f"tile coordinates must be non-negative: ({col}, {row})")
        if (col, row) in self._coords:
            raise DesignError(
                f"tile ({col}, {row}) already defined as '{self._coords[(col, row)]}'"
            )
        tile = Tile(col, row, name or "")
        self._register(tile.name, Tile.kind)
        self.graph.nodes[tile.name].update(col=col, row=row)
        self.tiles[tile.name] = tile
        self._coords[(col, row)] = tile.name
        return tile

    def add_switchbox(
        self,
        tile: Tile | str,
        body: Iterable[BodyEntry],
        name: str | None = None,
    ) -> Switchbox:
        """Attach a switchbox to ``tile``.

        Raises:
            DesignError: If single attachment is enforced and the tile already
                has a switchbox.
        """
        tile_ref = _handle(tile)
        existing = self.switchboxes_of(tile_ref)
        if existing and self.enforce_single_switchbox:
            raise DesignError(
                f"tile '{tile_ref}' can only have one switchbox; "
                f"already has '{existing[0]}'"
            )
        sb_name = name or self._unique_name(f"switchbox_{tile_ref}")
        sb = Switchbox(sb_name, tile_ref, body)
        self._register(sb.name, Switchbox.kind)
        self._reference(sb.name, tile_ref, "tile")
        self.switchboxes[sb.name] = sb
        return sb

    def add_shim_switchbox(
        self,
        tile: Tile | str,
        body: Iterable[BodyEntry],
        name: str | None = None,
    ) -> ShimSwitchbox:
        tile_ref = _handle(tile)
        shim = ShimSwitchbox(
            name or self._unique_name(f"shim_switchbox_{tile_ref}"), tile_ref, body
        )
        self._register(shim.name, ShimSwitchbox.kind)
        self._reference(shim.name, tile_ref, "tile")
        self.shim_switchboxes[shim.name] = shim
        return shim

    def add_packet_flow(
        self, flow_id: int, body: Iterable[BodyEntry], name: str | None = None
    ) -> PacketFlow:
        flow_name = name or self._unique_name(f"packet_flow_{flow_id}")
        flow = PacketFlow(flow_name, int(flow_id), body)
        self._register(flow.name, PacketFlow.kind)
        for tile_ref in flow.endpoint_tiles():
            self._reference(flow.name, tile_ref, "packet_endpoint")
        self.packet_flows[flow.name] = flow
        return flow

    def add_core(
        self, tile: Tile | str, body: Iterable[BodyEntry], name: str | None = None
    ) -> Core:
        """Add a core on ``tile``.

        Raises:
            DesignError: If the body is empty.
        """
        tile_ref = _handle(tile)
        core = Core(name or self._unique_name(f"core_{tile_ref}"), tile_ref, body)
        self._register(core.name, Core.kind)
        self._reference(core.name, tile_ref, "tile")
        self.cores[core.name] = core
        return core

    def add_mem(
        self,
        tile: Tile | str,
        body: Iterable[BodyEntry],
        result_types: Iterable[str] = (),
        name: str | None = None,
    ) -> Mem:
        """Add a mem on ``tile``.

        Raises:
            DesignError: If the body is empty.
        """
        tile_ref = _handle(tile)
        mem_name = name or self._unique_name(f"mem_{tile_ref}")
        mem = Mem(mem_name, tile_ref, body, tuple(result_types))
        self._register(mem.name, Mem.kind)
        self._reference(mem.name, tile_ref, "tile")
        self.mems[mem.name] = mem
        return mem

    def add_lock(
        self, tile: Tile | str, lock_id: int = 0, name: str | None = None
    ) -> Lock:
        tile_ref = _handle(tile)
        lock_name = name or self._unique_name(f"lock_{tile_ref}_{lock_id}")
        lock = Lock(lock_name, tile_ref, int(lock_id))
        self._register(lock.name, Lock.kind)
        self._reference(lock.name, tile_ref, "tile")
        self.locks[lock.name] = lock
        return lock

    def add_use_lock(
        self,
        lock: Lock | str,
        action: str = "acquire",
        value: int = 0,
        name: str | None = None,
    ) -> UseLock:
        lock_ref = _handle(lock)
        use_name = name or self._unique_name(f"use_lock_{lock_ref}")
        use = UseLock(use_name, lock_ref, action, int(value))
        self._register(use.name, UseLock.kind)
        self._reference(use.name, lock_ref, "lock")
        self.use_locks[use.name] = use
        return use

    # -- queries

    def kind_of(self, name: str) -> str | None:
        """Return the kind of entity ``name``, or None when undefined."""
        return self.graph.nodes.get(name, {}).get("kind")

    def users(self, name: str, kind: str | None = None) -> list[str]:
        """Return entities referencing ``name``, in insertion order.

        Args:
            name: Referenced entity handle.
            kind: Optional filter on the kind of the referencing entity.
        """
        if name not in self.graph:
            return []
        result: list[str] = []
        for user in self.graph.predecessors(name):
            if kind is None or self.kind_of(user) == kind:
                result.append(user)
        return result

    def switchboxes_of(self, tile: Tile | str) -> list[str]:
        return self.users(_handle(tile), kind=Switchbox.kind)

    def tile_at(self, col: int, row: int) -> Tile | None:
        name = self._coords.get((int(col), int(row)))
        return self.tiles.get(name) if name is not None else None

    def resolve_tile(self, handle: str) -> Tile:
        """Return the tile named ``handle``.

        Raises:
            UnresolvedReferenceError: If ``handle`` names no tile.
        """
        tile = self.tiles.get(handle)
        if tile is not None:
            return tile
        other = self.kind_of(handle)
        if other is not None:
            raise UnresolvedReferenceError(f"'{handle}' is a {other}, not a tile")
        raise UnresolvedReferenceError(f"'{handle}' does not resolve to a tile")

    def tile_of(self, entity: Any) -> Tile:
        return self.resolve_tile(entity.tile)

    def lookup_lock(self, handle: str) -> Lock | None:
        return self.locks.get(handle)

    def entities(self) -> Iterator[Any]:
        """Yield every entity in a stable order grouped by kind."""
        for group in (
            self.tiles,
            self.switchboxes,
            self.shim_switchboxes,
            self.packet_flows,
            self.cores,
            self.mems,
            self.locks,
            self.use_locks,
        ):
            yield from group.values()

    def stats(self) -> dict[str, int]:
        """Return entity counts per kind plus the number of references."""
        counts: dict[str, int] = {}
        for entity in self.entities():
            counts[entity.kind] = counts.get(entity.kind, 0) + 1
        counts["references"] = self.graph.number_of_edges()
        return counts
