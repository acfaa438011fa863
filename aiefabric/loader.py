"""Design file loader.

Builds a ``Design`` from its YAML description::

    design: example
    tiles:
      - {name: t11, col: 1, row: 1}
    switchboxes:
      - name: sb11
        tile: t11
        body:
          - connect: {source: [DMA, 0], dest: [North, 0]}
          - masterset: {dest: [North, 1], amsels: [a0]}
          - amsel: {name: a0, arbiter: 0, select: 1}
    mems:
      - {name: m11, tile: t11, body: [{alloc: {name: buf, id: 3}}]}

Body entries are single-key mappings ``{op_name: attrs}``. Unknown op names are
kept as ``GenericOp`` so the audits can report them. A body that does not end
with ``end`` gets one appended.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import yaml

from aiefabric.design import (
    AMSel,
    Alloc,
    BodyEntry,
    Connect,
    Design,
    DesignError,
    End,
    GenericOp,
    MasterSet,
    PacketDest,
    PacketRules,
    PacketSource,
)
from aiefabric.log_config import get_logger
from aiefabric.ports import Port

logger = get_logger(__name__)


def parse_port(value: Any, where: str = "port") -> Port:
    """Parse a port written as ``[North, 0]``, ``"North:0"`` or a mapping.

    Raises:
        DesignError: If the value cannot be read as a port.
    """
    try:
        if isinstance(value, Port):
            return value
        if isinstance(value, dict):
            return Port.of(value["bundle"], value["index"])
        if isinstance(value, str):
            bundle, sep, index = value.replace(",", ":").partition(":")
            if not sep:
                raise ValueError("expected 'Bundle:index'")
            return Port.of(bundle, index)
        if isinstance(value, (list, tuple)) and len(value) == 2:
            return Port.of(value[0], value[1])
    except (KeyError, TypeError, ValueError) as e:
        raise DesignError(f"{where}: invalid port {value!r} ({e})") from e
    raise DesignError(f"{where}: invalid port {value!r}")


def _int(value: Any, where: str) -> int:
    if isinstance(value, (bool, float)):
        raise DesignError(f"{where}: expected an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise DesignError(f"{where}: expected an integer, got {value!r}") from e


def _ref(value: Any) -> str:
    """Return a definition name or a reference to one, whitespace trimmed."""
    return "" if value is None else str(value).strip()


def _name(attrs: dict[str, Any]) -> str:
    return _ref(attrs.get("name"))


def _connect(attrs: dict[str, Any], where: str) -> BodyEntry:
    return Connect(
        parse_port(attrs.get("source"), f"{where}.source"),
        parse_port(attrs.get("dest"), f"{where}.dest"),
        _name(attrs),
    )


def _masterset(attrs: dict[str, Any], where: str) -> BodyEntry:
    refs = attrs.get("amsels") or []
    if not isinstance(refs, list):
        raise DesignError(f"{where}.amsels: expected a list of amsel names")
    return MasterSet(
        parse_port(attrs.get("dest"), f"{where}.dest"),
        tuple(_ref(r) for r in refs),
        _name(attrs),
    )


def _packet_rules(attrs: dict[str, Any], where: str) -> BodyEntry:
    return PacketRules(parse_port(attrs.get("source"), f"{where}.source"), _name(attrs))


def _amsel(attrs: dict[str, Any], where: str) -> BodyEntry:
    name = _name(attrs)
    if not name:
        raise DesignError(f"{where}: amsel requires a name")
    return AMSel(
        name,
        _int(attrs.get("arbiter"), f"{where}.arbiter"),
        _int(attrs.get("select", 0), f"{where}.select"),
    )


def _packet_endpoint(cls: type) -> Callable[[dict[str, Any], str], BodyEntry]:
    def _build(attrs: dict[str, Any], where: str) -> BodyEntry:
        tile = _ref(attrs.get("tile"))
        if not tile:
            raise DesignError(f"{where}: {cls.op_name} requires a tile")
        return cls(tile, parse_port(attrs.get("port"), f"{where}.port"), _name(attrs))

    return _build


def _alloc(attrs: dict[str, Any], where: str) -> BodyEntry:
    extra = {k: v for k, v in attrs.items() if k != "name"}
    return Alloc(_name(attrs), extra)


def _end(attrs: dict[str, Any], where: str) -> BodyEntry:
    return End()


_ENTRY_BUILDERS: dict[str, Callable[[dict[str, Any], str], BodyEntry]] = {
    "connect": _connect,
    "masterset": _masterset,
    "packet_rules": _packet_rules,
    "amsel": _amsel,
    "packet_source": _packet_endpoint(PacketSource),
    "packet_dest": _packet_endpoint(PacketDest),
    "alloc": _alloc,
    "end": _end,
}


def parse_body(raw: Any, where: str) -> list[BodyEntry]:
    """Parse a list of ``{op_name: attrs}`` mappings into body entries.

    Raises:
        DesignError: If the body or one of its entries is malformed.
    """
    if raw is None:
        raw = []
    if not isinstance(raw, list):
        raise DesignError(f"{where}: body must be a list")

    body: list[BodyEntry] = []
    for pos, item in enumerate(raw):
        item_where = f"{where}[{pos}]"
        if isinstance(item, str):
            item = {item: {}}
        if not isinstance(item, dict) or len(item) != 1:
            raise DesignError(f"{item_where}: entry must be a single-key mapping")
        op_name, attrs = next(iter(item.items()))
        attrs = attrs or {}
        if not isinstance(attrs, dict):
            raise DesignError(f"{item_where}.{op_name}: attributes must be a mapping")
        builder = _ENTRY_BUILDERS.get(str(op_name))
        if builder is None:
            body.append(GenericOp(str(op_name), dict(attrs), _name(attrs)))
        else:
            body.append(builder(attrs, f"{item_where}.{op_name}"))

    if not body or not isinstance(body[-1], End):
        body.append(End())
    return body


def _section(data: dict[str, Any], key: str) -> list[dict[str, Any]]:
    items = data.get(key) or []
    if not isinstance(items, list):
        raise DesignError(f"{key}: expected a list")
    for pos, item in enumerate(items):
        if not isinstance(item, dict):
            raise DesignError(f"{key}[{pos}]: expected a mapping")
    return items


def _tile_ref(item: dict[str, Any], where: str) -> str:
    tile = _ref(item.get("tile"))
    if not tile:
        raise DesignError(f"{where}: missing 'tile' reference")
    return tile


def load_design(
    data: dict[str, Any], *, enforce_single_switchbox: bool = False
) -> Design:
    """Build a design from a parsed mapping.

    Args:
        data: Parsed design document.
        enforce_single_switchbox: Reject a second switchbox on a tile while
            building. Off by default so the tile audit reports it instead.

    Returns:
        The constructed design.

    Raises:
        DesignError: If the document is malformed or violates a construction
            invariant.
    """
    if not isinstance(data, dict):
        raise DesignError("design document must be a mapping")

    design = Design(
        str(data.get("design") or "design"),
        enforce_single_switchbox=enforce_single_switchbox,
    )

    for pos, item in enumerate(_section(data, "tiles")):
        where = f"tiles[{pos}]"
        design.add_tile(
            _int(item.get("col"), f"{where}.col"),
            _int(item.get("row"), f"{where}.row"),
            _name(item) or None,
        )

    for pos, item in enumerate(_section(data, "switchboxes")):
        where = f"switchboxes[{pos}]"
        design.add_switchbox(
            _tile_ref(item, where),
            parse_body(item.get("body"), f"{where}.body"),
            _name(item) or None,
        )

    for pos, item in enumerate(_section(data, "shim_switchboxes")):
        where = f"shim_switchboxes[{pos}]"
        design.add_shim_switchbox(
            _tile_ref(item, where),
            parse_body(item.get("body"), f"{where}.body"),
            _name(item) or None,
        )

    for pos, item in enumerate(_section(data, "packet_flows")):
        where = f"packet_flows[{pos}]"
        design.add_packet_flow(
            _int(item.get("id", pos), f"{where}.id"),
            parse_body(item.get("body"), f"{where}.body"),
            _name(item) or None,
        )

    for pos, item in enumerate(_section(data, "cores")):
        where = f"cores[{pos}]"
        design.add_core(
            _tile_ref(item, where),
            parse_body(item.get("body"), f"{where}.body"),
            _name(item) or None,
        )

    for pos, item in enumerate(_section(data, "mems")):
        where = f"mems[{pos}]"
        result_types = item.get("result_types") or []
        if not isinstance(result_types, list):
            raise DesignError(f"{where}.result_types: expected a list")
        design.add_mem(
            _tile_ref(item, where),
            parse_body(item.get("body"), f"{where}.body"),
            [str(t) for t in result_types],
            _name(item) or None,
        )

    for pos, item in enumerate(_section(data, "locks")):
        where = f"locks[{pos}]"
        design.add_lock(
            _tile_ref(item, where),
            _int(item.get("id", 0), f"{where}.id"),
            _name(item) or None,
        )

    for pos, item in enumerate(_section(data, "use_locks")):
        where = f"use_locks[{pos}]"
        lock = _ref(item.get("lock"))
        if not lock:
            raise DesignError(f"{where}: missing 'lock' reference")
        design.add_use_lock(
            lock,
            str(item.get("action", "acquire")),
            _int(item.get("value", 0), f"{where}.value"),
            _name(item) or None,
        )

    logger.debug("loaded design %s: %s", design.name, design.stats())
    return design


def load_design_yaml(text: str, *, enforce_single_switchbox: bool = False) -> Design:
    """Parse YAML text and build the design.

    Raises:
        yaml.YAMLError: If the text is not valid YAML.
        DesignError: If the document is not a valid design.
    """
    data = yaml.safe_load(text) or {}
    return load_design(data, enforce_single_switchbox=enforce_single_switchbox)


def load_design_file(path: Path, *, enforce_single_switchbox: bool = False) -> Design:
    """Read and build the design stored at ``path``."""
    logger.info(f"Loading design from: {path}")
    text = Path(path).read_text(encoding="utf-8")
    return load_design_yaml(text, enforce_single_switchbox=enforce_single_switchbox)
