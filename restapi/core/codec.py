"""Identifier & Filter Codec — turns raw path/query strings into domain values.

Invariants:
    - Pure functions: no IO, no logging, no remote calls
    - Every failure raises InvalidInputError naming the offending field
    - Identifiers are returned in canonical string form
    - Type filters and status filters are separate bitmask domains

Design Decisions:
    - CIDs and peer ids are decoded with the multiformats library, never by regex
    - Any BAD token rejects the whole type filter, even when OR-ed with valid ones
"""

from collections.abc import Mapping
from datetime import datetime, timedelta, timezone

from multiformats import CID, multibase, multihash
from pydantic import ValidationError

from restapi.core.domain_types import (
    TRACKER_STATUS_TOKENS,
    AddFormat, AddLayout, PathNamespace, PinMode, PinType, TrackerStatus,
    pin_type_from_string,
)
from restapi.core.errors import InvalidInputError
from restapi.schemas.cluster import AddParams, PinOptions, PinPath

# multiformats error classes subclass these builtins; IndexError comes from
# truncated multibase input.
_DECODE_ERRORS = (ValueError, LookupError, TypeError)

_TRUE_TOKENS = frozenset({"1", "t", "true"})
_FALSE_TOKENS = frozenset({"0", "f", "false"})

_LIBP2P_KEY_CODEC = "libp2p-key"
_METADATA_PREFIX = "meta-"


# ─── Identifiers ─────────────────────────────────────────────────

def parse_cid(segment: str, field: str = "cid") -> str:
    """Decode a content identifier and return its canonical string."""
    if not segment.strip():
        raise InvalidInputError("empty Cid", field)
    try:
        cid = CID.decode(segment.strip())
    except _DECODE_ERRORS:
        raise InvalidInputError(f"error decoding Cid: {segment!r}", field)
    return str(cid)


def parse_peer_id(text: str, field: str = "peer") -> str:
    """Decode a libp2p peer id into its base58btc multihash form.

    Accepts the legacy base58 multihash encoding (Qm..., 12D3Koo...) and
    CIDv1 with the libp2p-key codec.
    """
    text = text.strip()
    if not text:
        raise InvalidInputError("empty peer id", field)
    try:
        if text[0] in "Q1":
            digest = multibase.decode("z" + text)
            multihash.unwrap(digest)
            return text
        cid = CID.decode(text)
        if cid.codec.name != _LIBP2P_KEY_CODEC:
            raise ValueError(f"codec {cid.codec.name} is not {_LIBP2P_KEY_CODEC}")
        multihash.unwrap(cid.digest)
        return multibase.encode(cid.digest, "base58btc")[1:]
    except _DECODE_ERRORS:
        raise InvalidInputError(f"error decoding peer id: {text!r}", field)


def parse_pin_path(
    namespace: str, path: str, options: PinOptions | None = None,
) -> PinPath:
    """Build a pin-by-path request from the namespace tag and the path tail.

    The namespace is constrained by route matching; an unknown tag here is a
    programming error surfaced as invalid input all the same.
    """
    try:
        ns = PathNamespace(namespace)
    except ValueError:
        raise InvalidInputError(f"invalid path namespace: {namespace!r}", "path")
    segments = [s for s in path.split("/") if s]
    if not segments:
        raise InvalidInputError("empty path", "path")
    if ns in (PathNamespace.IPFS, PathNamespace.IPLD):
        segments[0] = parse_cid(segments[0], field="path")
    return PinPath(
        path="/" + "/".join([ns.value, *segments]),
        options=options or PinOptions(),
    )


# ─── Filters ─────────────────────────────────────────────────────

def parse_type_filter(csv: str) -> PinType:
    """OR together comma-separated pin type tokens. Empty input means ALL."""
    mask = PinType(0)
    for token in csv.split(","):
        flag = pin_type_from_string(token.strip())
        if flag is PinType.BAD:
            raise InvalidInputError("invalid filter value", "filter")
        mask |= flag
    if mask & PinType.BAD:
        raise InvalidInputError("invalid filter value", "filter")
    return mask


def parse_status_filter(csv: str) -> TrackerStatus:
    """OR together tracker status tokens. Empty input means UNDEFINED (no filter)."""
    csv = csv.replace(" ", "")
    if not csv:
        return TrackerStatus.UNDEFINED
    mask = TrackerStatus.UNDEFINED
    for token in csv.split(","):
        if token not in TRACKER_STATUS_TOKENS:
            raise InvalidInputError("invalid filter value", "filter")
        mask |= TRACKER_STATUS_TOKENS[token]
    return mask


def parse_bool_flag(field: str, value: str | None, default: bool = False) -> bool:
    if value is None or value == "":
        return default
    token = value.strip().lower()
    if token in _TRUE_TOKENS:
        return True
    if token in _FALSE_TOKENS:
        return False
    raise InvalidInputError(f"parameter {field} invalid boolean: {value!r}", field)


def _parse_int(query: Mapping[str, str], field: str, default: int) -> int:
    value = query.get(field)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise InvalidInputError(f"parameter {field} invalid integer: {value!r}", field)


def _parse_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [v.strip() for v in value.split(",") if v.strip()]


# ─── Pin Options ─────────────────────────────────────────────────

def parse_pin_options(query: Mapping[str, str]) -> PinOptions:
    """Decode pin options from query parameters.

    replication-min/max of -1 mean "pin everywhere"; otherwise min <= max
    when both are given.
    """
    rmin = _parse_int(query, "replication-min", 0)
    rmax = _parse_int(query, "replication-max", 0)
    if rmin < -1 or rmax < -1:
        raise InvalidInputError("replication factors must be >= -1", "replication")
    if rmin > 0 and rmax > 0 and rmin > rmax:
        raise InvalidInputError(
            "replication-min cannot be greater than replication-max", "replication",
        )

    shard_size = _parse_int(query, "shard-size", 0)
    if shard_size < 0:
        raise InvalidInputError("shard-size must be >= 0", "shard-size")

    mode_str = query.get("mode") or PinMode.RECURSIVE.value
    try:
        mode = PinMode(mode_str)
    except ValueError:
        raise InvalidInputError(f"invalid pin mode: {mode_str!r}", "mode")

    allocations = [
        parse_peer_id(p, field="user-allocations")
        for p in _parse_csv(query.get("user-allocations"))
    ]

    pin_update = None
    if query.get("pin-update"):
        pin_update = parse_cid(query["pin-update"], field="pin-update")

    metadata = {
        key[len(_METADATA_PREFIX):]: value
        for key, value in query.items()
        if key.startswith(_METADATA_PREFIX) and len(key) > len(_METADATA_PREFIX)
    }

    try:
        return PinOptions(
            replication_factor_min=rmin,
            replication_factor_max=rmax,
            name=query.get("name", ""),
            mode=mode,
            shard_size=shard_size,
            user_allocations=allocations,
            expire_at=_parse_expiry(query),
            metadata=metadata,
            pin_update=pin_update,
            origins=_parse_csv(query.get("origins")),
        )
    except ValidationError as e:
        raise InvalidInputError(f"invalid pin options: {e.errors()[0]['msg']}", "options")


def _parse_expiry(query: Mapping[str, str]) -> datetime | None:
    expire_at = query.get("expire-at")
    if expire_at:
        try:
            return datetime.fromisoformat(expire_at.replace("Z", "+00:00"))
        except ValueError:
            raise InvalidInputError(f"invalid expire-at: {expire_at!r}", "expire-at")
    expire_in = _parse_int(query, "expire-in", 0)
    if expire_in < 0:
        raise InvalidInputError("expire-in must be >= 0", "expire-in")
    if expire_in:
        return datetime.now(timezone.utc) + timedelta(seconds=expire_in)
    return None


# ─── Add Parameters ──────────────────────────────────────────────

def parse_add_params(query: Mapping[str, str]) -> AddParams:
    """Decode the query string of POST /add."""
    layout_str = query.get("layout", "")
    try:
        layout = AddLayout(layout_str)
    except ValueError:
        raise InvalidInputError(f"invalid layout: {layout_str!r}", "layout")

    format_str = query.get("format") or AddFormat.UNIXFS.value
    try:
        fmt = AddFormat(format_str)
    except ValueError:
        raise InvalidInputError(f"invalid format: {format_str!r}", "format")

    cid_version = _parse_int(query, "cid-version", 0)
    if cid_version not in (0, 1):
        raise InvalidInputError("cid-version must be 0 or 1", "cid-version")

    defaults = AddParams()
    return AddParams(
        options=parse_pin_options(query),
        local=parse_bool_flag("local", query.get("local")),
        recursive=parse_bool_flag("recursive", query.get("recursive")),
        layout=layout,
        chunker=query.get("chunker") or defaults.chunker,
        raw_leaves=parse_bool_flag("raw-leaves", query.get("raw-leaves")),
        hidden=parse_bool_flag("hidden", query.get("hidden")),
        wrap_with_directory=parse_bool_flag(
            "wrap-with-directory", query.get("wrap-with-directory"),
        ),
        shard=parse_bool_flag("shard", query.get("shard")),
        stream_channels=parse_bool_flag(
            "stream-channels", query.get("stream-channels"),
            default=defaults.stream_channels,
        ),
        format=fmt,
        cid_version=cid_version,
        hash=query.get("hash") or defaults.hash,
        no_copy=parse_bool_flag("no-copy", query.get("no-copy")),
    )
