"""Domain Types — bitmask filters and enumerations decoded from request parameters.

Invariants:
    - PinType and TrackerStatus are independent bitmask domains, never mixed
    - PinType.BAD is a sentinel: any mask carrying it is invalid
    - TrackerStatus.UNDEFINED (0) means "unfiltered"
    - Token tables are the only string → flag mapping

Design Decisions:
    - IntFlag over plain ints: masks compose with | and test with &, serialize as ints
"""

from enum import Enum, IntFlag


# ─── Pin Types ───────────────────────────────────────────────────

class PinType(IntFlag):
    """Pin categories. A pin carries exactly one; filters carry any combination."""
    BAD = 1
    DATA = 2
    META = 4
    CLUSTER_DAG = 8
    SHARD = 16
    ALL = DATA | META | CLUSTER_DAG | SHARD


PIN_TYPE_TOKENS: dict[str, PinType] = {
    "data": PinType.DATA,
    "meta": PinType.META,
    "clusterdag": PinType.CLUSTER_DAG,
    "shard": PinType.SHARD,
    "all": PinType.ALL,
    "": PinType.ALL,
}


def pin_type_from_string(token: str) -> PinType:
    """Look up one filter token; unknown tokens yield PinType.BAD."""
    return PIN_TYPE_TOKENS.get(token, PinType.BAD)


# ─── Tracker Status ──────────────────────────────────────────────

class TrackerStatus(IntFlag):
    """Pin lifecycle states on a peer, as reported by its pin tracker."""
    UNDEFINED = 0
    CLUSTER_ERROR = 1
    PIN_ERROR = 2
    UNPIN_ERROR = 4
    ERROR = CLUSTER_ERROR | PIN_ERROR | UNPIN_ERROR
    PINNED = 8
    PINNING = 16
    UNPINNING = 32
    UNPINNED = 64
    REMOTE = 128
    PIN_QUEUED = 256
    UNPIN_QUEUED = 512
    QUEUED = PIN_QUEUED | UNPIN_QUEUED
    SHARDED = 1024
    UNEXPECTEDLY_UNPINNED = 2048


TRACKER_STATUS_TOKENS: dict[str, TrackerStatus] = {
    "undefined": TrackerStatus.UNDEFINED,
    "cluster_error": TrackerStatus.CLUSTER_ERROR,
    "pin_error": TrackerStatus.PIN_ERROR,
    "unpin_error": TrackerStatus.UNPIN_ERROR,
    "error": TrackerStatus.ERROR,
    "pinned": TrackerStatus.PINNED,
    "pinning": TrackerStatus.PINNING,
    "unpinning": TrackerStatus.UNPINNING,
    "unpinned": TrackerStatus.UNPINNED,
    "remote": TrackerStatus.REMOTE,
    "pin_queued": TrackerStatus.PIN_QUEUED,
    "unpin_queued": TrackerStatus.UNPIN_QUEUED,
    "queued": TrackerStatus.QUEUED,
    "sharded": TrackerStatus.SHARDED,
    "unexpectedly_unpinned": TrackerStatus.UNEXPECTEDLY_UNPINNED,
}


# ─── Enums ───────────────────────────────────────────────────────

class PathNamespace(str, Enum):
    """Namespaces accepted by the pin-by-path routes."""
    IPFS = "ipfs"
    IPNS = "ipns"
    IPLD = "ipld"


class PinMode(str, Enum):
    """How deep the IPFS daemon pins a DAG."""
    RECURSIVE = "recursive"
    DIRECT = "direct"


class AddLayout(str, Enum):
    """DAG layouts understood by the adder. Empty means the adder default."""
    DEFAULT = ""
    BALANCED = "balanced"
    TRICKLE = "trickle"


class AddFormat(str, Enum):
    """Input formats for the add endpoint."""
    UNIXFS = "unixfs"
    CAR = "car"
