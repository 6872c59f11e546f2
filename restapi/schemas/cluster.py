"""Cluster Schemas — Pydantic models for the records that cross the API boundary.

Invariants:
    - Local shapes (PinInfo, RepoGC) carry the responding peer's id
    - Global shapes are {peer_id -> per-peer record} maps (peer_map)
    - to_global() on a local record yields a one-entry global record keyed by its peer
    - Unknown backend fields are kept (extra="allow") and echoed to the client

Design Decisions:
    - Pin.type is the raw PinType bit (int on the wire); the filter logic works on ints
    - PeerAddBody is the only request body model; everything else is a record
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from restapi.core.domain_types import AddFormat, AddLayout, PinMode, PinType


class _Record(BaseModel):
    """Base for records relayed from the cluster service."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)


# ─── Request Bodies ──────────────────────────────────────────────

class PeerAddBody(BaseModel):
    """POST /peers body. The id is decoded by the codec, not by pydantic."""
    peer_id: str = ""


# ─── Identity ────────────────────────────────────────────────────

class IPFSID(_Record):
    id: str = ""
    addresses: list[str] = Field(default_factory=list)
    error: str = ""


class ID(_Record):
    """Identity of the cluster peer serving the request."""
    id: str
    addresses: list[str] = Field(default_factory=list)
    cluster_peers: list[str] = Field(default_factory=list)
    cluster_peers_addresses: list[str] = Field(default_factory=list)
    version: str = ""
    commit: str = ""
    rpc_protocol_version: str = ""
    error: str = ""
    ipfs: IPFSID | None = None
    peername: str = ""


class Version(_Record):
    version: str


# ─── Pins ────────────────────────────────────────────────────────

class PinOptions(BaseModel):
    """Options carried in the query string of pin and add requests."""
    replication_factor_min: int = 0
    replication_factor_max: int = 0
    name: str = ""
    mode: PinMode = PinMode.RECURSIVE
    shard_size: int = 0
    user_allocations: list[str] = Field(default_factory=list)
    expire_at: datetime | None = None
    metadata: dict[str, str] = Field(default_factory=dict)
    pin_update: str | None = None
    origins: list[str] = Field(default_factory=list)


class Pin(_Record):
    """A pin as stored in the shared state."""
    cid: str
    type: int = PinType.DATA.value
    allocations: list[str] = Field(default_factory=list)
    max_depth: int = -1
    reference: str | None = None
    name: str = ""
    mode: PinMode = PinMode.RECURSIVE
    replication_factor_min: int = 0
    replication_factor_max: int = 0
    shard_size: int = 0
    user_allocations: list[str] = Field(default_factory=list)
    expire_at: datetime | None = None
    metadata: dict[str, str] = Field(default_factory=dict)
    pin_update: str | None = None
    origins: list[str] = Field(default_factory=list)

    @classmethod
    def with_options(cls, cid: str, options: PinOptions) -> "Pin":
        """Build the pin request for a decoded CID."""
        return cls(cid=cid, **options.model_dump())


class PinPath(BaseModel):
    """Pin-by-path request: /{namespace}/{path} plus options."""
    path: str
    options: PinOptions = Field(default_factory=PinOptions)


class PinInfoShort(_Record):
    """Per-peer part of a pin status."""
    peername: str = ""
    ipfs: str = ""
    ipfs_addresses: list[str] = Field(default_factory=list)
    status: str = "undefined"
    timestamp: datetime | None = None
    error: str = ""
    attempt_count: int = 0
    priority_pin: bool = False


class GlobalPinInfo(_Record):
    """Cluster-wide status of one pin, keyed by peer."""
    cid: str
    name: str = ""
    allocations: list[str] = Field(default_factory=list)
    origins: list[str] = Field(default_factory=list)
    created: datetime | None = None
    metadata: dict[str, str] = Field(default_factory=dict)
    peer_map: dict[str, PinInfoShort] = Field(default_factory=dict)


class PinInfo(PinInfoShort):
    """Status of one pin as seen by a single peer."""
    cid: str
    name: str = ""
    peer: str
    allocations: list[str] = Field(default_factory=list)
    origins: list[str] = Field(default_factory=list)
    created: datetime | None = None
    metadata: dict[str, str] = Field(default_factory=dict)

    def to_global(self) -> GlobalPinInfo:
        short = PinInfoShort.model_validate(
            self.model_dump(include=set(PinInfoShort.model_fields)),
        )
        return GlobalPinInfo(
            cid=self.cid,
            name=self.name,
            allocations=self.allocations,
            origins=self.origins,
            created=self.created,
            metadata=self.metadata,
            peer_map={self.peer: short},
        )


# ─── Repository GC ───────────────────────────────────────────────

class IPFSRepoGC(_Record):
    key: str | None = None
    error: str = ""


class RepoGC(_Record):
    """GC result of a single peer's IPFS daemon."""
    peer: str
    peername: str = ""
    keys: list[IPFSRepoGC] = Field(default_factory=list)
    error: str = ""

    def to_global(self) -> "GlobalRepoGC":
        return GlobalRepoGC(peer_map={self.peer: self})


class GlobalRepoGC(_Record):
    peer_map: dict[str, RepoGC] = Field(default_factory=dict)


# ─── Monitoring ──────────────────────────────────────────────────

class Metric(_Record):
    name: str
    peer: str
    value: str = ""
    expire: int = 0
    valid: bool = False
    weight: int = 0
    partitionable: bool = False
    received_at: int = 0


class Alert(Metric):
    triggered_at: datetime | None = None


class ConnectGraph(_Record):
    """Connectivity between cluster peers and their IPFS daemons."""
    cluster_id: str
    id_to_peername: dict[str, str] = Field(default_factory=dict)
    ipfs_links: dict[str, list[str]] = Field(default_factory=dict)
    cluster_links: dict[str, list[str]] = Field(default_factory=dict)
    cluster_trust_links: dict[str, bool] = Field(default_factory=dict)
    cluster_to_ipfs: dict[str, str] = Field(default_factory=dict)


# ─── Add ─────────────────────────────────────────────────────────

class AddParams(BaseModel):
    """Decoded query parameters of POST /add."""
    options: PinOptions = Field(default_factory=PinOptions)
    local: bool = False
    recursive: bool = False
    layout: AddLayout = AddLayout.DEFAULT
    chunker: str = "size-262144"
    raw_leaves: bool = False
    hidden: bool = False
    wrap_with_directory: bool = False
    shard: bool = False
    stream_channels: bool = True
    format: AddFormat = AddFormat.UNIXFS
    cid_version: int = 0
    hash: str = "sha2-256"
    no_copy: bool = False

    def to_query(self) -> dict[str, Any]:
        """Flatten back to query parameters for the uploader."""
        params: dict[str, Any] = {
            "local": self.local,
            "recursive": self.recursive,
            "layout": self.layout.value,
            "chunker": self.chunker,
            "raw-leaves": self.raw_leaves,
            "hidden": self.hidden,
            "wrap-with-directory": self.wrap_with_directory,
            "shard": self.shard,
            "stream-channels": self.stream_channels,
            "format": self.format.value,
            "cid-version": self.cid_version,
            "hash": self.hash,
            "no-copy": self.no_copy,
            "name": self.options.name,
            "mode": self.options.mode.value,
            "replication-min": self.options.replication_factor_min,
            "replication-max": self.options.replication_factor_max,
            "shard-size": self.options.shard_size,
        }
        if self.options.user_allocations:
            params["user-allocations"] = ",".join(self.options.user_allocations)
        if self.options.expire_at is not None:
            params["expire-at"] = self.options.expire_at.isoformat()
        if self.options.pin_update:
            params["pin-update"] = self.options.pin_update
        if self.options.origins:
            params["origins"] = ",".join(self.options.origins)
        for key, value in self.options.metadata.items():
            params[f"meta-{key}"] = value
        return {
            k: (str(v).lower() if isinstance(v, bool) else v)
            for k, v in params.items()
        }


class AddedOutput(_Record):
    """One event of the add stream."""
    name: str = ""
    cid: str | None = None
    bytes: int = 0
    size: int = 0
    allocations: list[str] = Field(default_factory=list)
