"""Pins and allocations routes.

Invariants checked:
    - Filters, CIDs, paths and options are decoded before the remote call
    - local=true answers in the global shape, one peer_map entry per pin
    - Unpin of an unknown target → 404; elsewhere not-found keeps the automatic status
    - Type filtering keeps backend order and only runs on success
    - Path routes only match the ipfs/ipns/ipld namespaces
"""

import pytest

from restapi.core.domain_types import PinType, TrackerStatus
from restapi.core.errors import RemoteDomainError, RemoteNotFoundError, RemoteTransportError
from restapi.infrastructure.rpc_client import classify_remote_error
from tests.api.fakes import (
    CID_A, CID_B, CID_V1, PEER_OTHER, PEER_SELF, pin_info_record, pin_record,
)


def _global_info(cid: str, *peers: str) -> dict:
    return {
        "cid": cid,
        "peer_map": {
            p: {"peername": "self", "status": "pinned", "timestamp": "2024-01-01T00:00:00Z"}
            for p in peers
        },
    }


# ─── Allocations ─────────────────────────────────────────────────

async def test_allocations_filter_keeps_matching_types_in_order(client, remote):
    remote.results["Cluster.Pins"] = [
        pin_record(CID_A, PinType.DATA.value, "a"),
        pin_record(CID_B, PinType.META.value, "b"),
        pin_record(CID_V1, PinType.CLUSTER_DAG.value, "c"),
        pin_record(CID_A, PinType.SHARD.value, "d"),
    ]
    res = await client.get("/allocations?filter=data,meta")
    assert res.status_code == 200
    assert [p["name"] for p in res.json()] == ["a", "b"]
    assert remote.calls == [("Cluster.Pins", None)]


async def test_allocations_without_filter_returns_everything(client, remote):
    remote.results["Cluster.Pins"] = [
        pin_record(CID_A, PinType.DATA.value),
        pin_record(CID_B, PinType.SHARD.value),
    ]
    for url in ("/allocations", "/allocations?filter=all"):
        res = await client.get(url)
        assert len(res.json()) == 2


async def test_allocations_empty_pinset(client, remote):
    remote.results["Cluster.Pins"] = None
    res = await client.get("/allocations")
    assert res.status_code == 200
    assert res.json() == []


async def test_allocations_invalid_filter_is_400_without_call(client, remote):
    res = await client.get("/allocations?filter=data,bogus")
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_INPUT"
    assert remote.calls == []


async def test_allocations_backend_error_is_not_filtered(client, remote):
    remote.results["Cluster.Pins"] = RemoteDomainError("state unavailable")
    res = await client.get("/allocations?filter=meta")
    assert res.status_code == 500
    assert res.json()["error"]["message"] == "state unavailable"


async def test_get_allocation(client, remote):
    remote.results["Cluster.PinGet"] = pin_record(CID_A, PinType.DATA.value, "x")
    res = await client.get(f"/allocations/{CID_A}")
    assert res.status_code == 200
    assert res.json()["name"] == "x"
    assert remote.calls == [("Cluster.PinGet", CID_A)]


async def test_get_allocation_domain_error_is_404(client, remote):
    remote.results["Cluster.PinGet"] = RemoteDomainError("cid is not part of the global state")
    res = await client.get(f"/allocations/{CID_A}")
    assert res.status_code == 404
    assert res.json()["error"]["status"] == 404


async def test_get_allocation_transport_error_keeps_its_status(client, remote):
    remote.results["Cluster.PinGet"] = RemoteTransportError("connection refused")
    res = await client.get(f"/allocations/{CID_A}")
    assert res.status_code == 502


async def test_get_allocation_bad_cid_is_400_without_call(client, remote):
    res = await client.get("/allocations/notacid")
    assert res.status_code == 400
    assert remote.calls == []


# ─── Status ──────────────────────────────────────────────────────

async def test_status_all_passes_decoded_filter(client, remote):
    remote.results["Cluster.StatusAll"] = [_global_info(CID_A, PEER_SELF, PEER_OTHER)]
    res = await client.get("/pins?filter=pinned,pin_error")
    assert res.status_code == 200
    assert remote.calls == [
        ("Cluster.StatusAll", TrackerStatus.PINNED | TrackerStatus.PIN_ERROR),
    ]
    assert set(res.json()[0]["peer_map"]) == {PEER_SELF, PEER_OTHER}


async def test_status_all_without_filter_is_undefined(client, remote):
    remote.results["Cluster.StatusAll"] = []
    await client.get("/pins")
    assert remote.calls == [("Cluster.StatusAll", TrackerStatus.UNDEFINED)]


async def test_status_all_invalid_filter_is_400_without_call(client, remote):
    res = await client.get("/pins?filter=pinned,sleeping")
    assert res.status_code == 400
    assert remote.calls == []


async def test_status_all_local_is_wrapped(client, remote):
    remote.results["Cluster.StatusAllLocal"] = [
        pin_info_record(CID_A, PEER_SELF),
        pin_info_record(CID_B, PEER_SELF, "pin_error"),
    ]
    res = await client.get("/pins?local=true")
    assert res.status_code == 200
    body = res.json()
    assert [p["cid"] for p in body] == [CID_A, CID_B]
    assert all(list(p["peer_map"]) == [PEER_SELF] for p in body)
    assert body[1]["peer_map"][PEER_SELF]["status"] == "pin_error"
    assert remote.methods == ["Cluster.StatusAllLocal"]


async def test_status_local_and_global_have_the_same_shape(client, remote):
    remote.results["Cluster.StatusLocal"] = pin_info_record(CID_A, PEER_SELF)
    remote.results["Cluster.Status"] = _global_info(CID_A, PEER_SELF)

    local = await client.get(f"/pins/{CID_A}?local=true")
    global_ = await client.get(f"/pins/{CID_A}")

    assert local.status_code == global_.status_code == 200
    assert local.json() == global_.json()
    assert remote.methods == ["Cluster.StatusLocal", "Cluster.Status"]


async def test_invalid_local_flag_is_400_without_call(client, remote):
    res = await client.get(f"/pins/{CID_A}?local=maybe")
    assert res.status_code == 400
    assert remote.calls == []


async def test_status_bad_cid_is_400_without_call(client, remote):
    res = await client.get("/pins/notacid")
    assert res.status_code == 400
    assert remote.calls == []


async def test_status_not_found_uses_automatic_status(client, remote):
    remote.results["Cluster.Status"] = RemoteNotFoundError()
    res = await client.get(f"/pins/{CID_A}")
    assert res.status_code == 500


# ─── Recover ─────────────────────────────────────────────────────

async def test_recover_all_local(client, remote):
    remote.results["Cluster.RecoverAllLocal"] = [pin_info_record(CID_A, PEER_SELF)]
    res = await client.post("/pins/recover?local=true")
    assert res.status_code == 200
    body = res.json()
    assert len(body) == 1
    assert body[0]["cid"] == CID_A
    assert list(body[0]["peer_map"]) == [PEER_SELF]


async def test_recover_all_is_not_taken_for_a_cid(client, remote):
    remote.results["Cluster.RecoverAll"] = []
    res = await client.post("/pins/recover")
    assert res.status_code == 200
    assert remote.methods == ["Cluster.RecoverAll"]


async def test_recover_one(client, remote):
    remote.results["Cluster.Recover"] = _global_info(CID_A, PEER_SELF, PEER_OTHER)
    remote.results["Cluster.RecoverLocal"] = pin_info_record(CID_A, PEER_SELF)

    res = await client.post(f"/pins/{CID_A}/recover")
    assert len(res.json()["peer_map"]) == 2

    res = await client.post(f"/pins/{CID_A}/recover?local=1")
    assert list(res.json()["peer_map"]) == [PEER_SELF]
    assert remote.calls == [("Cluster.Recover", CID_A), ("Cluster.RecoverLocal", CID_A)]


# ─── Pin / Unpin ─────────────────────────────────────────────────

async def test_pin_with_options(client, remote):
    remote.results["Cluster.Pin"] = lambda arg: arg.model_dump(mode="json")
    res = await client.post(
        f"/pins/{CID_A}?name=backup&replication-min=1&replication-max=3"
        f"&mode=direct&meta-owner=alice&user-allocations={PEER_OTHER}",
    )
    assert res.status_code == 200
    (name, pin), = remote.calls
    assert name == "Cluster.Pin"
    assert pin.cid == CID_A
    assert pin.name == "backup"
    assert (pin.replication_factor_min, pin.replication_factor_max) == (1, 3)
    assert pin.mode.value == "direct"
    assert pin.metadata == {"owner": "alice"}
    assert pin.user_allocations == [PEER_OTHER]
    assert res.json()["name"] == "backup"


async def test_pin_invalid_options_are_400_without_call(client, remote):
    for query in (
        "replication-min=3&replication-max=1",
        "mode=shallow",
        "replication-min=many",
        "user-allocations=nobody",
    ):
        res = await client.post(f"/pins/{CID_A}?{query}")
        assert res.status_code == 400, query
    assert remote.calls == []


async def test_pin_path(client, remote):
    remote.results["Cluster.PinPath"] = pin_record(CID_B, PinType.DATA.value)
    res = await client.post(f"/pins/ipfs/{CID_A}/dir/file.txt?name=f")
    assert res.status_code == 200
    (name, req), = remote.calls
    assert name == "Cluster.PinPath"
    assert req.path == f"/ipfs/{CID_A}/dir/file.txt"
    assert req.options.name == "f"


async def test_pin_ipns_path(client, remote):
    remote.results["Cluster.PinPath"] = pin_record(CID_B, PinType.DATA.value)
    res = await client.post("/pins/ipns/example.org/docs")
    assert res.status_code == 200
    assert remote.calls[0][1].path == "/ipns/example.org/docs"


async def test_pin_ipfs_path_with_bad_root_is_400_without_call(client, remote):
    res = await client.post("/pins/ipfs/notacid/file")
    assert res.status_code == 400
    assert remote.calls == []


async def test_unknown_namespace_is_not_routed(client, remote):
    res = await client.post("/pins/foo/bar")
    assert res.status_code == 404
    assert remote.calls == []


async def test_unpin(client, remote):
    remote.results["Cluster.Unpin"] = pin_record(CID_A, PinType.DATA.value)
    res = await client.delete(f"/pins/{CID_A}")
    assert res.status_code == 200
    assert remote.methods == ["Cluster.Unpin"]
    assert remote.calls[0][1].cid == CID_A


async def test_unpin_not_found_is_404(client, remote):
    remote.results["Cluster.Unpin"] = RemoteNotFoundError()
    res = await client.delete(f"/pins/{CID_A}")
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "NOT_FOUND"


async def test_unpin_not_found_by_message_text_is_404(client, remote):
    remote.results["Cluster.Unpin"] = classify_remote_error(" Not Found ")
    res = await client.delete(f"/pins/{CID_A}")
    assert res.status_code == 404


async def test_unpin_other_error_is_500(client, remote):
    remote.results["Cluster.Unpin"] = RemoteDomainError("not found in ipfs repo, retry later")
    res = await client.delete(f"/pins/{CID_A}")
    assert res.status_code == 500
    assert res.json()["error"]["message"] == "not found in ipfs repo, retry later"


async def test_unpin_path_not_found_is_404(client, remote):
    remote.results["Cluster.UnpinPath"] = RemoteNotFoundError()
    res = await client.delete(f"/pins/ipfs/{CID_A}/sub")
    assert res.status_code == 404
    assert remote.calls[0][1].path == f"/ipfs/{CID_A}/sub"


async def test_unpin_path_success(client, remote):
    remote.results["Cluster.UnpinPath"] = pin_record(CID_B, PinType.DATA.value)
    res = await client.delete(f"/pins/ipld/{CID_V1}/a")
    assert res.status_code == 200
    assert remote.methods == ["Cluster.UnpinPath"]


# ─── Degenerate CIDs ─────────────────────────────────────────────

@pytest.mark.parametrize("method, url", [
    ("GET", "/allocations/b"),
    ("GET", "/pins/0"),
    ("GET", "/pins/z?local=true"),
    ("POST", "/pins/f"),
    ("DELETE", "/pins/b"),
    ("POST", "/pins/b/recover"),
    ("POST", "/pins/ipfs/0/file"),
])
async def test_truncated_cid_is_400_without_call(client, remote, method, url):
    res = await client.request(method, url)
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_INPUT"
    assert remote.calls == []
