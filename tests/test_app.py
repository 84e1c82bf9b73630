"""
Flask API tests for the /ace blueprint.
"""

import json

import pytest

from ace.config import EngineConfig
from ace.engine import ACE
from ace.encoding import bytes_to_hex
from ace.proof_kind import DIVIDEND, JOIN_SPLIT, PUBLIC_RANGE, SWAP

from accounts import ALICE, BOB, MALLORY, OWNER, REGISTRY_OWNER, TOKEN_ADDRESS
from app import bootstrap, create_app
from proof_builder import build_join_split, make_notes


@pytest.fixture
def client(engine):
    app = create_app(engine)
    app.config["TESTING"] = True
    return app.test_client()


@pytest.fixture(scope="module")
def deposit(crs):
    notes = make_notes([10, 10], crs, seed=111)
    return notes, build_join_split(ALICE, [], notes, -20, ALICE, crs, seed=112).encode()


class TestEngineInfo:
    """기본 엔드포인트 테스트."""

    def test_index(self, client, engine):
        data = client.get("/").get_json()
        assert data["engine"] == engine.address
        assert data["owner"] == OWNER
        assert data["latest_epoch"] == 1

    def test_epoch(self, client):
        assert client.get("/ace/epoch").get_json() == {"latest_epoch": 1}

    def test_increment_epoch(self, client):
        resp = client.post("/ace/epoch/increment", json={"caller": OWNER})
        assert resp.status_code == 200
        assert resp.get_json() == {"latest_epoch": 2}

    def test_increment_epoch_forbidden(self, client):
        resp = client.post("/ace/epoch/increment", json={"caller": MALLORY})
        assert resp.status_code == 403
        assert resp.get_json()["error"] == "permission-denied"

    def test_missing_body(self, client):
        resp = client.post("/ace/epoch/increment", data="nope")
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "malformed-input"

    def test_crs(self, client, crs):
        assert client.get("/ace/crs").get_json()["crs"] == crs.to_dict()

    def test_get_proof(self, client):
        data = client.get(f"/ace/proofs/{JOIN_SPLIT}").get_json()
        assert data["validator"] == "JoinSplitValidator"

    def test_unknown_proof(self, client):
        resp = client.get("/ace/proofs/65794")
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "unknown-proof-kind"

    def test_set_proof_by_name(self, client):
        resp = client.post("/ace/proofs", json={
            "caller": OWNER, "kind": SWAP, "validator": "swap",
        })
        assert resp.status_code == 201

    def test_set_existing_proof(self, client):
        resp = client.post("/ace/proofs", json={
            "caller": OWNER, "kind": JOIN_SPLIT, "validator": "join-split",
        })
        assert resp.get_json()["error"] == "immutability-violation"

    def test_invalidate(self, client):
        resp = client.post(f"/ace/proofs/{PUBLIC_RANGE}/invalidate", json={"caller": OWNER})
        assert resp.get_json()["invalidated"]
        resp = client.get(f"/ace/proofs/{PUBLIC_RANGE}")
        assert resp.get_json()["error"] == "unknown-proof-kind"


class TestSettlementOverHttp:
    """HTTP를 통한 검증과 정산 테스트."""

    def test_validate_and_query(self, client, deposit):
        resp = client.post("/ace/validate", json={
            "caller": ALICE, "kind": JOIN_SPLIT, "proof": bytes_to_hex(deposit[1]),
        })
        assert resp.status_code == 200
        output = resp.get_json()["outputs"][0]
        assert output["public_value"] == -20
        assert output["sender"] == ALICE
        assert len(output["output_notes"]) == 2
        assert output["output_notes"][0]["metadata"] == "0x"

        resp = client.get("/ace/validated", query_string={
            "kind": JOIN_SPLIT, "hash": output["hash"], "submitter": ALICE,
        })
        assert resp.get_json() == {"validated": True}

    def test_invalid_proof(self, client, deposit):
        resp = client.post("/ace/validate", json={
            "caller": ALICE, "kind": JOIN_SPLIT, "proof": bytes_to_hex(deposit[1][:-32]),
        })
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "malformed-input"

    def test_clear(self, client, deposit):
        output = client.post("/ace/validate", json={
            "caller": ALICE, "kind": JOIN_SPLIT, "proof": bytes_to_hex(deposit[1]),
        }).get_json()["outputs"][0]
        resp = client.post("/ace/validated/clear", json={
            "caller": ALICE, "kind": JOIN_SPLIT, "hashes": [output["hash"]],
        })
        assert resp.status_code == 200
        resp = client.post("/ace/validated/clear", json={
            "caller": ALICE, "kind": JOIN_SPLIT, "hashes": [output["hash"]],
        })
        assert resp.get_json()["error"] == "replay-rejected"

    def test_full_deposit(self, client, token, engine, deposit):
        resp = client.post("/ace/registries", json={
            "caller": REGISTRY_OWNER, "linked_token": TOKEN_ADDRESS,
        })
        assert resp.status_code == 201
        assert resp.get_json()["factory_id"] == 65793

        output = client.post("/ace/validate", json={
            "caller": ALICE, "kind": JOIN_SPLIT, "proof": bytes_to_hex(deposit[1]),
        }).get_json()["outputs"][0]
        token.approve(ALICE, engine.address, 20)
        resp = client.post(f"/ace/registries/{REGISTRY_OWNER}/approve", json={
            "caller": ALICE, "proof_hash": output["hash"], "value": 20,
        })
        assert resp.get_json() == {"approved": True}

        resp = client.post(f"/ace/registries/{REGISTRY_OWNER}/update", json={
            "caller": REGISTRY_OWNER, "kind": JOIN_SPLIT,
            "output": output["encoded"], "sender": ALICE,
        })
        assert resp.status_code == 200
        assert resp.get_json()["registry"]["public_balance"] == 20

        note_hash = output["output_notes"][0]["hash"]
        resp = client.get(f"/ace/registries/{REGISTRY_OWNER}/notes/{note_hash}")
        assert resp.get_json()["status"] == "UNSPENT"

        names = [e["name"] for e in client.get("/ace/events").get_json()["events"]]
        assert names[-1] == "UpdateNoteRegistry"
        deposits = client.get("/ace/events", query_string={"name": "Deposit"}).get_json()["events"]
        assert deposits[0]["payload"]["amount"] == 20

    def test_update_by_other_caller(self, client):
        resp = client.post(f"/ace/registries/{REGISTRY_OWNER}/update", json={
            "caller": ALICE, "kind": JOIN_SPLIT, "output": "0x", "sender": ALICE,
        })
        assert resp.status_code == 403

    def test_unknown_registry(self, client):
        resp = client.get(f"/ace/registries/{ALICE}")
        assert resp.status_code == 404
        assert resp.get_json()["error"] == "registry-error"


class TestMalformedRequests:
    """잘못된 JSON 필드는 400 malformed-input 이어야 한다."""

    @pytest.mark.parametrize("scaling_factor", ["ten", 1.5, None, True, [1]])
    def test_bad_scaling_factor(self, client, scaling_factor):
        resp = client.post("/ace/registries", json={
            "caller": REGISTRY_OWNER, "linked_token": TOKEN_ADDRESS,
            "scaling_factor": scaling_factor,
        })
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "malformed-input"

    def test_scaling_factor_as_string(self, client):
        resp = client.post("/ace/registries", json={
            "caller": REGISTRY_OWNER, "linked_token": TOKEN_ADDRESS, "scaling_factor": "10",
        })
        assert resp.status_code == 201
        assert resp.get_json()["scaling_factor"] == 10

    @pytest.mark.parametrize("value", ["twenty", {"v": 1}, None, -1])
    def test_bad_approve_value(self, client, value):
        resp = client.post(f"/ace/registries/{REGISTRY_OWNER}/approve", json={
            "caller": ALICE, "proof_hash": "0x" + "11" * 32, "value": value,
        })
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "malformed-input"

    @pytest.mark.parametrize("caller", [42, None, ["x"], "not-an-address"])
    def test_bad_update_caller(self, client, caller):
        resp = client.post(f"/ace/registries/{REGISTRY_OWNER}/update", json={
            "caller": caller, "kind": JOIN_SPLIT, "output": "0x", "sender": ALICE,
        })
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "malformed-input"

    def test_update_caller_case_insensitive(self, client):
        resp = client.post(f"/ace/registries/{REGISTRY_OWNER}/update", json={
            "caller": REGISTRY_OWNER.lower(), "kind": JOIN_SPLIT, "output": "0x", "sender": ALICE,
        })
        assert resp.status_code != 403


class TestBootstrap:
    """설정 파일에서 엔진을 띄우는 테스트."""

    def test_from_config_loads_crs(self, tmp_path, crs, token):
        path = tmp_path / "crs.json"
        path.write_text(json.dumps(crs.to_dict()))
        engine = bootstrap(ACE.from_config(EngineConfig(owner=OWNER, crs_path=str(path))),
                           ledgers=[token])

        assert engine.common_reference_string == crs
        assert type(engine.get_validator(JOIN_SPLIT)).__name__ == "JoinSplitValidator"
        assert type(engine.get_validator(PUBLIC_RANGE)).__name__ == "PublicRangeValidator"
        assert type(engine.get_validator(SWAP)).__name__ == "SwapValidator"
        assert type(engine.get_validator(DIVIDEND)).__name__ == "DividendValidator"
        assert len(engine.journal.events("SetFactory")) == 3

    def test_without_crs_registers_factories_only(self, token):
        engine = bootstrap(ACE(EngineConfig(owner=OWNER)), ledgers=[token])
        assert engine.common_reference_string is None
        engine.create_note_registry(BOB, TOKEN_ADDRESS, 1, False, True)
