from __future__ import annotations

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from dinostake.ledger.constants import DAY_MS, EPOCH_DURATION_MS
from dinostake.runtime.clock import ManualClock
from dinostake.runtime.config import econ_config_from_dict
from dinostake.runtime.econ_boot import EconRuntime
from dinostake.runtime.doc_store import MemoryDocumentStore

T0 = 1_700_000_000_000
H = {"X-User-Id": "alice-0001"}


@pytest.fixture()
def rt(monkeypatch: pytest.MonkeyPatch) -> EconRuntime:
    monkeypatch.setenv("DINOSTAKE_MODE", "dev")
    monkeypatch.delenv("DINOSTAKE_SCHEDULER_AUTOSTART", raising=False)
    cfg = econ_config_from_dict({"mode": "dev", "db_path": "memory", "sale_start_ms": T0 + DAY_MS})
    return EconRuntime(cfg=cfg, store=MemoryDocumentStore(), clock=ManualClock(T0))


@pytest.fixture()
def client(rt: EconRuntime, monkeypatch: pytest.MonkeyPatch):
    from dinostake.api import app as api_app

    monkeypatch.setattr(api_app, "build_runtime", lambda: rt)
    with TestClient(api_app.create_app(boot_runtime=True)) as c:
        yield c


def _fund(rt: EconRuntime, amount: str) -> None:
    rt.session_for(H["X-User-Id"])
    rt.store.put("users/alice-0001/staking", {"accrued_balance": amount})


def test_create_app_without_runtime_still_starts() -> None:
    from dinostake.api.app import create_app

    app = create_app(boot_runtime=False)
    assert app.state.runtime is None
    with TestClient(app) as _client:
        pass


def test_health(client: TestClient) -> None:
    r = client.get("/v1/health")
    assert r.status_code == 200
    j = r.json()
    assert j["ok"] is True
    assert j["mode"] == "dev"
    assert j["sale_phase"] == "pending"
    assert j["scheduler"]["attached"] is True
    assert j["scheduler"]["started"] is False
    assert r.headers.get("x-request-id")


def test_staking_status_defaults_without_identity(client: TestClient) -> None:
    r = client.get("/v1/staking")
    assert r.status_code == 200
    res = r.json()["result"]
    assert len(res["assets"]) == 3
    assert res["multiplier"] == "1.00"
    assert Decimal(res["next_slot_cost"]) == Decimal("200000")


def test_write_without_identity_is_401(client: TestClient) -> None:
    r = client.post("/v1/staking/slots")
    assert r.status_code == 401
    j = r.json()
    assert j["ok"] is False
    assert j["error"]["code"] == "not_authenticated"


def test_stake_and_unknown_asset(client: TestClient, rt: EconRuntime) -> None:
    r = client.post("/v1/staking/2/stake", headers=H)
    assert r.status_code == 200
    assert r.json()["result"]["asset"]["staked"] is True

    rt.clock.advance(DAY_MS)
    status = client.get("/v1/staking", headers=H).json()["result"]
    assert Decimal(status["accrued_balance"]) == Decimal("10500")

    r = client.post("/v1/staking/99/stake", headers=H)
    assert r.status_code == 404
    assert r.json()["error"]["code"] == "asset_not_found"


def test_slot_purchase_insufficient_then_ok(client: TestClient, rt: EconRuntime) -> None:
    r = client.post("/v1/staking/slots", headers=H)
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "insufficient_balance"

    _fund(rt, "200000")
    r = client.post("/v1/staking/slots", headers=H)
    assert r.status_code == 200
    assert r.json()["result"]["asset_id"] == 4

    burn = client.get("/v1/burn", headers=H).json()["result"]
    assert Decimal(burn["holder"]["ready_to_burn"]) == Decimal("100000")


def test_burn_targets(client: TestClient, rt: EconRuntime) -> None:
    _fund(rt, "200000")
    assert client.post("/v1/raffle/tickets", headers=H, json={"quantity": 2}).status_code == 200

    r = client.post("/v1/burn", headers=H, json={"target": "holder"})
    assert r.status_code == 200
    assert Decimal(r.json()["result"]["burnt"]) == Decimal("10000")

    r = client.post("/v1/burn", headers=H, json={"target": "global"})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "nothing_to_burn"

    assert client.post("/v1/burn/global/credit", headers=H, json={"amount": "77"}).status_code == 200
    r = client.post("/v1/burn", headers=H, json={"target": "global"})
    assert r.status_code == 200
    assert Decimal(r.json()["result"]["total_burnt"]) == Decimal("77")


def test_missing_body_field_is_400(client: TestClient) -> None:
    r = client.post("/v1/burn", headers=H, json={})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "bad_request"


def test_raffle_flow(client: TestClient, rt: EconRuntime) -> None:
    r = client.post("/v1/raffle/spin", headers=H)
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "no_tickets_available"

    _fund(rt, "200000")
    r = client.post("/v1/raffle/tickets", headers=H, json={"quantity": 3})
    assert r.status_code == 200
    assert r.json()["result"]["ticket_count"] == 3

    r = client.post("/v1/raffle/spin", headers=H)
    assert r.status_code == 200
    assert r.json()["result"]["kind"] in {"jackpot", "partial_match", "no_win"}

    st = client.get("/v1/raffle", headers=H).json()["result"]
    assert st["ticket_count"] == 2
    assert st["spinning"] is False

    r = client.post("/v1/raffle/tickets", headers=H, json={"quantity": 0})
    assert r.json()["error"]["code"] == "invalid_amount"


def test_sale_flow(client: TestClient, rt: EconRuntime) -> None:
    st = client.get("/v1/sale", headers=H).json()["result"]
    assert st["phase"] == "pending"
    assert st["countdown"]["days"] == 1

    r = client.post("/v1/sale/buy", headers=H, json={"token_amount": "1000000"})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "sale_not_live"

    rt.clock.set(T0 + DAY_MS)
    for _ in range(3):
        r = client.post("/v1/sale/buy", headers=H, json={"token_amount": 1000000})
        assert r.status_code == 200
    r = client.post("/v1/sale/buy", headers=H, json={"token_amount": "3000000"})
    assert r.json()["error"]["code"] == "epoch_cap_exceeded"

    rt.clock.advance(EPOCH_DURATION_MS)
    r = client.post("/v1/sale/buy", headers=H, json={"token_amount": "1000000"})
    assert r.status_code == 200
    assert r.json()["result"]["epoch"] == 1


def test_referrals(client: TestClient, rt: EconRuntime) -> None:
    st = client.get("/v1/referrals", headers=H).json()["result"]
    assert st["referral_code"] == "ALICE-00"

    assert client.post("/v1/referrals", headers=H).status_code == 200
    rt.clock.advance(DAY_MS)
    r = client.post("/v1/referrals/claim", headers=H)
    assert r.status_code == 200
    assert Decimal(r.json()["result"]["claimed"]) == Decimal("75000")


def test_metrics_disabled_by_default(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DINOSTAKE_METRICS_ENABLED", raising=False)
    assert client.get("/v1/metrics").status_code == 404

    monkeypatch.setenv("DINOSTAKE_METRICS_ENABLED", "1")
    r = client.get("/v1/metrics")
    assert r.status_code == 200
    assert "dinostake_uptime_ms" in r.text


def test_global_credit_hidden_in_prod(rt: EconRuntime, monkeypatch: pytest.MonkeyPatch) -> None:
    from dinostake.api import app as api_app

    prod_rt = EconRuntime(
        cfg=econ_config_from_dict({"mode": "prod", "db_path": "memory"}),
        store=MemoryDocumentStore(),
        clock=ManualClock(T0),
    )
    monkeypatch.setattr(api_app, "build_runtime", lambda: prod_rt)
    with TestClient(api_app.create_app(boot_runtime=True)) as c:
        r = c.post("/v1/burn/global/credit", headers=H, json={"amount": "1"})
        assert r.status_code == 404
