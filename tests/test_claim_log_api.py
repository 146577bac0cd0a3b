"""
Tests for the claim log HTTP API.

Covers:
- Fallback mode (no ledger connection)
- Ledger mode (fake contract)
- Required field validation
- /health liveness reporting
- Boot with missing network configuration
"""

import json
import re

import pytest
from fastapi.testclient import TestClient

from conftest import ORG1, ORG2, FakeContract, FakeGateway, make_live, write_connection_profile, write_identity
from src.api.app import create_app
from src.api.schema import health_keys
from src.ledger.gateway import Unavailable
from src.ledger.registry import ConnectionRegistry

ISO_8601 = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")

VALID_CLAIM = {
    "claimId": "C1",
    "farmerName": "Asha",
    "cropType": "Wheat",
    "status": "Filed",
}


# ============================================================================
# Fallback Mode
# ============================================================================


class TestFallbackMode:
    """Organizations without a ledger connection use the shared local store."""

    def test_empty_store_returns_empty_list(self, client):
        response = client.get(f"/api/claims-logs/{ORG1}")
        assert response.status_code == 200
        assert response.json() == []

    def test_post_then_get_scenario(self, client):
        """POST a valid claim in fallback mode, then read it back unchanged."""
        response = client.post(f"/api/claims-logs/{ORG1}", json=VALID_CLAIM)
        assert response.status_code == 200

        stored = response.json()
        assert stored["claimId"] == "C1"
        assert stored["farmerName"] == "Asha"
        assert stored["id"].isdigit()
        assert ISO_8601.match(stored["timestamp"])
        assert ISO_8601.match(stored["createdAt"])

        listing = client.get(f"/api/claims-logs/{ORG1}")
        assert listing.status_code == 200
        assert listing.json() == [stored]

    def test_fallback_list_is_shared_across_orgs(self, client):
        client.post(f"/api/claims-logs/{ORG1}", json=VALID_CLAIM)
        client.post(f"/api/claims-logs/{ORG2}", json={**VALID_CLAIM, "claimId": "C2"})

        org1 = client.get(f"/api/claims-logs/{ORG1}").json()
        org2 = client.get(f"/api/claims-logs/{ORG2}").json()
        unknown = client.get("/api/claims-logs/org9.example.com").json()

        assert len(org1) == 2
        assert org1 == org2 == unknown

    def test_caller_timestamp_and_extra_fields_are_kept(self, client):
        body = {**VALID_CLAIM, "timestamp": "2024-03-01T10:00:00.000Z", "region": "Punjab"}
        stored = client.post(f"/api/claims-logs/{ORG1}", json=body).json()

        assert stored["timestamp"] == "2024-03-01T10:00:00.000Z"
        assert stored["region"] == "Punjab"

    def test_server_assigns_id_even_if_caller_sends_one(self, client):
        stored = client.post(f"/api/claims-logs/{ORG1}", json={**VALID_CLAIM, "id": "mine"}).json()
        assert stored["id"] != "mine"
        assert stored["id"].isdigit()


# ============================================================================
# Validation
# ============================================================================


class TestValidation:
    """Missing required fields are rejected before any backend is touched."""

    @pytest.mark.parametrize("field", ["claimId", "farmerName", "cropType", "status"])
    def test_missing_field_rejected(self, client, store, field):
        body = {k: v for k, v in VALID_CLAIM.items() if k != field}
        response = client.post(f"/api/claims-logs/{ORG1}", json=body)

        assert response.status_code == 400
        assert response.json() == {
            "error": "Missing required fields",
            "required": ["claimId", "farmerName", "cropType", "status"],
        }
        assert len(store.list_all()) == 0

    def test_empty_string_counts_as_missing(self, client, store):
        response = client.post(f"/api/claims-logs/{ORG1}", json={**VALID_CLAIM, "status": ""})
        assert response.status_code == 400
        assert len(store.list_all()) == 0

    def test_non_object_body_rejected(self, client, store):
        response = client.post(f"/api/claims-logs/{ORG1}", json=["C1", "Asha"])
        assert response.status_code == 400
        assert len(store.list_all()) == 0

    def test_malformed_json_rejected(self, client, store):
        response = client.post(
            f"/api/claims-logs/{ORG1}",
            content=b'{"claimId": "C1", "farmerName": ',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Missing required fields"
        assert len(store.list_all()) == 0

    def test_empty_body_rejected(self, client, store):
        response = client.post(
            f"/api/claims-logs/{ORG1}",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert len(store.list_all()) == 0

    def test_rejected_write_never_reaches_ledger(self, client, registry, store):
        contract = FakeContract()
        registry.set(ORG1, make_live(contract))

        response = client.post(f"/api/claims-logs/{ORG1}", json={"claimId": "C1"})

        assert response.status_code == 400
        assert contract.calls == []
        assert len(store.list_all()) == 0


# ============================================================================
# Ledger Mode
# ============================================================================


class TestLedgerMode:
    """Organizations with a live handle go through the contract."""

    def test_get_returns_ledger_records_verbatim(self, client, registry, store):
        records = [{"claimId": "L1", "farmerName": "Ravi", "cropType": "Rice", "status": "Paid"}]
        contract = FakeContract(query_payload=json.dumps(records).encode())
        registry.set(ORG1, make_live(contract))
        store.append(VALID_CLAIM)

        response = client.get(f"/api/claims-logs/{ORG1}")

        assert response.status_code == 200
        assert response.json() == records
        assert contract.calls == [("evaluate", "QueryAllClaimLogs", ())]

    def test_post_submits_five_arguments_in_order(self, client, registry, store):
        contract = FakeContract()
        registry.set(ORG1, make_live(contract))
        body = {**VALID_CLAIM, "timestamp": "2024-03-01T10:00:00.000Z"}

        response = client.post(f"/api/claims-logs/{ORG1}", json=body)

        assert response.status_code == 200
        assert contract.calls == [
            ("submit", "AddClaimLog", ("C1", "Asha", "Wheat", "2024-03-01T10:00:00.000Z", "Filed"))
        ]
        assert len(store.list_all()) == 0

    def test_post_defaults_timestamp_to_now(self, client, registry):
        contract = FakeContract()
        registry.set(ORG1, make_live(contract))

        client.post(f"/api/claims-logs/{ORG1}", json=VALID_CLAIM)

        _, _, args = contract.calls[0]
        assert ISO_8601.match(args[3])

    def test_empty_submit_result_is_empty_object(self, client, registry):
        registry.set(ORG1, make_live(FakeContract(submit_payload=b"")))

        response = client.post(f"/api/claims-logs/{ORG1}", json=VALID_CLAIM)

        assert response.status_code == 200
        assert response.json() == {}

    def test_submit_result_is_decoded(self, client, registry):
        accepted = {**VALID_CLAIM, "txId": "abc123"}
        registry.set(ORG1, make_live(FakeContract(submit_payload=json.dumps(accepted).encode())))

        response = client.post(f"/api/claims-logs/{ORG1}", json=VALID_CLAIM)

        assert response.json() == accepted

    def test_only_connected_org_uses_ledger(self, client, registry, store):
        contract = FakeContract()
        registry.set(ORG1, make_live(contract))

        client.post(f"/api/claims-logs/{ORG2}", json=VALID_CLAIM)

        assert contract.calls == []
        assert len(store.list_all()) == 1

    def test_malformed_query_result_is_500(self, client, registry):
        registry.set(ORG1, make_live(FakeContract(query_payload=b"not json")))

        response = client.get(f"/api/claims-logs/{ORG1}")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Failed to fetch claims logs"
        assert "decode" in body["details"]

    def test_non_list_query_result_is_500(self, client, registry):
        registry.set(ORG1, make_live(FakeContract(query_payload=b'{"claimId": "L1"}')))

        response = client.get(f"/api/claims-logs/{ORG1}")

        assert response.status_code == 500

    def test_submit_failure_is_500(self, client, registry, store):
        registry.set(ORG1, make_live(FakeContract(error=RuntimeError("endorsement failed"))))

        response = client.post(f"/api/claims-logs/{ORG1}", json=VALID_CLAIM)

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Failed to add claim log"
        assert "endorsement failed" in body["details"]
        assert len(store.list_all()) == 0

    def test_query_timeout_is_500(self, client, registry):
        registry.set(ORG1, make_live(FakeContract(delay=1), query_timeout=0.05))

        response = client.get(f"/api/claims-logs/{ORG1}")

        assert response.status_code == 500
        assert "timed out" in response.json()["details"]


# ============================================================================
# Health
# ============================================================================


class TestHealth:
    """/health reports ledger connectivity per organization."""

    def test_all_unavailable(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "OK"
        assert body["fabricConnectedOrg1"] is False
        assert body["fabricConnectedOrg2"] is False
        assert ISO_8601.match(body["timestamp"])

    def test_toggling_handle_changes_only_that_flag(self, client, registry):
        registry.set(ORG1, make_live())
        before = client.get("/health").json()

        registry.set(ORG1, Unavailable(reason="peer down"))
        after = client.get("/health").json()

        assert before["fabricConnectedOrg1"] is True
        assert after["fabricConnectedOrg1"] is False
        before.pop("timestamp")
        after.pop("timestamp")
        changed = {k for k in before if before[k] != after[k]}
        assert changed == {"fabricConnectedOrg1"}

    def test_reports_every_configured_org(self, settings, store):
        settings = settings.model_copy(update={"organizations": [ORG1, ORG2, "org3.example.com"]})
        app = create_app(settings=settings, store=store)

        with TestClient(app) as test_client:
            body = test_client.get("/health").json()

        assert body["fabricConnectedOrg3"] is False

    def test_shared_short_name_reports_full_names(self, settings, store):
        orgs = ["org1.example.com", "org1.other.com"]
        registry = ConnectionRegistry(orgs)
        registry.set("org1.other.com", make_live())
        app = create_app(
            settings=settings.model_copy(update={"organizations": orgs}),
            registry=registry,
            store=store,
        )

        with TestClient(app) as test_client:
            body = test_client.get("/health").json()

        assert body["fabricConnectedOrg1ExampleCom"] is False
        assert body["fabricConnectedOrg1OtherCom"] is True
        assert "fabricConnectedOrg1" not in body

    def test_health_keys_only_expand_colliding_names(self):
        keys = health_keys(["org1.example.com", "org1.other.com", "org2.example.com"])

        assert keys == {
            "org1.example.com": "fabricConnectedOrg1ExampleCom",
            "org1.other.com": "fabricConnectedOrg1OtherCom",
            "org2.example.com": "fabricConnectedOrg2",
        }


# ============================================================================
# Boot and Shutdown
# ============================================================================


class TestLifecycle:
    """Connections are made at startup and torn down at shutdown."""

    def test_boot_without_topology_descriptors(self, settings, store):
        """Both profiles missing: both flags false, API still works via fallback."""
        app = create_app(settings=settings, store=store)

        with TestClient(app) as test_client:
            health = test_client.get("/health").json()
            posted = test_client.post(f"/api/claims-logs/{ORG1}", json=VALID_CLAIM)
            listed = test_client.get(f"/api/claims-logs/{ORG2}")

        assert health["fabricConnectedOrg1"] is False
        assert health["fabricConnectedOrg2"] is False
        assert posted.status_code == 200
        assert listed.json() == [posted.json()]

    def test_boot_connects_and_shutdown_disconnects(self, settings, store):
        write_connection_profile(settings, ORG1)
        write_identity(settings, ORG1)
        gateways = []

        def factory():
            gateway = FakeGateway()
            gateways.append(gateway)
            return gateway

        app = create_app(settings=settings, store=store, gateway_factory=factory)

        with TestClient(app) as test_client:
            health = test_client.get("/health").json()
            assert health["fabricConnectedOrg1"] is True
            assert health["fabricConnectedOrg2"] is False

        assert len(gateways) == 1
        assert gateways[0].disconnected
        assert app.state.registry.status() == {ORG1: False, ORG2: False}

    def test_failed_disconnect_does_not_block_shutdown(self, settings, store):
        for org in (ORG1, ORG2):
            write_connection_profile(settings, org)
            write_identity(settings, org)
        gateways = iter([
            FakeGateway(disconnect_error=RuntimeError("socket closed")),
            FakeGateway(),
        ])
        created = []

        def factory():
            gateway = next(gateways)
            created.append(gateway)
            return gateway

        app = create_app(settings=settings, store=store, gateway_factory=factory)

        with TestClient(app) as test_client:
            assert test_client.get("/health").json()["fabricConnectedOrg2"] is True

        assert all(g.disconnected for g in created)
