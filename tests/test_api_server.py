"""
HTTP tests for the Solscope API: required fields, error mapping and the
camelCase response shape. Chain data comes from the FakeProvider fixture.
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from backend_solscope.analytics.balance_delta import SYSTEM_PROGRAM_ID
from backend_solscope.config.settings import sol
from backend_solscope.core.exceptions import ChainDataError

WALLET = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"
SOURCE = "7F1WzVNQ1Qpurqxxdyv3UrFQR3uoNepULVW9A4bAJ5nZ"
MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
DEPLOYER = "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263"


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_missing_fields_return_endpoint_messages(client):
    cases = {
        "/api/reputability-score": "Wallet address is required",
        "/api/fund-flow-analysis": "Developer address is required",
        "/api/fund-sources": "Mint address is required",
        "/api/developer-network": "Developer address is required",
        "/api/deployer-network": "Address is required",
        "/api/check-ca": "Contract address is required",
    }
    for path, message in cases.items():
        response = client.post(path, json={})
        assert response.status_code == 400, path
        assert response.json() == {"error": message}


def test_blank_field_counts_as_missing(client):
    response = client.post("/api/reputability-score", json={"walletAddress": "   "})
    assert response.status_code == 400
    assert response.json() == {"error": "Wallet address is required"}


def test_invalid_address_is_rejected(client, fake_provider):
    response = client.post("/api/reputability-score", json={"walletAddress": "not-a-wallet"})
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid wallet address format"}
    assert fake_provider.calls == []


def test_malformed_body(client):
    response = client.post(
        "/api/reputability-score",
        content="{not json",
        headers={"content-type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid request body"}


def test_reputability_score_response_shape(client):
    response = client.post("/api/reputability-score", json={"walletAddress": WALLET})
    assert response.status_code == 200
    body = response.json()
    assert set(body) == {"score", "explanation", "factors", "riskLevel", "recommendations", "walletAnalysis"}
    assert body["score"] == 50
    assert body["riskLevel"] == "high"
    assert body["explanation"]
    assert body["recommendations"]
    assert set(body["factors"][0]) == {"name", "impact", "description", "polarity"}
    assert "transactionCount" in body["walletAnalysis"]
    assert "walletAgeMonths" in body["walletAnalysis"]


def test_snake_case_request_is_accepted(client):
    response = client.post("/api/reputability-score", json={"wallet_address": WALLET})
    assert response.status_code == 200


def test_fund_flow_analysis(client, fake_provider, make_tx):
    fake_provider.add_history(
        WALLET, [make_tx("in", {WALLET: sol(5), SOURCE: -sol(5)}, program_ids=[SYSTEM_PROGRAM_ID])]
    )
    response = client.post("/api/fund-flow-analysis", json={"developerAddress": WALLET})
    assert response.status_code == 200
    body = response.json()
    assert body["nodes"][0]["id"] == WALLET
    assert body["nodes"][1]["fundDirection"] == "incoming"
    assert body["nodes"][1]["transactionCount"] == 1
    assert body["links"][0]["direction"] == "to_developer"
    assert body["totalFundsReceived"] == sol(5)
    assert body["fundingSources"] == 1
    assert body["riskScore"] == 30
    assert body["suspiciousPatterns"] == []


def test_fund_sources_without_deployer(client):
    response = client.post("/api/fund-sources", json={"mintAddress": MINT, "deployerAddress": ""})
    assert response.status_code == 200
    body = response.json()
    assert [n["category"] for n in body["nodes"]] == ["mint"]
    assert body["totalFunding"] == 0
    assert body["fundingSources"] == 0


def test_fund_sources_invalid_deployer(client):
    response = client.post("/api/fund-sources", json={"mintAddress": MINT, "deployerAddress": "bad"})
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid deployer address format"}


def test_developer_network(client):
    response = client.post("/api/developer-network", json={"developerAddress": WALLET})
    assert response.status_code == 200
    body = response.json()
    assert body["nodes"][0]["label"] == "Developer"
    assert body["links"] == []


def test_deployer_network(client, fake_provider, make_tx):
    fake_provider.add_history(DEPLOYER, [make_tx("d1", {DEPLOYER: -5000, SOURCE: 0})])
    response = client.post("/api/deployer-network", json={"address": DEPLOYER})
    assert response.status_code == 200
    body = response.json()
    assert body["nodes"][0]["label"] == "Deployer"
    assert body["links"][0]["target"] == SOURCE


def test_check_ca(client, fake_provider):
    fake_provider.accounts[MINT] = {"data": {"parsed": {"info": {"decimals": 6, "supply": "100"}}}}
    response = client.post("/api/check-ca", json={"mintAddress": MINT})
    assert response.status_code == 200
    assert response.json() == {
        "mintAddress": MINT,
        "name": "Unknown",
        "symbol": "Unknown",
        "decimals": 6,
        "supply": "100",
        "mintAuthority": None,
        "freezeAuthority": None,
        "metadataUri": None,
        "deployer": None,
        "isMutable": False,
    }


def test_check_ca_not_found(client):
    response = client.post("/api/check-ca", json={"mintAddress": MINT})
    assert response.status_code == 404
    assert response.json() == {"error": "Invalid contract address or token not found"}


def test_check_ca_upstream_failure(client, fake_provider):
    fake_provider.failures["get_account_info"] = ChainDataError("RPC error: node is behind")
    response = client.post("/api/check-ca", json={"mintAddress": MINT})
    assert response.status_code == 502
    assert response.json() == {"error": "RPC error: node is behind"}


def test_unexpected_error_returns_500(client, fake_provider):
    from backend_solscope.api_server.server import app

    fake_provider.failures["get_account_info"] = RuntimeError("boom")
    with TestClient(app, raise_server_exceptions=False) as unsafe_client:
        response = unsafe_client.post("/api/check-ca", json={"mintAddress": MINT})
    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}
