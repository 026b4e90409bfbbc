"""Tests for the HTTP surface."""

import pytest
from fastapi.testclient import TestClient

import server
from codification.llm_client import ConfigurationError, UpstreamError
from codification.smart_pass import SmartPass


@pytest.fixture
def client_with(scripted_llm):
    def _build(**kwargs):
        llm = scripted_llm(**kwargs)
        server.app.dependency_overrides[server.get_engine] = lambda: SmartPass(llm)
        return TestClient(server.app), llm

    yield _build
    server.app.dependency_overrides.clear()


def _payload():
    return {
        "items": [
            {"id": "item_0", "originalName": "Build Cost", "value": 900000, "category": "Construction Costs",
             "mappingStatus": "matched", "itemCode": "<build.cost>", "confidence": 1.0},
            {"id": "item_1", "originalName": "Site Purchase Price", "value": 1250000, "category": "Site Costs",
             "mappingStatus": "pending_review"},
            {"id": "item_2", "originalName": "SDLT", "value": 52000, "category": "Purchase Costs",
             "mappingStatus": "pending_review"},
        ],
        "existingCodes": [
            {"id": "code_site", "code": "<site.costs>", "displayName": "Site Costs", "category": "Site Costs",
             "dataType": "currency"},
        ],
        "existingAliases": [
            {"alias": "Land Cost", "aliasNormalized": "land cost", "canonicalCode": "<site.costs>",
             "canonicalCodeId": "code_site"},
        ],
        "categories": [
            {"name": "Site Costs", "description": "Land acquisition", "examples": ["SDLT"]},
        ],
        "projectLibraryItems": [
            {"itemCode": "<stamp.duty>", "category": "Purchase Costs", "originalName": "Stamp Duty"},
        ],
    }


def test_smart_pass_endpoint(client_with, record, as_json):
    client, llm = client_with(raw_text=as_json([
        record(1, "<site.costs>", confidence=0.93),
        record(2, "<stamp.duty>", is_new=True, display="Stamp Duty", category="Purchase Costs"),
    ]), tokens_used=400)

    resp = client.post("/codify/smart-pass", json=_payload())

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["tokensUsed"] == 400
    assert [s["itemId"] for s in body["suggestions"]] == ["item_1", "item_2"]
    assert body["suggestions"][0]["suggestedCodeId"] == "code_site"
    assert body["newCodeSuggestions"] == [{
        "code": "<stamp.duty>",
        "displayName": "Stamp Duty",
        "category": "Purchase Costs",
        "dataType": "currency",
        "forItems": ["item_2"],
    }]
    assert [i["mappingStatus"] for i in body["items"]] == ["matched", "suggested", "suggested"]
    assert body["stats"]["suggested"] == 2
    assert body["isFullyConfirmed"] is False
    assert body["retryable"] is False
    assert "Land acquisition (examples: SDLT)" in llm.calls[0]["prompt"]


def test_unusable_output_is_retryable(client_with):
    client, _ = client_with(raw_text="I cannot help with that.")
    body = client.post("/codify/smart-pass", json=_payload()).json()
    assert body["suggestions"] == []
    assert body["retryable"] is True
    assert [i["mappingStatus"] for i in body["items"]] == ["matched", "pending_review", "pending_review"]


def test_configuration_error_is_503(client_with):
    client, _ = client_with(error=ConfigurationError("TOGETHER_API_KEY environment variable is not set"))
    resp = client.post("/codify/smart-pass", json=_payload())
    assert resp.status_code == 503
    assert resp.json()["detail"]["errorKind"] == "configuration"


def test_upstream_error_is_502_with_verbatim_body(client_with):
    client, _ = client_with(error=UpstreamError(429, '{"error": "rate limited"}'))
    resp = client.post("/codify/smart-pass", json=_payload())
    assert resp.status_code == 502
    detail = resp.json()["detail"]
    assert detail["errorKind"] == "upstream"
    assert detail["upstreamStatus"] == 429
    assert detail["upstreamBody"] == '{"error": "rate limited"}'


def test_invalid_mapping_status_rejected(client_with):
    client, _ = client_with()
    payload = _payload()
    payload["items"][1]["mappingStatus"] = "approved"
    assert client.post("/codify/smart-pass", json=payload).status_code == 422


def test_fallback_code_endpoint(client_with):
    client, _ = client_with()
    resp = client.post("/codify/fallback-code", json={"itemName": "Interest Rate", "category": "Financing Costs"})
    assert resp.status_code == 200
    assert resp.json() == {
        "code": "<interest.rate>",
        "displayName": "Interest Rate",
        "category": "Financing Costs",
        "dataType": "percentage",
    }


def test_fallback_code_requires_name(client_with):
    client, _ = client_with()
    assert client.post("/codify/fallback-code", json={"itemName": "  "}).status_code == 400
