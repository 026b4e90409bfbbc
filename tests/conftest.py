"""
Test configuration: puts the repo root on sys.path and provides registry snapshots,
pending items and a scripted model gateway so no test talks to a real endpoint.
"""

import json
import sys
from pathlib import Path

import pytest

# Add repo root to sys.path so tests can import codification.* and server
REPO_ROOT = Path(__file__).parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from codification.entities import (  # noqa: E402
    CanonicalCode,
    CategoryInfo,
    CodeAlias,
    CodifiedItem,
    PendingItem,
    ProjectLibraryItem,
)
from codification.llm_client import GatewayResponse  # noqa: E402


class ScriptedLlmClient:
    """Stands in for SmartPassLlmClient: returns canned text, or raises, and records calls."""

    def __init__(self, raw_text="[]", tokens_used=123, error=None):
        self.raw_text = raw_text
        self.tokens_used = tokens_used
        self.error = error
        self.calls = []

    def invoke(self, prompt, system_prompt):
        self.calls.append({"prompt": prompt, "system_prompt": system_prompt})
        if self.error is not None:
            raise self.error
        return GatewayResponse(raw_text=self.raw_text, tokens_used=self.tokens_used, elapsed_ms=5)


def make_record(index, code, *, is_new=False, name="", display="", category="Site Costs",
                data_type="currency", confidence=0.9, reasoning="because"):
    return {
        "itemIndex": index,
        "originalName": name,
        "suggestedCode": code,
        "suggestedDisplayName": display or code.strip("<>"),
        "suggestedCategory": category,
        "suggestedDataType": data_type,
        "isNewCode": is_new,
        "confidence": confidence,
        "reasoning": reasoning,
    }


@pytest.fixture
def record():
    return make_record


@pytest.fixture
def scripted_llm():
    return ScriptedLlmClient


@pytest.fixture
def existing_codes():
    return [
        CanonicalCode.from_dict({"_id": "code_site", "code": "<site.costs>", "displayName": "Site Costs",
                                 "category": "Site Costs", "dataType": "currency"}),
        CanonicalCode.from_dict({"_id": "code_eng", "code": "<engineers>", "displayName": "Engineers",
                                 "category": "Professional Fees", "dataType": "currency"}),
        CanonicalCode.from_dict({"_id": "code_rate", "code": "<interest.rate>", "displayName": "Interest Rate",
                                 "category": "Financing Costs", "dataType": "percentage"}),
    ]


@pytest.fixture
def existing_aliases():
    return [
        CodeAlias.from_dict({"alias": "Land Cost", "aliasNormalized": "land cost",
                             "canonicalCode": "<site.costs>", "canonicalCodeId": "code_site"}),
        CodeAlias.from_dict({"alias": "Structural Engineer", "aliasNormalized": "structural engineer",
                             "canonicalCode": "<engineers>", "canonicalCodeId": "code_eng"}),
    ]


@pytest.fixture
def pending_items():
    return [
        PendingItem.from_dict({"id": "item_1", "originalName": "Site Purchase Price", "value": 1250000, "category": "Site Costs"}),
        PendingItem.from_dict({"id": "item_2", "originalName": "SDLT", "value": 52000, "category": "Purchase Costs"}),
        PendingItem.from_dict({"id": "item_3", "originalName": "Stamp Duty Land Tax", "value": 52000, "category": "Purchase Costs"}),
        PendingItem.from_dict({"id": "item_4", "originalName": "Interest Rate", "value": 0.075, "category": "Financing Costs"}),
    ]


@pytest.fixture
def codified_items():
    return [
        CodifiedItem.from_dict({"id": "item_0", "originalName": "Build Cost", "itemCode": "<build.cost>",
                                "value": 900000, "dataType": "currency", "category": "Construction Costs",
                                "mappingStatus": "matched", "confidence": 1.0}),
        CodifiedItem.from_dict({"id": "item_1", "originalName": "Site Purchase Price", "value": 1250000,
                                "dataType": "currency", "category": "Site Costs",
                                "mappingStatus": "pending_review", "confidence": 0}),
        CodifiedItem.from_dict({"id": "item_2", "originalName": "SDLT", "value": 52000,
                                "dataType": "currency", "category": "Purchase Costs",
                                "mappingStatus": "pending_review", "confidence": 0}),
    ]


@pytest.fixture
def categories():
    return [
        CategoryInfo.from_dict({"name": "Site Costs", "description": "Land acquisition and site purchase.",
                                "examples": ["Site Purchase Price", "SDLT"]}),
        CategoryInfo.from_dict({"name": "Professional Fees", "description": "Consultants and approvals.",
                                "examples": []}),
    ]


@pytest.fixture
def project_library():
    return [
        ProjectLibraryItem.from_dict({"itemCode": "<stamp.duty>", "category": "Purchase Costs",
                                      "originalName": "Stamp Duty"}),
        ProjectLibraryItem.from_dict({"itemCode": "<site.costs>", "category": "Site Costs",
                                      "originalName": "Land"}),
    ]


@pytest.fixture
def as_json():
    return lambda records: json.dumps(records, indent=2)
