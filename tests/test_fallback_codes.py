"""Tests for deterministic fallback code synthesis."""

import pytest

from codification.fallback_codes import (
    FallbackCodeSynthesizer,
    format_code_from_name,
    generate_fallback_code,
)
from codification.settings import GuidanceConfig


def test_sdlt_is_currency():
    code = generate_fallback_code("SDLT", "Purchase Costs")
    assert code.code == "<sdlt>"
    assert code.data_type == "currency"
    assert code.display_name == "SDLT"
    assert code.category == "Purchase Costs"


def test_interest_rate_is_percentage():
    assert generate_fallback_code("Interest Rate", "Financing Costs").data_type == "percentage"


@pytest.mark.parametrize(
    "name,expected",
    [
        ("Profit %", "percentage"),
        ("Margin Percentage", "percentage"),
        ("Unit Count", "number"),
        ("Number of Plots", "number"),
        ("Total Units", "number"),
        ("Rate per Unit Count", "percentage"),
        ("Build Cost", "currency"),
    ],
)
def test_data_type_precedence(name, expected):
    assert FallbackCodeSynthesizer().infer_data_type(name) == expected


@pytest.mark.parametrize(
    "name,expected",
    [
        ("Site Purchase Price", "<site.purchase.price>"),
        ("  Stamp   Duty (SDLT) ", "<stamp.duty.sdlt>"),
        ("S106/CIL", "<s106cil>"),
        ("Finder's Fee - 2%", "<finders.fee.2>"),
        ("Build\tCost\n Total", "<build.cost.total>"),
    ],
)
def test_format_code_from_name(name, expected):
    assert format_code_from_name(name) == expected


def test_injected_keywords_are_used():
    guidance = GuidanceConfig(percentage_keywords=("yield",), number_keywords=("sqft",), default_data_type="string")
    synthesizer = FallbackCodeSynthesizer(guidance)
    assert synthesizer.infer_data_type("Net Yield") == "percentage"
    assert synthesizer.infer_data_type("GIA sqft") == "number"
    assert synthesizer.infer_data_type("Interest Rate") == "string"
