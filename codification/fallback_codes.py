# codification/fallback_codes.py
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict

from codification.settings import GuidanceConfig


@dataclass(frozen=True)
class FallbackCode:
    code: str
    display_name: str
    category: str
    data_type: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "displayName": self.display_name,
            "category": self.category,
            "dataType": self.data_type,
        }


def format_code_from_name(name: str) -> str:
    """'Stamp Duty (SDLT)' -> '<stamp.duty.sdlt>'"""
    slug = re.sub(r"[^a-z0-9\s]", "", (name or "").lower()).strip()
    dotted = re.sub(r"\s+", ".", slug)
    return f"<{dotted}>"


class FallbackCodeSynthesizer:
    """
    Deterministic code proposal for items the model never covered.
    Data type is keyword driven: percentage keywords win over number keywords,
    anything else gets the configured default (currency).
    """

    def __init__(self, guidance: GuidanceConfig | None = None):
        self.guidance = guidance or GuidanceConfig()

    def infer_data_type(self, item_name: str) -> str:
        lower_name = (item_name or "").lower()
        if any(k in lower_name for k in self.guidance.percentage_keywords):
            return "percentage"
        if any(k in lower_name for k in self.guidance.number_keywords):
            return "number"
        return self.guidance.default_data_type

    def synthesize(self, item_name: str, category: str) -> FallbackCode:
        return FallbackCode(
            code=format_code_from_name(item_name),
            display_name=item_name,
            category=category,
            data_type=self.infer_data_type(item_name),
        )


def generate_fallback_code(item_name: str, category: str) -> FallbackCode:
    return FallbackCodeSynthesizer().synthesize(item_name, category)
