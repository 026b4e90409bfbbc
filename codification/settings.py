# codification/settings.py
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import commentjson
from dotenv import load_dotenv

from codification.entities import DATA_TYPES

load_dotenv()

# --- Configuration ---
TOGETHER_API_KEY_ENV = "TOGETHER_API_KEY"
SMART_PASS_BASE_URL = os.getenv("SMART_PASS_BASE_URL", "https://api.together.xyz/v1")
SMART_PASS_MODEL = os.getenv("SMART_PASS_MODEL", "meta-llama/Llama-3.3-70B-Instruct-Turbo-Free")
CODIFICATION_GUIDANCE_PATH = os.getenv("CODIFICATION_GUIDANCE_PATH")


def _float_env(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return float(raw)


@dataclass(frozen=True)
class ModelConfig:
    model_name: str = SMART_PASS_MODEL
    base_url: str = SMART_PASS_BASE_URL
    temperature: float = 0.3
    max_tokens: int = 4000
    timeout: Optional[float] = None

    @classmethod
    def from_env(cls) -> "ModelConfig":
        return cls(
            model_name=os.getenv("SMART_PASS_MODEL", SMART_PASS_MODEL),
            base_url=os.getenv("SMART_PASS_BASE_URL", SMART_PASS_BASE_URL),
            temperature=_float_env("SMART_PASS_TEMPERATURE", 0.3),
            max_tokens=int(_float_env("SMART_PASS_MAX_TOKENS", 4000)),
            timeout=_float_env("SMART_PASS_TIMEOUT", None),
        )


#! FALLBACK GUIDANCE TABLES

DEFAULT_CATEGORY_GUIDANCE: Tuple[Tuple[str, str], ...] = (
    ('"Site Costs" or "Purchase Costs"', "Land acquisition, stamp duty, finders fees"),
    ('"Professional Fees"', "Engineers, architects, solicitors, building regulations, S106/CIL"),
    ('"Construction Costs" or "Net Construction Costs"', "Build costs, groundworks, retaining works"),
    ('"Financing Costs" or "Financing/Legal Fees"', "Interest, loan costs, arrangement fees"),
    ('"Disposal Costs" or "Disposal Fees"', "Agents fees, legal fees, marketing"),
    ('"Plots"', "Individual plot or unit data: plot costs, unit specifications"),
    ('"Revenue"', "Unit sales, GDV, sale prices, other income"),
)

DEFAULT_DATA_TYPE_RULES: Tuple[Tuple[str, str], ...] = (
    ("currency", "Monetary values (costs, prices, fees)"),
    ("number", "Counts, quantities"),
    ("percentage", "Rates (interest rate, profit margin)"),
    ("string", "Text values"),
)

DEFAULT_PERCENTAGE_KEYWORDS: Tuple[str, ...] = ("rate", "percentage", "%")
DEFAULT_NUMBER_KEYWORDS: Tuple[str, ...] = ("count", "number", "units")


@dataclass(frozen=True)
class GuidanceConfig:
    """
    Static tables injected into the prompt composer and the fallback synthesizer.
    Category guidance here is only used when no categories are supplied for a run.
    """

    category_guidance: Tuple[Tuple[str, str], ...] = DEFAULT_CATEGORY_GUIDANCE
    data_type_rules: Tuple[Tuple[str, str], ...] = DEFAULT_DATA_TYPE_RULES
    percentage_keywords: Tuple[str, ...] = DEFAULT_PERCENTAGE_KEYWORDS
    number_keywords: Tuple[str, ...] = DEFAULT_NUMBER_KEYWORDS
    default_data_type: str = "currency"


def _pairs(value: Any, key: str) -> Tuple[Tuple[str, str], ...]:
    if not isinstance(value, dict):
        raise ValueError(f"Guidance config key '{key}' must be an object of label -> description")
    return tuple((str(k), str(v)) for k, v in value.items())


def _keywords(value: Any, key: str) -> Tuple[str, ...]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"Guidance config key '{key}' must be a list of strings")
    return tuple(v.lower() for v in value)


def load_guidance_config(path: str | Path | None = None) -> GuidanceConfig:
    """
    Load guidance overrides from a JSON-with-comments file.

    Recognised top-level keys: CATEGORY_GUIDANCE, DATA_TYPE_RULES, PERCENTAGE_KEYWORDS,
    NUMBER_KEYWORDS, DEFAULT_DATA_TYPE. Missing keys keep the built-in tables; a present
    key with the wrong shape fails fast.
    """
    path = path or CODIFICATION_GUIDANCE_PATH
    if not path:
        return GuidanceConfig()

    cfg_path = Path(path)
    if not cfg_path.exists():
        raise FileNotFoundError(f"Codification guidance file not found at '{cfg_path}'.")

    with cfg_path.open("r", encoding="utf-8") as f:
        data: Dict[str, Any] = commentjson.load(f)

    if not isinstance(data, dict):
        raise ValueError("Guidance config must be a JSON object")

    overrides: Dict[str, Any] = {}
    if "CATEGORY_GUIDANCE" in data:
        overrides["category_guidance"] = _pairs(data["CATEGORY_GUIDANCE"], "CATEGORY_GUIDANCE")
    if "DATA_TYPE_RULES" in data:
        overrides["data_type_rules"] = _pairs(data["DATA_TYPE_RULES"], "DATA_TYPE_RULES")
    if "PERCENTAGE_KEYWORDS" in data:
        overrides["percentage_keywords"] = _keywords(data["PERCENTAGE_KEYWORDS"], "PERCENTAGE_KEYWORDS")
    if "NUMBER_KEYWORDS" in data:
        overrides["number_keywords"] = _keywords(data["NUMBER_KEYWORDS"], "NUMBER_KEYWORDS")
    if "DEFAULT_DATA_TYPE" in data:
        default_type = data["DEFAULT_DATA_TYPE"]
        if default_type not in DATA_TYPES:
            raise ValueError(f"Guidance config has invalid DEFAULT_DATA_TYPE: {default_type}")
        overrides["default_data_type"] = default_type

    return GuidanceConfig(**overrides)
