# codification/response_parser.py
"""
Recovery pipeline for smart pass model output.

The model is asked for a bare JSON array but routinely returns fenced blocks, wrapper
objects, chatter around the array, or an array cut off by the output token limit. Each
recovery stage is a pure `str -> list[dict] | None` function; stages run in order and the
first one yielding at least one record wins. When none does the run degrades to an empty
result instead of raising.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import commentjson

from codification.base_utils import strip_code_fences
from codification.entities import CanonicalCode, EngineResult, PendingItem
from codification.suggestion_assembler import assemble_suggestions

logger = logging.getLogger("codification")

RawRecord = Dict[str, Any]
RecoveryStage = Callable[[str], Optional[List[RawRecord]]]

WRAPPER_KEYS = ("items", "suggestions", "results", "data")

# One complete suggestion object: from `{ "itemIndex":` through `"reasoning": "..." }`.
# The body may not contain braces, so a truncated object never swallows its neighbour.
_SUGGESTION_OBJECT_RE = re.compile(
    r'\{\s*"itemIndex"\s*:[^{}]*?"reasoning"\s*:\s*"(?:[^"\\]|\\.)*"\s*\}',
    flags=re.DOTALL,
)


def _load_json(text: str) -> Any:
    """
    Strict JSON first, then JSON-with-comments. None when neither parses.
    """
    if not text:
        return None
    try:
        return json.loads(text)
    except (ValueError, RecursionError):
        pass
    try:
        return commentjson.loads(text)
    except Exception as e:
        logger.debug(f"[Parser] JSON load failed: {e}")
        return None


def _records_only(values: Any) -> Optional[List[RawRecord]]:
    if not isinstance(values, list):
        return None
    records = [v for v in values if isinstance(v, dict)]
    return records or None


def parse_direct(raw_text: str) -> Optional[List[RawRecord]]:
    return _records_only(_load_json(strip_code_fences(raw_text)))


def salvage_objects(raw_text: str) -> Optional[List[RawRecord]]:
    records: List[RawRecord] = []
    for match in _SUGGESTION_OBJECT_RE.finditer(raw_text or ""):
        parsed = _load_json(match.group(0))
        if isinstance(parsed, dict):
            records.append(parsed)
        else:
            logger.debug(f"[Parser] Skipping malformed object at offset {match.start()}")
    return records or None


def unwrap_wrapper(raw_text: str) -> Optional[List[RawRecord]]:
    parsed = _load_json(strip_code_fences(raw_text))
    if not isinstance(parsed, dict):
        return None
    for key in WRAPPER_KEYS:
        if key in parsed:
            return _records_only(parsed[key])
    return None


def extract_bracket_span(raw_text: str) -> Optional[List[RawRecord]]:
    text = raw_text or ""
    start = text.find("[")
    end = text.rfind("]")
    if start == -1 or end <= start:
        return None
    return _records_only(_load_json(text[start:end + 1]))


RECOVERY_STAGES: Tuple[Tuple[str, RecoveryStage], ...] = (
    ("direct", parse_direct),
    ("object_salvage", salvage_objects),
    ("wrapper_unwrap", unwrap_wrapper),
    ("bracket_span", extract_bracket_span),
)


def extract_raw_records(raw_text: str) -> Tuple[List[RawRecord], Optional[str]]:
    """
    Run the recovery stages in order. Returns (records, stage_name); stage_name is None
    when every stage came back empty.
    """
    for name, stage in RECOVERY_STAGES:
        records = stage(raw_text)
        if records:
            return records, name
    return [], None


def parse_llm_response(
    raw_text: str,
    pending_items: Sequence[PendingItem],
    existing_codes: Sequence[CanonicalCode],
) -> EngineResult:
    """
    Raw model text -> EngineResult (tokens_used left at 0 for the caller to fill in).
    Never raises for malformed input.
    """
    records, stage = extract_raw_records(raw_text)
    if stage is None:
        preview = (raw_text or "")[:200]
        logger.warning(f"[Parser] No usable suggestions recovered from model output: {preview!r}")
        return EngineResult.empty()

    if stage != "direct":
        logger.info(f"[Parser] Recovered {len(records)} record(s) via {stage}")

    result = assemble_suggestions(records, pending_items, existing_codes)
    dropped = len(records) - len(result.suggestions)
    if dropped:
        logger.info(f"[Parser] Dropped {dropped} record(s) with unusable itemIndex or code")
    return result
