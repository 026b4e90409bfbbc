# codification/suggestion_assembler.py
from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Optional, Sequence

from codification.base_utils import coerce_field_to_str
from codification.entities import (
    CanonicalCode,
    EngineResult,
    NewCodeRequest,
    PendingItem,
    Suggestion,
)

logger = logging.getLogger("codification")


def resolve_item_index(record: Dict[str, Any], item_count: int) -> Optional[int]:
    """
    1-based itemIndex -> 0-based position, or None when missing/out of range.
    Accepts integral floats and numeric strings ("3", 3.0); booleans are rejected.
    """
    raw = record.get("itemIndex")
    if isinstance(raw, bool) or raw is None:
        return None
    try:
        as_float = float(raw)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(as_float) or not as_float.is_integer():
        return None
    index = int(as_float)
    if index < 1 or index > item_count:
        return None
    return index - 1


def coerce_confidence(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(confidence):
        return 0.0
    return min(1.0, max(0.0, confidence))


def coerce_flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


def assemble_suggestions(
    records: Sequence[Dict[str, Any]],
    pending_items: Sequence[PendingItem],
    existing_codes: Sequence[CanonicalCode],
) -> EngineResult:
    """
    Cross-reference raw model records with the registry snapshot.

    - A suggestedCode found in the registry carries its id and is never new, whatever the
      model claimed; otherwise the model's isNewCode flag stands.
    - New codes are aggregated by code string. The first record proposing a code defines its
      display name/category/data type; later records only append their item id.
    - Suggestions keep record order; new-code requests keep first-occurrence order.
    """
    code_by_code: Dict[str, CanonicalCode] = {c.code: c for c in existing_codes}
    suggestions: List[Suggestion] = []
    new_codes: Dict[str, NewCodeRequest] = {}

    for record in records:
        position = resolve_item_index(record, len(pending_items))
        if position is None:
            logger.debug(f"[SmartPass] Dropping record with unusable itemIndex: {record.get('itemIndex')!r}")
            continue

        suggested_code = coerce_field_to_str(record.get("suggestedCode"))
        if not suggested_code:
            logger.debug(f"[SmartPass] Dropping record without suggestedCode for itemIndex {record.get('itemIndex')!r}")
            continue

        pending_item = pending_items[position]
        existing = code_by_code.get(suggested_code)

        suggestion = Suggestion(
            item_id=pending_item.id,
            original_name=pending_item.original_name,
            suggested_code=suggested_code,
            suggested_code_id=existing.id if existing else None,
            suggested_display_name=coerce_field_to_str(record.get("suggestedDisplayName")),
            suggested_category=coerce_field_to_str(record.get("suggestedCategory")),
            suggested_data_type=coerce_field_to_str(record.get("suggestedDataType")),
            confidence=coerce_confidence(record.get("confidence")),
            is_new_code=coerce_flag(record.get("isNewCode")) and existing is None,
            reasoning=coerce_field_to_str(record.get("reasoning")),
        )
        suggestions.append(suggestion)

        if suggestion.is_new_code:
            request = new_codes.get(suggested_code)
            if request is None:
                request = NewCodeRequest(
                    code=suggested_code,
                    display_name=suggestion.suggested_display_name,
                    category=suggestion.suggested_category,
                    data_type=suggestion.suggested_data_type,
                )
                new_codes[suggested_code] = request
            request.for_items.append(pending_item.id)

    return EngineResult(
        suggestions=suggestions,
        new_code_suggestions=list(new_codes.values()),
        tokens_used=0,
    )
