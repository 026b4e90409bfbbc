# codification/entities.py
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, TypeAlias

CodeId: TypeAlias = str
ItemId: TypeAlias = str

DATA_TYPES = ("currency", "number", "percentage", "string")
MAPPING_STATUSES = ("matched", "suggested", "pending_review", "confirmed", "unmatched")


def normalize_category(name: str) -> str:
    normalized = (name or "").lower().strip()
    normalized = re.sub(r"\s+", ".", normalized)
    return re.sub(r"[^a-z0-9.]", "", normalized)


@dataclass(frozen=True)
class PendingItem:
    """An item the fast pass could not resolve."""

    id: ItemId
    original_name: str
    value: Any
    category: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PendingItem":
        return cls(
            id=str(data["id"]),
            original_name=data.get("originalName", ""),
            value=data.get("value"),
            category=data.get("category", ""),
        )


@dataclass(frozen=True)
class CodifiedItem:
    """
    Full line-item record as stored on an extraction.

    mapping_status is one of MAPPING_STATUSES; only `pending_review` items are handed
    to the smart pass.
    """

    id: ItemId
    original_name: str
    value: Any
    category: str
    data_type: str = "currency"
    item_code: Optional[str] = None
    suggested_code: Optional[str] = None
    suggested_code_id: Optional[CodeId] = None
    mapping_status: str = "pending_review"
    confidence: float = 0.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CodifiedItem":
        status = data.get("mappingStatus", "pending_review")
        if status not in MAPPING_STATUSES:
            raise ValueError(f"Unknown mappingStatus: {status}")
        return cls(
            id=str(data["id"]),
            original_name=data.get("originalName", ""),
            value=data.get("value"),
            category=data.get("category", ""),
            data_type=data.get("dataType", "currency"),
            item_code=data.get("itemCode"),
            suggested_code=data.get("suggestedCode"),
            suggested_code_id=data.get("suggestedCodeId"),
            mapping_status=status,
            confidence=float(data.get("confidence", 0.0) or 0.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "originalName": self.original_name,
            "itemCode": self.item_code,
            "suggestedCode": self.suggested_code,
            "suggestedCodeId": self.suggested_code_id,
            "value": self.value,
            "dataType": self.data_type,
            "category": self.category,
            "mappingStatus": self.mapping_status,
            "confidence": self.confidence,
        }

    def as_pending(self) -> PendingItem:
        return PendingItem(
            id=self.id,
            original_name=self.original_name,
            value=self.value,
            category=self.category,
        )


@dataclass(frozen=True)
class CanonicalCode:
    id: CodeId
    code: str
    display_name: str
    category: str
    data_type: str = "currency"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CanonicalCode":
        return cls(
            id=str(data.get("_id") or data.get("id")),
            code=data["code"],
            display_name=data.get("displayName", ""),
            category=data.get("category", ""),
            data_type=data.get("dataType", "currency"),
        )


@dataclass(frozen=True)
class CodeAlias:
    alias: str
    alias_normalized: str
    canonical_code: str
    canonical_code_id: CodeId

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CodeAlias":
        return cls(
            alias=data["alias"],
            alias_normalized=data.get("aliasNormalized", ""),
            canonical_code=data["canonicalCode"],
            canonical_code_id=str(data.get("canonicalCodeId", "")),
        )


@dataclass(frozen=True)
class CategoryInfo:
    name: str
    description: str = ""
    examples: Sequence[str] = ()
    normalized_name: str = ""

    def __post_init__(self):
        if not self.normalized_name:
            object.__setattr__(self, "normalized_name", normalize_category(self.name))
        object.__setattr__(self, "examples", tuple(self.examples))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CategoryInfo":
        return cls(
            name=data["name"],
            description=data.get("description", ""),
            examples=data.get("examples") or (),
            normalized_name=data.get("normalizedName", ""),
        )


@dataclass(frozen=True)
class ProjectLibraryItem:
    item_code: str
    category: str
    original_name: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectLibraryItem":
        return cls(
            item_code=data["itemCode"],
            category=data.get("category", ""),
            original_name=data.get("originalName", ""),
        )


@dataclass(frozen=True)
class Suggestion:
    item_id: ItemId
    original_name: str
    suggested_code: str
    suggested_display_name: str
    suggested_category: str
    suggested_data_type: str
    confidence: float
    is_new_code: bool
    reasoning: str
    suggested_code_id: Optional[CodeId] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "itemId": self.item_id,
            "originalName": self.original_name,
            "suggestedCode": self.suggested_code,
            "suggestedCodeId": self.suggested_code_id,
            "suggestedDisplayName": self.suggested_display_name,
            "suggestedCategory": self.suggested_category,
            "suggestedDataType": self.suggested_data_type,
            "confidence": self.confidence,
            "isNewCode": self.is_new_code,
            "reasoning": self.reasoning,
        }


@dataclass
class NewCodeRequest:
    """A code the model proposed creating, shared by every item that proposed it."""

    code: str
    display_name: str
    category: str
    data_type: str
    for_items: List[ItemId] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "displayName": self.display_name,
            "category": self.category,
            "dataType": self.data_type,
            "forItems": list(self.for_items),
        }


@dataclass
class EngineResult:
    suggestions: List[Suggestion] = field(default_factory=list)
    new_code_suggestions: List[NewCodeRequest] = field(default_factory=list)
    tokens_used: int = 0

    @classmethod
    def empty(cls) -> "EngineResult":
        return cls(suggestions=[], new_code_suggestions=[], tokens_used=0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "suggestions": [s.to_dict() for s in self.suggestions],
            "newCodeSuggestions": [n.to_dict() for n in self.new_code_suggestions],
            "tokensUsed": self.tokens_used,
        }


@dataclass(frozen=True)
class MappingStats:
    matched: int = 0
    suggested: int = 0
    pending_review: int = 0
    confirmed: int = 0
    unmatched: int = 0

    @classmethod
    def from_items(cls, items: Sequence[CodifiedItem]) -> "MappingStats":
        counts = {status: 0 for status in MAPPING_STATUSES}
        for item in items:
            if item.mapping_status in counts:
                counts[item.mapping_status] += 1
        return cls(**counts)

    @property
    def is_fully_confirmed(self) -> bool:
        return self.pending_review == 0 and self.suggested == 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "matched": self.matched,
            "suggested": self.suggested,
            "pendingReview": self.pending_review,
            "confirmed": self.confirmed,
            "unmatched": self.unmatched,
        }
