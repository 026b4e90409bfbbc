# codification/prompt_composer.py
from __future__ import annotations

from typing import Dict, Sequence

from codification.base_utils import unsafe_string_format
from codification.codification_prompts import (
    ALIASES_HEADER,
    CATEGORY_GUIDANCE_HEADER,
    COLD_START_NOTICE,
    DATA_TYPE_RULES_HEADER,
    EXISTING_CODES_HEADER,
    PROJECT_LIBRARY_HEADER,
    SMART_PASS_PROMPT,
)
from codification.entities import (
    CanonicalCode,
    CategoryInfo,
    CodeAlias,
    PendingItem,
    ProjectLibraryItem,
)
from codification.settings import GuidanceConfig

MAX_ALIASES_PER_CODE = 5


def _group_by(values, key) -> Dict[str, list]:
    grouped: Dict[str, list] = {}
    for v in values:
        grouped.setdefault(key(v), []).append(v)
    return grouped


class PromptComposer:
    """
    Builds the single user prompt for a smart pass run.
    Pure: the same inputs always produce the same text.
    """

    def __init__(self, guidance: GuidanceConfig | None = None):
        self.guidance = guidance or GuidanceConfig()

    def existing_codes_section(self, existing_codes: Sequence[CanonicalCode]) -> str:
        if not existing_codes:
            return COLD_START_NOTICE
        lines = [EXISTING_CODES_HEADER]
        for category, codes in _group_by(existing_codes, lambda c: c.category).items():
            lines.append("")
            lines.append(f"{category}:")
            lines.extend(f"  - {c.code} ({c.display_name}) [{c.data_type}]" for c in codes)
        return "\n".join(lines)

    def aliases_section(self, existing_aliases: Sequence[CodeAlias]) -> str:
        if not existing_aliases:
            return ""
        lines = [ALIASES_HEADER]
        for code, aliases in _group_by(existing_aliases, lambda a: a.canonical_code).items():
            shown = ", ".join(a.alias for a in aliases[:MAX_ALIASES_PER_CODE])
            more = "..." if len(aliases) > MAX_ALIASES_PER_CODE else ""
            lines.append(f"  {code}: {shown}{more}")
        return "\n".join(lines)

    def project_library_section(self, project_library_items: Sequence[ProjectLibraryItem] | None) -> str:
        if not project_library_items:
            return ""
        lines = [PROJECT_LIBRARY_HEADER]
        for category, items in _group_by(project_library_items, lambda i: i.category).items():
            lines.append("")
            lines.append(f"{category}:")
            lines.extend(f'  - {i.item_code} (used for "{i.original_name}")' for i in items)
        return "\n".join(lines)

    def category_guidance_section(self, categories: Sequence[CategoryInfo] | None) -> str:
        lines = [CATEGORY_GUIDANCE_HEADER]
        if categories:
            for cat in categories:
                line = f'- "{cat.name}": {cat.description}'
                if cat.examples:
                    line += f" (examples: {', '.join(cat.examples)})"
                lines.append(line)
        else:
            lines.extend(f"- {label}: {text}" for label, text in self.guidance.category_guidance)

        lines.append("")
        lines.append(DATA_TYPE_RULES_HEADER)
        lines.extend(f"- {dtype}: {text}" for dtype, text in self.guidance.data_type_rules)
        return "\n".join(lines)

    def items_section(self, pending_items: Sequence[PendingItem]) -> str:
        return "\n".join(
            f'{index}. "{item.original_name}" (value: {item.value}, category: {item.category})'
            for index, item in enumerate(pending_items, start=1)
        )

    def compose(
        self,
        pending_items: Sequence[PendingItem],
        existing_codes: Sequence[CanonicalCode],
        existing_aliases: Sequence[CodeAlias],
        categories: Sequence[CategoryInfo] | None = None,
        project_library_items: Sequence[ProjectLibraryItem] | None = None,
    ) -> str:
        return unsafe_string_format(
            SMART_PASS_PROMPT,
            existing_codes_section=self.existing_codes_section(existing_codes),
            aliases_section=self.aliases_section(existing_aliases),
            project_library_section=self.project_library_section(project_library_items),
            category_guidance_section=self.category_guidance_section(categories),
            items_section=self.items_section(pending_items),
        )


def build_codification_prompt(
    pending_items: Sequence[PendingItem],
    existing_codes: Sequence[CanonicalCode],
    existing_aliases: Sequence[CodeAlias],
    categories: Sequence[CategoryInfo] | None = None,
    project_library_items: Sequence[ProjectLibraryItem] | None = None,
) -> str:
    return PromptComposer().compose(
        pending_items, existing_codes, existing_aliases, categories, project_library_items
    )
