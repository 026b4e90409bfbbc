# codification/smart_pass.py
"""
Smart pass codification: the model-assisted second pass over items the fast pass left in
`pending_review`. Suggests existing codes or proposes new ones; nothing is written to the
code registry here, new codes only come back as requests.
"""
from __future__ import annotations

import dataclasses
import logging
import time
from dataclasses import dataclass
from typing import Dict, List, Sequence

from codification.base_utils import BaseUtils
from codification.codification_prompts import SMART_PASS_SYSTEM_PROMPT
from codification.entities import (
    CanonicalCode,
    CategoryInfo,
    CodeAlias,
    CodifiedItem,
    EngineResult,
    MappingStats,
    PendingItem,
    ProjectLibraryItem,
    Suggestion,
)
from codification.fallback_codes import FallbackCode, FallbackCodeSynthesizer
from codification.llm_client import SmartPassLlmClient, get_api_key
from codification.prompt_composer import PromptComposer
from codification.response_parser import parse_llm_response
from codification.settings import GuidanceConfig, ModelConfig

logger = logging.getLogger("codification")


def apply_smart_pass_suggestions(
    items: Sequence[CodifiedItem],
    suggestions: Sequence[Suggestion],
) -> List[CodifiedItem]:
    """
    Merge suggestions onto items. Items without a suggestion are passed through as-is;
    the rest are copied with the suggested code and moved to `suggested`.
    """
    suggestion_map: Dict[str, Suggestion] = {s.item_id: s for s in suggestions}

    out: List[CodifiedItem] = []
    for item in items:
        suggestion = suggestion_map.get(item.id)
        if suggestion is None:
            out.append(item)
            continue
        out.append(
            dataclasses.replace(
                item,
                suggested_code=suggestion.suggested_code,
                suggested_code_id=suggestion.suggested_code_id,
                mapping_status="suggested",
                confidence=suggestion.confidence,
            )
        )
    return out


@dataclass
class SmartPassOutcome:
    items: List[CodifiedItem]
    result: EngineResult
    stats: MappingStats


class SmartPass(BaseUtils):
    def __init__(
        self,
        llm_client: SmartPassLlmClient | None = None,
        *,
        model_config: ModelConfig | None = None,
        guidance: GuidanceConfig | None = None,
    ):
        self._llm_client = llm_client
        self.model_config = model_config
        self.guidance = guidance or GuidanceConfig()
        self.composer = PromptComposer(self.guidance)
        self.synthesizer = FallbackCodeSynthesizer(self.guidance)

    def _get_llm_client(self) -> SmartPassLlmClient:
        if self._llm_client is None:
            # fail fast on a missing credential before any prompt work
            get_api_key()
            self._llm_client = SmartPassLlmClient(self.model_config)
        return self._llm_client

    def run(
        self,
        pending_items: Sequence[PendingItem],
        existing_codes: Sequence[CanonicalCode],
        existing_aliases: Sequence[CodeAlias],
        categories: Sequence[CategoryInfo] | None = None,
        project_library_items: Sequence[ProjectLibraryItem] | None = None,
    ) -> EngineResult:
        """
        One model call per batch. Raises ConfigurationError / UpstreamError; unusable model
        output comes back as an empty result.
        """
        if not pending_items:
            return EngineResult.empty()

        llm_client = self._get_llm_client()

        logger.info(f"[SmartPass] Starting codification for {len(pending_items)} items")
        start_time = time.time()

        prompt = self.composer.compose(
            pending_items,
            existing_codes,
            existing_aliases,
            categories=categories,
            project_library_items=project_library_items,
        )

        try:
            response = llm_client.invoke(prompt, SMART_PASS_SYSTEM_PROMPT)
        except Exception as e:
            self.color_print(f"[SmartPass] Error during codification: {e}", color="red")
            raise

        elapsed_ms = int((time.time() - start_time) * 1000)
        logger.info(f"[SmartPass] Completed in {elapsed_ms} ms, tokens: {response.tokens_used}")

        result = parse_llm_response(response.raw_text, pending_items, existing_codes)
        result.tokens_used = response.tokens_used

        logger.info(f"[SmartPass] Generated {len(result.suggestions)} suggestions")
        logger.info(f"[SmartPass] New codes suggested: {len(result.new_code_suggestions)}")
        return result

    def codify_extraction(
        self,
        items: Sequence[CodifiedItem],
        existing_codes: Sequence[CanonicalCode],
        existing_aliases: Sequence[CodeAlias],
        categories: Sequence[CategoryInfo] | None = None,
        project_library_items: Sequence[ProjectLibraryItem] | None = None,
    ) -> SmartPassOutcome:
        """
        Run the smart pass over the `pending_review` items of one extraction and merge the
        suggestions back onto the full item list.
        """
        items = list(items)
        pending = [item.as_pending() for item in items if item.mapping_status == "pending_review"]
        if not pending:
            logger.info("[SmartPass] No pending items to process")
            return SmartPassOutcome(items=items, result=EngineResult.empty(), stats=MappingStats.from_items(items))

        result = self.run(pending, existing_codes, existing_aliases, categories, project_library_items)
        updated = apply_smart_pass_suggestions(items, result.suggestions)
        return SmartPassOutcome(items=updated, result=result, stats=MappingStats.from_items(updated))

    def fallback_for_missing(
        self,
        pending_items: Sequence[PendingItem],
        result: EngineResult,
    ) -> Dict[str, FallbackCode]:
        """Deterministic code proposals for pending items the model left out, keyed by item id."""
        covered = {s.item_id for s in result.suggestions}
        return {
            item.id: self.synthesizer.synthesize(item.original_name, item.category)
            for item in pending_items
            if item.id not in covered
        }


def run_smart_pass(
    pending_items: Sequence[PendingItem],
    existing_codes: Sequence[CanonicalCode],
    existing_aliases: Sequence[CodeAlias],
    categories: Sequence[CategoryInfo] | None = None,
    project_library_items: Sequence[ProjectLibraryItem] | None = None,
) -> EngineResult:
    return SmartPass().run(pending_items, existing_codes, existing_aliases, categories, project_library_items)
