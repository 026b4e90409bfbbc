import logging
from typing import Any, List, Literal, Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from codification.entities import (
    CanonicalCode,
    CategoryInfo,
    CodeAlias,
    CodifiedItem,
    ProjectLibraryItem,
)
from codification.llm_client import ConfigurationError, UpstreamError
from codification.settings import load_guidance_config
from codification.smart_pass import SmartPass

logger = logging.getLogger("codification")

app = FastAPI()

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Allow all origins for dev
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CodifiedItemIn(CamelModel):
    id: str
    original_name: str
    value: Any = None
    category: str = ""
    data_type: str = "currency"
    item_code: Optional[str] = None
    suggested_code: Optional[str] = None
    suggested_code_id: Optional[str] = None
    mapping_status: Literal["matched", "suggested", "pending_review", "confirmed", "unmatched"] = "pending_review"
    confidence: float = 0.0


class CanonicalCodeIn(CamelModel):
    id: str
    code: str
    display_name: str = ""
    category: str = ""
    data_type: str = "currency"


class CodeAliasIn(CamelModel):
    alias: str
    alias_normalized: str = ""
    canonical_code: str
    canonical_code_id: str = ""


class CategoryInfoIn(CamelModel):
    name: str
    normalized_name: str = ""
    description: str = ""
    examples: List[str] = []


class ProjectLibraryItemIn(CamelModel):
    item_code: str
    category: str = ""
    original_name: str = ""


class SmartPassRequest(CamelModel):
    items: List[CodifiedItemIn]
    existing_codes: List[CanonicalCodeIn] = []
    existing_aliases: List[CodeAliasIn] = []
    categories: Optional[List[CategoryInfoIn]] = None
    project_library_items: Optional[List[ProjectLibraryItemIn]] = None


class FallbackCodeRequest(CamelModel):
    item_name: str
    category: str = ""


_engine: Optional[SmartPass] = None


def get_engine() -> SmartPass:
    global _engine
    if _engine is None:
        _engine = SmartPass(guidance=load_guidance_config())
    return _engine


@app.post("/codify/smart-pass")
def smart_pass(request: SmartPassRequest, engine: SmartPass = Depends(get_engine)):
    items = [CodifiedItem(**i.model_dump()) for i in request.items]
    codes = [CanonicalCode(**c.model_dump()) for c in request.existing_codes]
    aliases = [CodeAlias(**a.model_dump()) for a in request.existing_aliases]
    categories = [CategoryInfo(**c.model_dump()) for c in request.categories] if request.categories else None
    library = (
        [ProjectLibraryItem(**p.model_dump()) for p in request.project_library_items]
        if request.project_library_items
        else None
    )

    try:
        outcome = engine.codify_extraction(items, codes, aliases, categories, library)
    except ConfigurationError as e:
        logger.error(f"[SmartPass] Configuration error: {e}")
        raise HTTPException(status_code=503, detail={"errorKind": "configuration", "message": str(e)})
    except UpstreamError as e:
        logger.error(f"[SmartPass] Upstream error: status={e.status_code} body={e.body}")
        raise HTTPException(
            status_code=502,
            detail={
                "errorKind": "upstream",
                "upstreamStatus": e.status_code,
                "upstreamBody": e.body,
                "message": str(e),
            },
        )

    had_pending = any(i.mapping_status == "pending_review" for i in items)
    return {
        "success": True,
        **outcome.result.to_dict(),
        "items": [i.to_dict() for i in outcome.items],
        "stats": outcome.stats.to_dict(),
        "isFullyConfirmed": outcome.stats.is_fully_confirmed,
        # nothing usable came back for a non-empty batch: safe to run again
        "retryable": had_pending and not outcome.result.suggestions,
    }


@app.post("/codify/fallback-code")
def fallback_code(request: FallbackCodeRequest, engine: SmartPass = Depends(get_engine)):
    if not request.item_name.strip():
        raise HTTPException(status_code=400, detail="itemName is required")
    return engine.synthesizer.synthesize(request.item_name, request.category).to_dict()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
