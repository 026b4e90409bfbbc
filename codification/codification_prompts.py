SMART_PASS_SYSTEM_PROMPT = "You are a financial data codification specialist. Always respond with valid JSON only."

SMART_PASS_PROMPT = """You are a financial data codification specialist. Your task is to map extracted financial items to standardized codes for a real estate financial modeling system.

{existing_codes_section}
{aliases_section}
{project_library_section}
{category_guidance_section}

ITEMS TO CODIFY:
{items_section}

TASK:
For each item above, either:
1. Map it to an existing code (if one is semantically equivalent)
2. Suggest a new code (if no existing code matches)

CODE FORMAT RULES:
- Codes use angle brackets: <category.item> or <item>
- Use lowercase with dots for hierarchy
- Examples: <stamp.duty>, <site.costs>, <engineers>, <build.cost>, <interest.rate>
- Keep codes short and descriptive

Respond with a JSON array containing one object per item:
[
  {
    "itemIndex": 1,
    "originalName": "Site Purchase Price",
    "suggestedCode": "<site.costs>",
    "suggestedDisplayName": "Site Costs",
    "suggestedCategory": "Site Costs",
    "suggestedDataType": "currency",
    "isNewCode": false,
    "confidence": 0.95,
    "reasoning": "Maps to existing site costs code for land acquisition"
  },
  {
    "itemIndex": 2,
    "originalName": "SDLT",
    "suggestedCode": "<stamp.duty>",
    "suggestedDisplayName": "Stamp Duty",
    "suggestedCategory": "Purchase Costs",
    "suggestedDataType": "currency",
    "isNewCode": true,
    "confidence": 0.98,
    "reasoning": "SDLT is Stamp Duty Land Tax - creating new code"
  }
]

IMPORTANT:
- Be consistent with existing codes when mapping
- Suggest new codes only when no existing code is semantically equivalent
- Use high confidence (0.9+) for clear matches
- Use lower confidence (0.7-0.8) for ambiguous matches
- Always provide reasoning

Respond with ONLY the JSON array, no other text."""

EXISTING_CODES_HEADER = "EXISTING CODES IN THE SYSTEM:"

COLD_START_NOTICE = """NO EXISTING CODES IN THE SYSTEM YET.
This is a cold start - you should suggest creating new codes for all items."""

ALIASES_HEADER = "KNOWN ALIASES (terms that map to codes):"

PROJECT_LIBRARY_HEADER = """CODES ALREADY USED IN THIS PROJECT:
For consistency, prefer reusing these codes for semantically similar items in this project."""

CATEGORY_GUIDANCE_HEADER = "CATEGORY GUIDELINES:"

DATA_TYPE_RULES_HEADER = "DATA TYPE RULES:"
