"""
Compliance analysis prompts.

Fixed instructional text for the three request kinds (image analysis,
text analysis, chat) and the JSON response contract. Everything here is
part of the cached prompt prefix, so edits change prefix identity.

Dependencies: langchain_core.prompts
System role: Prompt templates for the compliance analysis engine
"""

import enum

from langchain_core.prompts import ChatPromptTemplate


class PromptMode(str, enum.Enum):
    """Kind of request a prompt is assembled for."""

    IMAGE_ANALYSIS = "image_analysis"
    TEXT_ANALYSIS = "text_analysis"
    CHAT = "chat"

    @property
    def expects_report(self) -> bool:
        return self is not PromptMode.CHAT


REPORT_JSON_SCHEMA = """{
  "product_name": "Statement of identity: the actual product name, not a tagline",
  "product_type": "Type of product (e.g. 'Coffee', 'Snack Food', 'Beverage')",
  "product_category": "DIETARY_SUPPLEMENT | ALCOHOLIC_BEVERAGE | NON_ALCOHOLIC_BEVERAGE | CONVENTIONAL_FOOD",
  "general_labeling": {
    "statement_of_identity": {"status": "compliant|non_compliant|not_applicable", "details": "...", "regulation_citation": "21 CFR 101.3"},
    "net_quantity": {"status": "compliant|non_compliant|not_applicable", "details": "...", "regulation_citation": "21 CFR 101.105"},
    "manufacturer_address": {"status": "compliant|non_compliant|not_applicable", "details": "...", "regulation_citation": "21 CFR 101.5"}
  },
  "ingredient_labeling": {"status": "compliant|non_compliant|not_applicable", "ingredients_list": ["..."], "details": "...", "regulation_citation": "21 CFR 101.4"},
  "allergen_labeling": {
    "status": "compliant|potentially_non_compliant|non_compliant",
    "details": "...",
    "potential_allergens": ["Ingredients that are or may contain major food allergens"],
    "has_contains_statement": true,
    "risk_level": "low|medium|high",
    "regulation_citation": "FALCPA Section 403(w), FASTER Act"
  },
  "nutrition_labeling": {"status": "compliant|non_compliant|not_applicable", "details": "...", "regulation_citation": "21 CFR 101.9"},
  "claims": {"status": "compliant|non_compliant|not_applicable", "details": "...", "regulation_citation": "21 CFR 101.13, 21 CFR 101.93"},
  "additional_requirements": [{"requirement": "...", "status": "compliant|non_compliant|not_applicable", "details": "..."}],
  "overall_assessment": {
    "primary_compliance_status": "compliant|likely_compliant|potentially_non_compliant|non_compliant",
    "confidence_level": "high|medium|low",
    "summary": "Two to four sentence summary",
    "key_findings": ["..."],
    "strengths": ["..."],
    "concerns": ["..."]
  },
  "compliance_table": [{"element": "...", "status": "Compliant|Potentially Non-compliant|Non-compliant|Not Applicable", "rationale": "..."}],
  "recommendations": [{"priority": "critical|high|medium|low", "recommendation": "Specific corrective action", "regulation": "Cited regulation"}]
}"""

PRIORITY_GUIDE = """## Recommendation Priorities
- critical: Violations that make the product misbranded or unsafe (undeclared major allergens, missing statement of identity, prohibited claims)
- high: Clear regulatory violations that must be fixed before sale (missing net quantity, wrong nutrition panel type, incomplete manufacturer address)
- medium: Likely issues or ambiguities a regulator could question (formatting, placement, unclear claim substantiation)
- low: Best-practice improvements with no clear violation

Only use non_compliant as the overall status when at least one critical or high recommendation exists."""

IMAGE_ANALYSIS_PREAMBLE = """You are a food labeling regulatory compliance expert evaluating a product label against FDA and USDA requirements.

Analyze the attached label image. Read every panel visible in the image, identify the principal display panel, and evaluate each labeling requirement. Cite the specific regulation for every finding."""

TEXT_ANALYSIS_PREAMBLE = """You are a food labeling regulatory compliance expert. A user is testing prospective label content to check compliance BEFORE finalizing their label.

Evaluate the provided content against FDA and USDA requirements. This may be text-only content, so visual elements (font size, placement, prominence) cannot be evaluated; say so in the relevant details instead of marking them non-compliant. Be constructive: this is a draft the user is improving."""

CHAT_PREAMBLE = """You are a regulatory compliance expert helping a user understand their label analysis.

Answer questions using the analysis results and regulatory documents provided. Answer in plain prose; do not return JSON."""

RESPONSE_CONTRACT = f"""## Response Format
Return exactly ONE JSON object and nothing else, matching this structure:

{REPORT_JSON_SCHEMA}"""

COMPARISON_INSTRUCTIONS = """## Comparison With Previous Analysis
A previous analysis of this label exists (see Latest Analysis Results). Compare the new content to those findings:
1. Note which previously reported issues are now RESOLVED
2. Note which issues REMAIN
3. Note any NEW issues introduced
4. Summarize the progress made

Include a "comparison" field in the JSON object:
{
  "comparison": {
    "issues_resolved": ["Issues from the previous analysis that are now fixed"],
    "issues_remaining": ["Issues still present"],
    "new_issues": ["New problems introduced"],
    "improvement_summary": "Brief summary of progress made"
  }
}"""

CHAT_CLOSING_INSTRUCTIONS = (
    "Please provide a clear, helpful answer based on the analysis context above. "
    "If the question is about a specific regulation, cite the relevant CFR section. "
    "If the question is about how to fix an issue, provide specific, actionable guidance."
)

PROSPECTIVE_TEXT_FRAME = """## Prospective Label Content (User is Testing)

The user wants to check if this proposed content is compliant:

```
{text}
```"""

IMAGE_INPUT_FRAME = """## Label Image

The label to analyze is attached as an image."""

ANALYSIS_REQUEST_CLOSING = "Analyze this label content now and respond with the JSON object only."

PREAMBLES: dict[PromptMode, str] = {
    PromptMode.IMAGE_ANALYSIS: f"{IMAGE_ANALYSIS_PREAMBLE}\n\n{PRIORITY_GUIDE}\n\n{RESPONSE_CONTRACT}",
    PromptMode.TEXT_ANALYSIS: f"{TEXT_ANALYSIS_PREAMBLE}\n\n{PRIORITY_GUIDE}\n\n{RESPONSE_CONTRACT}",
    PromptMode.CHAT: CHAT_PREAMBLE,
}

# The cached prefix goes into the system message so providers can reuse it
COMPLIANCE_PROMPT = ChatPromptTemplate.from_messages([
    ("system", "{cached_prefix}"),
    ("human", "{dynamic_suffix}"),
])
