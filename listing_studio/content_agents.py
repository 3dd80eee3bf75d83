"""
CONTENT AGENTS
==============
Text-generation agents, one Gemini call each, no retries:
  - KeywordResearchAgent:  20 keywords with volume/competition/CPC/intent/tier,
                           grounded with Google Search
  - ListingCopyAgent:      SEO title + exactly 5 bullet points
  - LaunchPlanAgent:       4-phase 60-day launch roadmap + ad portfolio tree

Every response goes through extract_structured_data; a parse failure is
raised to the caller with the raw text attached.
"""

from __future__ import annotations

from typing import Any, List, Sequence

from errors import InvalidInputError, ParseError
from gemini_llm import GeminiLLM
from keyword_processor import KEYWORD_BATCH_SIZE, coerce_keyword_batch
from response_parser import extract_structured_data
from studio_types import (
    AdStrategyNode,
    KeywordResearchResult,
    Language,
    LaunchDayPlan,
    LaunchPlan,
    ListingContent,
)
from telemetry import emit_telemetry


# ---------------------------------------------------------------------------
#  Keyword Research Agent
# ---------------------------------------------------------------------------

KEYWORD_RESEARCH_PROMPT = """You are an Amazon SEO expert. Analyse the seed keyword "{seed}".
Use Google Search to get current marketplace data.

Return a JSON array with exactly {count} keywords. Each item has the fields:
  keyword       (string)
  searchVolume  (integer 0-100, relative estimate)
  competition   ("Low", "Medium" or "High")
  cpc           (number, estimated cost per click in USD)
  intent        ("Commercial", "Informational" or "Transactional")
  tier          ("Tier 1 (Head)", "Tier 2 (Middle)" or "Tier 3 (Long-tail)")

Marketplace language: {language}.
Write the keywords themselves in {language}.

Respond ONLY with the JSON array."""


# ---------------------------------------------------------------------------
#  Listing Copy Agent
# ---------------------------------------------------------------------------

LISTING_PROMPT = """You are an Amazon copywriting expert. Language: {language}.

Using the product description and the keywords below, write an SEO product
title and exactly 5 bullet points.

KEYWORDS: [{keywords}]

PRODUCT DESCRIPTION:
{description}

RULES:
1. Weave the keywords in naturally; do not keyword-stuff.
2. Only mention features present in the description.
3. Each bullet starts with a short CAPS phrase followed by a colon.

Return JSON: {{ "title": "...", "bullets": ["...", "...", "...", "...", "..."] }}"""


# ---------------------------------------------------------------------------
#  Launch Plan Agent
# ---------------------------------------------------------------------------

LAUNCH_PLAN_PROMPT = """You are an Amazon omni-channel advertising strategist. Build a 60-day
launch roadmap for the following new product in the {language} marketplace.

PRODUCT TITLE: {title}
CORE DESCRIPTION: {description}
KEYWORD POOL: {keywords}

Return JSON in exactly this structure. The "plan" array must contain 4 phases;
"adStrategy" is a tree:
{{
  "plan": [
    {{
      "dayRange": "1-7",
      "focus": "...",
      "actions": ["..."],
      "budget": "$...",
      "metrics": ["..."],
      "ppcDetail": {{
        "autoAds": {{ "budget": "$...", "cpc": "$...", "strategy": "..." }},
        "manualExact": {{ "targets": ["...", "..."], "cpc": "$...", "strategy": "..." }},
        "manualPhrase": {{ "targets": ["..."], "cpc": "$...", "strategy": "..." }},
        "brandAds": {{ "targets": ["..."], "creative": "...", "roadmap60": "..." }}
      }}
    }}
  ],
  "adStrategy": {{
    "name": "Campaign Portfolio",
    "budget": "$...",
    "children": [
      {{ "name": "Auto Research", "budget": "$...", "strategy": "..." }},
      {{ "name": "Manual Ranking", "children": [] }}
    ]
  }}
}}"""

LAUNCH_PHASES = 4


def _language(value) -> Language:
    return Language.parse(value)


class KeywordResearchAgent:
    """Seed keyword -> 20 typed KeywordRecords plus the search citations used."""

    def __init__(self, llm: GeminiLLM):
        self.llm = llm

    async def run(self, seed: str, language: Language = Language.ENGLISH) -> KeywordResearchResult:
        seed = (seed or "").strip()
        if not seed:
            raise InvalidInputError("Enter a seed keyword to research.")
        lang = _language(language)

        print(f"      🔍 Researching keywords for '{seed}' ({lang.value})...")
        emit_telemetry("KeywordResearchAgent", "start", {"seed": seed, "language": lang.value})

        prompt = KEYWORD_RESEARCH_PROMPT.format(
            seed=seed, count=KEYWORD_BATCH_SIZE, language=lang.value,
        )
        resp = await self.llm.generate(prompt, temperature=0.3, web_search=True)
        payload = extract_structured_data(resp.text)

        keywords = coerce_keyword_batch(payload, limit=KEYWORD_BATCH_SIZE)
        if not keywords:
            raise ParseError("AI returned no usable keywords", raw_text=resp.text)
        if len(keywords) < KEYWORD_BATCH_SIZE:
            print(f"         ⚠️  Only {len(keywords)}/{KEYWORD_BATCH_SIZE} keywords returned")

        emit_telemetry("KeywordResearchAgent", "done", {
            "count": len(keywords), "sources": len(resp.sources),
        })
        return KeywordResearchResult(keywords=keywords, sources=resp.sources)


class ListingCopyAgent:
    """Description + keywords -> title and exactly 5 bullets."""

    def __init__(self, llm: GeminiLLM):
        self.llm = llm

    async def run(
        self,
        description: str,
        keywords: Sequence[str],
        language: Language = Language.ENGLISH,
    ) -> ListingContent:
        lang = _language(language)
        print(f"      ✍️  Writing listing copy ({len(keywords)} keywords)...")
        emit_telemetry("ListingCopyAgent", "start", {"keywords": len(keywords)})

        prompt = LISTING_PROMPT.format(
            language=lang.value,
            keywords=",".join(keywords),
            description=description,
        )
        resp = await self.llm.generate(prompt, json_mode=True)
        obj = extract_structured_data(resp.text)
        if not isinstance(obj, dict) or "title" not in obj:
            raise ParseError("AI listing response is missing a title", raw_text=resp.text)

        bullets = obj.get("bullets") or []
        if not isinstance(bullets, list):
            bullets = [bullets]
        listing = ListingContent(title=str(obj.get("title") or "").strip(), bullets=bullets)
        if listing.missing_bullets:
            print(f"         ⚠️  {listing.missing_bullets} bullet(s) empty, left as placeholders")

        emit_telemetry("ListingCopyAgent", "done", {"title": listing.title})
        return listing


class LaunchPlanAgent:
    """Listing + keywords -> 4-phase launch plan and ad strategy tree."""

    def __init__(self, llm: GeminiLLM):
        self.llm = llm

    async def run(
        self,
        title: str,
        description: str,
        keywords: Sequence[str],
        language: Language = Language.ENGLISH,
    ) -> LaunchPlan:
        lang = _language(language)
        print(f"      🚀 Planning 60-day launch for '{title[:60]}'...")
        emit_telemetry("LaunchPlanAgent", "start", {"title": title})

        prompt = LAUNCH_PLAN_PROMPT.format(
            language=lang.value,
            title=title,
            description=description,
            keywords=", ".join(keywords),
        )
        resp = await self.llm.generate(
            prompt,
            model=self.llm.config.planner_model,
            temperature=0.7,
            json_mode=True,
        )
        if not resp.text:
            raise ParseError("AI returned no launch plan data", raw_text="")

        obj = extract_structured_data(resp.text)
        plan = _parse_launch_plan(obj, resp.text)
        if len(plan.plan) != LAUNCH_PHASES:
            print(f"         ⚠️  Expected {LAUNCH_PHASES} phases, got {len(plan.plan)}")

        emit_telemetry("LaunchPlanAgent", "done", {"phases": len(plan.plan)})
        return plan


def _parse_launch_plan(obj: Any, raw_text: str) -> LaunchPlan:
    if not isinstance(obj, dict):
        raise ParseError("AI launch plan is not a JSON object", raw_text=raw_text)

    phases: List[LaunchDayPlan] = [
        LaunchDayPlan.from_dict(p) for p in (obj.get("plan") or []) if isinstance(p, dict)
    ]
    if not phases:
        raise ParseError("AI launch plan has no phases", raw_text=raw_text)

    return LaunchPlan(
        plan=phases,
        ad_strategy=AdStrategyNode.from_dict(obj.get("adStrategy") or {"name": "Campaign Portfolio"}),
    )
