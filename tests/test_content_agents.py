#!/usr/bin/env python3
"""Tests for listing_studio/content_agents.py: keyword, copy and plan agents."""

from __future__ import annotations

import json
import unittest

from errors import InvalidInputError, ParseError
from fakes import FakeLLM, keyword_rows, launch_plan_json
from gemini_llm import GeminiConfig, TextResponse
from keyword_processor import group_by_tier
from listing_studio.content_agents import (
    KeywordResearchAgent,
    LaunchPlanAgent,
    ListingCopyAgent,
)
from studio_types import GroundingSource, Language

SOURCES = [
    GroundingSource("Amazon Best Sellers", "https://www.amazon.com/bestsellers"),
    GroundingSource("Jungle Scout blog", "https://www.junglescout.com/blog"),
]


# ---------------------------------------------------------------------------
# Keyword research
# ---------------------------------------------------------------------------

class TestKeywordResearchAgent(unittest.IsolatedAsyncioTestCase):

    async def test_twenty_keywords_with_sources(self):
        text = "Here you go:\n```json\n" + json.dumps(keyword_rows(20)) + "\n```"
        llm = FakeLLM(texts=[TextResponse(text, SOURCES)])
        result = await KeywordResearchAgent(llm).run("wireless headphones", Language.GERMAN)

        self.assertEqual(len(result.keywords), 20)
        self.assertEqual(result.sources, SOURCES)
        groups = group_by_tier(result.keywords)
        self.assertEqual(sum(len(v) for v in groups.values()), 20)

        call = llm.calls[0][1]
        self.assertTrue(call["web_search"])
        self.assertEqual(call["temperature"], 0.3)
        self.assertIn('"wireless headphones"', call["prompt"])
        self.assertIn("German", call["prompt"])

    async def test_language_by_name(self):
        llm = FakeLLM(texts=[json.dumps(keyword_rows(20))])
        await KeywordResearchAgent(llm).run("mat", "japanese")
        self.assertIn("Japanese", llm.calls[0][1]["prompt"])

    async def test_unparseable_response(self):
        llm = FakeLLM(texts=["I could not find anything."])
        with self.assertRaises(ParseError) as ctx:
            await KeywordResearchAgent(llm).run("mat")
        self.assertEqual(ctx.exception.raw_text, "I could not find anything.")

    async def test_no_usable_rows(self):
        llm = FakeLLM(texts=['[{"keyword": ""}, {"cpc": 1}]'])
        with self.assertRaises(ParseError):
            await KeywordResearchAgent(llm).run("mat")

    async def test_empty_seed(self):
        llm = FakeLLM()
        with self.assertRaises(InvalidInputError):
            await KeywordResearchAgent(llm).run("   ")
        self.assertEqual(llm.calls, [])

    async def test_unsupported_language(self):
        llm = FakeLLM()
        with self.assertRaises(InvalidInputError) as ctx:
            await KeywordResearchAgent(llm).run("mat", "Klingon")
        self.assertIn("Klingon", ctx.exception.message)
        self.assertEqual(llm.calls, [])


# ---------------------------------------------------------------------------
# Listing copy
# ---------------------------------------------------------------------------

class TestListingCopyAgent(unittest.IsolatedAsyncioTestCase):

    async def test_title_and_five_bullets(self):
        body = {"title": "Eco Yoga Mat 6mm", "bullets": [f"POINT {i}: text" for i in range(5)]}
        llm = FakeLLM(texts=[json.dumps(body)])
        listing = await ListingCopyAgent(llm).run("A cork yoga mat", ["yoga mat", "cork mat"])

        self.assertEqual(listing.title, "Eco Yoga Mat 6mm")
        self.assertEqual(len(listing.bullets), 5)
        call = llm.calls[0][1]
        self.assertTrue(call["json_mode"])
        self.assertIn("KEYWORDS: [yoga mat,cork mat]", call["prompt"])
        self.assertIn("A cork yoga mat", call["prompt"])

    async def test_short_bullets_padded(self):
        llm = FakeLLM(texts=['{"title": "Mat", "bullets": ["ONE: a", "TWO: b"]}'])
        listing = await ListingCopyAgent(llm).run("desc", [])
        self.assertEqual(listing.bullets, ["ONE: a", "TWO: b", "", "", ""])
        self.assertEqual(listing.missing_bullets, 3)

    async def test_extra_bullets_truncated(self):
        llm = FakeLLM(texts=[json.dumps({"title": "Mat", "bullets": list("abcdefg")})])
        listing = await ListingCopyAgent(llm).run("desc", ["k"])
        self.assertEqual(listing.bullets, list("abcde"))

    async def test_missing_title(self):
        llm = FakeLLM(texts=['{"bullets": ["a"]}'])
        with self.assertRaises(ParseError):
            await ListingCopyAgent(llm).run("desc", ["k"])

    async def test_array_response_rejected(self):
        llm = FakeLLM(texts=['["a", "b"]'])
        with self.assertRaises(ParseError):
            await ListingCopyAgent(llm).run("desc", ["k"])


# ---------------------------------------------------------------------------
# Launch plan
# ---------------------------------------------------------------------------

class TestLaunchPlanAgent(unittest.IsolatedAsyncioTestCase):

    def _llm(self, text):
        return FakeLLM(
            texts=[text],
            config=GeminiConfig(api_key="key-123456", planner_model="planner-x"),
        )

    async def test_parses_plan_and_tree(self):
        llm = self._llm(launch_plan_json(4))
        plan = await LaunchPlanAgent(llm).run("Eco Mat", "cork mat", ["yoga mat"], Language.FRENCH)

        self.assertEqual(len(plan.plan), 4)
        first = plan.plan[0]
        self.assertEqual(first.day_range, "1-15")
        self.assertEqual(first.ppc_detail.manual_exact.targets, ["yoga mat", "eco yoga mat"])
        self.assertEqual(first.ppc_detail.brand_ads.roadmap60, "Scale")

        tree = plan.ad_strategy
        self.assertEqual(tree.name, "Campaign Portfolio")
        self.assertEqual([n.name for n in tree.leaves()], ["Auto Research", "Exact", "Phrase"])
        self.assertEqual([d for d, _ in tree.walk()], [0, 1, 1, 2, 2])

        call = llm.calls[0][1]
        self.assertEqual(call["model"], "planner-x")
        self.assertEqual(call["temperature"], 0.7)
        self.assertIn("French", call["prompt"])

    async def test_other_phase_count_accepted(self):
        plan = await LaunchPlanAgent(self._llm(launch_plan_json(3))).run("t", "d", [])
        self.assertEqual(len(plan.plan), 3)

    async def test_missing_tree_defaults(self):
        text = json.dumps({"plan": [{"dayRange": "1-7"}]})
        plan = await LaunchPlanAgent(self._llm(text)).run("t", "d", [])
        self.assertEqual(plan.ad_strategy.name, "Campaign Portfolio")
        self.assertTrue(plan.ad_strategy.is_leaf)

    async def test_empty_text(self):
        with self.assertRaises(ParseError):
            await LaunchPlanAgent(self._llm("")).run("t", "d", [])

    async def test_no_phases(self):
        with self.assertRaises(ParseError):
            await LaunchPlanAgent(self._llm('{"plan": [], "adStrategy": {}}')).run("t", "d", [])


if __name__ == "__main__":
    unittest.main()
