#!/usr/bin/env python3
"""Tests for keyword_processor.py: label normalisation and tier views."""

from __future__ import annotations

import unittest

from fakes import keyword_rows
from keyword_processor import (
    KEYWORD_BATCH_SIZE,
    coerce_keyword_batch,
    coerce_keyword_record,
    copy_text,
    group_by_tier,
    keyword_stats,
    normalize_competition,
    normalize_intent,
    normalize_tier,
    top_by_volume,
)
from studio_types import Competition, Intent, KeywordRecord, Tier


# ---------------------------------------------------------------------------
# Label normalisation
# ---------------------------------------------------------------------------

class TestNormalizeTier(unittest.TestCase):

    def test_exact_labels(self):
        self.assertIs(normalize_tier("Tier 1 (Head)"), Tier.TIER_1)
        self.assertIs(normalize_tier("Tier 2 (Middle)"), Tier.TIER_2)
        self.assertIs(normalize_tier("Tier 3 (Long-tail)"), Tier.TIER_3)

    def test_loose_labels(self):
        self.assertIs(normalize_tier("TIER 1"), Tier.TIER_1)
        self.assertIs(normalize_tier("tier 2 - strong"), Tier.TIER_2)
        self.assertIs(normalize_tier("long-tail"), Tier.TIER_3)

    def test_unrecognised_is_long_tail(self):
        for label in ("", None, "head", "Top tier", 7):
            self.assertIs(normalize_tier(label), Tier.TIER_3)


class TestNormalizeOtherLabels(unittest.TestCase):

    def test_competition(self):
        self.assertIs(normalize_competition("high"), Competition.HIGH)
        self.assertIs(normalize_competition("Low (few sellers)"), Competition.LOW)
        self.assertIs(normalize_competition("???"), Competition.MEDIUM)

    def test_intent(self):
        self.assertIs(normalize_intent("Transactional"), Intent.TRANSACTIONAL)
        self.assertIs(normalize_intent("mostly informational"), Intent.INFORMATIONAL)
        self.assertIs(normalize_intent(None), Intent.COMMERCIAL)


# ---------------------------------------------------------------------------
# Row coercion
# ---------------------------------------------------------------------------

class TestCoerceRecord(unittest.TestCase):

    def test_full_row(self):
        rec = coerce_keyword_record({
            "keyword": " yoga mat ", "searchVolume": "85", "competition": "High",
            "cpc": "$1.20", "intent": "Commercial", "tier": "Tier 1 (Head)",
        })
        self.assertEqual(rec.keyword, "yoga mat")
        self.assertEqual(rec.search_volume, 85)
        self.assertIs(rec.competition, Competition.HIGH)
        self.assertAlmostEqual(rec.cpc, 1.2)
        self.assertIs(rec.tier, Tier.TIER_1)
        self.assertEqual(rec.tier_label, "Tier 1 (Head)")

    def test_defaults_and_clamping(self):
        rec = coerce_keyword_record({"keyword": "mat", "searchVolume": 150, "cpc": -3})
        self.assertEqual(rec.search_volume, 100)
        self.assertEqual(rec.cpc, 0.0)
        self.assertIs(rec.tier, Tier.TIER_3)

        rec = coerce_keyword_record({"keyword": "mat", "searchVolume": "lots", "cpc": "n/a"})
        self.assertEqual(rec.search_volume, 0)
        self.assertEqual(rec.cpc, 0.0)

    def test_rows_without_keyword_dropped(self):
        self.assertIsNone(coerce_keyword_record({"keyword": "  "}))
        self.assertIsNone(coerce_keyword_record("yoga mat"))


class TestCoerceBatch(unittest.TestCase):

    def test_bare_array(self):
        self.assertEqual(len(coerce_keyword_batch(keyword_rows(20))), 20)

    def test_wrapped_object(self):
        records = coerce_keyword_batch({"keywords": keyword_rows(3)})
        self.assertEqual([r.keyword for r in records], [
            "wireless headphones 0", "wireless headphones 1", "wireless headphones 2",
        ])

    def test_truncated_to_limit(self):
        self.assertEqual(len(coerce_keyword_batch(keyword_rows(25))), KEYWORD_BATCH_SIZE)
        self.assertEqual(len(coerce_keyword_batch(keyword_rows(25), limit=5)), 5)

    def test_unusable_payload(self):
        self.assertEqual(coerce_keyword_batch("nope"), [])
        self.assertEqual(coerce_keyword_batch({"other": 1}), [])


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------

class TestViews(unittest.TestCase):

    def setUp(self):
        self.records = coerce_keyword_batch(keyword_rows(20))

    def test_grouping_keeps_every_record(self):
        groups = group_by_tier(self.records)
        self.assertEqual(list(groups), [Tier.TIER_1, Tier.TIER_2, Tier.TIER_3])
        self.assertEqual(sum(len(v) for v in groups.values()), len(self.records))
        for tier, members in groups.items():
            self.assertTrue(all(r.tier is tier for r in members))

    def test_grouping_empty_tiers_present(self):
        groups = group_by_tier([KeywordRecord("mat", tier=Tier.TIER_1)])
        self.assertEqual(len(groups[Tier.TIER_1]), 1)
        self.assertEqual(groups[Tier.TIER_2], [])
        self.assertEqual(groups[Tier.TIER_3], [])

    def test_top_by_volume(self):
        top = top_by_volume(self.records)
        self.assertEqual(len(top), 8)
        volumes = [r.search_volume for r in top]
        self.assertEqual(volumes, sorted(volumes, reverse=True))
        self.assertEqual(top[0].keyword, "wireless headphones 0")

    def test_stats(self):
        records = [
            KeywordRecord("a", competition=Competition.HIGH, cpc=1.0),
            KeywordRecord("b", competition=Competition.LOW, cpc=2.333),
        ]
        self.assertEqual(keyword_stats(records), {"count": 2, "high_competition": 1, "avg_cpc": 1.67})
        self.assertEqual(keyword_stats([]), {"count": 0, "high_competition": 0, "avg_cpc": 0.0})

    def test_copy_text(self):
        records = [
            KeywordRecord("yoga mat", tier=Tier.TIER_1, tier_label="Tier 1 (Head)"),
            KeywordRecord("eco mat", tier=Tier.TIER_3),
        ]
        self.assertEqual(copy_text(records), "yoga mat (Tier 1 (Head))\neco mat (Tier 3 (Long-tail))")


if __name__ == "__main__":
    unittest.main()
