#!/usr/bin/env python3
"""Tests for listing_studio/image_creator.py: scene batches and pacing."""

from __future__ import annotations

import asyncio
import base64
import unittest

from errors import NoImageReturnedError
from fakes import FakeLLM, FakeSleep
from listing_studio.image_creator import (
    APLUS_IMAGE_SCENES,
    MAIN_IMAGE_SCENES,
    STYLE_SUFFIX,
    ImageCreator,
    find_scene,
    is_wide_scene,
    scene_prompt,
    to_data_url,
)
from studio_types import ImageFailed, ImageSuccess, InlineImage

PNG = InlineImage(b"\x89PNG-fake", "image/png")


class TestSceneCatalog(unittest.TestCase):

    def test_catalog_sizes_and_ids(self):
        self.assertEqual([s.id for s in MAIN_IMAGE_SCENES], [1, 2, 3, 4, 5, 6])
        self.assertEqual([s.id for s in APLUS_IMAGE_SCENES], list(range(101, 108)))

    def test_lookup(self):
        self.assertEqual(find_scene(3).id, 3)
        self.assertIsNone(find_scene(99))
        self.assertTrue(is_wide_scene(104))
        self.assertFalse(is_wide_scene(4))

    def test_prompt_uses_override(self):
        scene = find_scene(2)
        self.assertEqual(
            scene_prompt("Bamboo cutting board", scene),
            f"Product: Bamboo cutting board. Scene: {scene.prompt_suffix}",
        )
        self.assertEqual(
            scene_prompt("Bamboo cutting board", scene, {2: "On a rustic table"}),
            "Product: Bamboo cutting board. Scene: On a rustic table",
        )

    def test_blank_override_falls_back(self):
        scene = find_scene(2)
        self.assertIn(scene.prompt_suffix, scene_prompt("x", scene, {2: ""}))

    def test_data_url(self):
        url = to_data_url(b"abc", "image/jpeg")
        self.assertEqual(url, "data:image/jpeg;base64," + base64.b64encode(b"abc").decode())


class TestSynthesizeImage(unittest.IsolatedAsyncioTestCase):

    async def test_square_by_default(self):
        llm = FakeLLM(images=[PNG])
        url = await ImageCreator(llm, sleep=FakeSleep()).synthesize_image(b"ref", "image/jpeg", "A mug")
        self.assertTrue(url.startswith("data:image/png;base64,"))
        call = llm.image_calls()[0]
        self.assertEqual(call["aspect_ratio"], "1:1")
        self.assertEqual(call["mime_type"], "image/jpeg")
        self.assertTrue(call["prompt"].endswith(STYLE_SUFFIX))

    async def test_wide(self):
        llm = FakeLLM(images=[PNG])
        await ImageCreator(llm, image_size="1K", sleep=FakeSleep()).synthesize_image(
            b"ref", "image/png", "A mug", wide=True,
        )
        call = llm.image_calls()[0]
        self.assertEqual(call["aspect_ratio"], "16:9")
        self.assertEqual(call["image_size"], "1K")

    async def test_no_image(self):
        llm = FakeLLM(images=[None])
        with self.assertRaises(NoImageReturnedError):
            await ImageCreator(llm, sleep=FakeSleep()).synthesize_image(b"ref", "image/png", "A mug")


class TestSceneBatch(unittest.IsolatedAsyncioTestCase):

    async def test_one_failure_does_not_stop_batch(self):
        llm = FakeLLM(images=[PNG, RuntimeError("boom"), PNG])
        creator = ImageCreator(llm, sleep=FakeSleep())
        results = await creator.generate_scene_batch(b"ref", "image/png", "Mug", MAIN_IMAGE_SCENES[:3])

        self.assertEqual([r.id for r in results], [1, 2, 3])
        self.assertIsInstance(results[0].result, ImageSuccess)
        self.assertIsInstance(results[1].result, ImageFailed)
        self.assertIn("boom", results[1].result.reason)
        self.assertEqual(results[1].image_url, "")
        self.assertTrue(results[2].image_url.startswith("data:"))

    async def test_six_scenes_one_failure(self):
        llm = FakeLLM(images=[PNG, PNG, NoImageReturnedError("none"), PNG, PNG, PNG])
        results = await ImageCreator(llm, sleep=FakeSleep()).generate_scene_batch(
            b"ref", "image/png", "Mug", MAIN_IMAGE_SCENES,
        )
        self.assertEqual([r.id for r in results], [1, 2, 3, 4, 5, 6])
        self.assertEqual([r.ok for r in results], [True, True, False, True, True, True])

    async def test_cooldown_between_successes_only(self):
        sleep = FakeSleep()
        llm = FakeLLM(images=[PNG, PNG, PNG])
        await ImageCreator(llm, cooldown_s=1.5, sleep=sleep).generate_scene_batch(
            b"ref", "image/png", "Mug", MAIN_IMAGE_SCENES[:3],
        )
        self.assertEqual(sleep.calls, [1.5, 1.5])

    async def test_no_cooldown_after_failure(self):
        sleep = FakeSleep()
        llm = FakeLLM(images=[PNG, RuntimeError("x"), PNG])
        await ImageCreator(llm, cooldown_s=1.0, sleep=sleep).generate_scene_batch(
            b"ref", "image/png", "Mug", MAIN_IMAGE_SCENES[:3],
        )
        self.assertEqual(sleep.calls, [1.0])

    async def test_real_cooldown_elapses(self):
        loop = asyncio.get_running_loop()
        llm = FakeLLM(images=[PNG, PNG, PNG])
        started = loop.time()
        await ImageCreator(llm, cooldown_s=0.05).generate_scene_batch(
            b"ref", "image/png", "Mug", MAIN_IMAGE_SCENES[:3],
        )
        self.assertGreaterEqual(loop.time() - started, 0.1 - 0.01)

    async def test_calls_are_sequential(self):
        llm = FakeLLM()
        await ImageCreator(llm, sleep=FakeSleep()).generate_scene_batch(
            b"ref", "image/png", "Mug", APLUS_IMAGE_SCENES, wide=True,
        )
        self.assertEqual(llm.max_in_flight, 1)
        self.assertEqual(len(llm.image_calls()), 7)
        self.assertTrue(all(c["aspect_ratio"] == "16:9" for c in llm.image_calls()))

    async def test_overrides_reach_prompt(self):
        llm = FakeLLM()
        await ImageCreator(llm, sleep=FakeSleep()).generate_scene_batch(
            b"ref", "image/png", "Mug", MAIN_IMAGE_SCENES[:2], overrides={2: "Mug on a desk"},
        )
        prompts = [c["prompt"] for c in llm.image_calls()]
        self.assertIn(MAIN_IMAGE_SCENES[0].prompt_suffix, prompts[0])
        self.assertIn("Scene: Mug on a desk", prompts[1])


if __name__ == "__main__":
    unittest.main()
