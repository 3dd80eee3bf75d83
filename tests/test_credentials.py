#!/usr/bin/env python3
"""Tests for credentials.py and studio_config.py."""

from __future__ import annotations

import os
import tempfile
import unittest
from unittest.mock import patch

from credentials import mask, require_credential, resolve, with_credential
from errors import MissingCredentialError
from studio_config import StudioSettings


class TestResolve(unittest.TestCase):

    def test_blank_or_short_override_uses_default(self):
        for override in (None, "", "   ", "abc", "  abcde  "):
            self.assertEqual(resolve(override, "default-key"), "default-key")

    def test_plausible_override_wins_trimmed(self):
        self.assertEqual(resolve("  real-key-123  ", "default-key"), "real-key-123")

    def test_six_chars_is_enough(self):
        self.assertEqual(resolve("abcdef", "default-key"), "abcdef")


class TestRequireCredential(unittest.TestCase):

    def test_missing(self):
        for key in (None, "", "  "):
            with self.assertRaises(MissingCredentialError) as ctx:
                require_credential(key, "video rendering")
            self.assertIn("video rendering", ctx.exception.message)

    def test_present(self):
        self.assertEqual(require_credential("k-123456", "x"), "k-123456")


class TestWithCredential(unittest.TestCase):

    def test_no_query(self):
        self.assertEqual(with_credential("https://cdn/v.mp4", "abc"), "https://cdn/v.mp4?key=abc")

    def test_existing_query(self):
        self.assertEqual(
            with_credential("https://cdn/v?alt=media", "abc"),
            "https://cdn/v?alt=media&key=abc",
        )

    def test_key_is_encoded(self):
        self.assertTrue(with_credential("https://cdn/v", "a b&c").endswith("?key=a+b%26c"))


class TestMask(unittest.TestCase):

    def test_mask(self):
        self.assertEqual(mask(None), "(none)")
        self.assertEqual(mask("short"), "****")
        self.assertEqual(mask("AIzaSyLONGKEY1234"), "...1234")


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

class TestStudioSettings(unittest.TestCase):

    def _env_file(self, text: str) -> str:
        fd, path = tempfile.mkstemp(suffix=".env")
        with os.fdopen(fd, "w") as f:
            f.write(text)
        self.addCleanup(os.remove, path)
        return path

    def test_veo_key_falls_back_to_gemini_key(self):
        path = self._env_file("GEMINI_API_KEY=gem-key-0001\n")
        with patch.dict(os.environ, {}, clear=True):
            settings = StudioSettings.from_env(path)
        self.assertEqual(settings.gemini_api_key, "gem-key-0001")
        self.assertEqual(settings.veo_api_key, "gem-key-0001")
        self.assertEqual(settings.video_max_polls, 60)
        self.assertEqual(settings.scene_cooldown_s, 1.0)

    def test_overrides_from_environment(self):
        path = self._env_file("")
        env = {
            "GEMINI_API_KEY": "gem-key-0001",
            "VEO_API_KEY": "veo-key-0002",
            "SCENE_COOLDOWN_S": "0.25",
            "VIDEO_MAX_POLLS": "3",
            "GEMINI_IMAGE_SIZE": "1K",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = StudioSettings.from_env(path)
        self.assertEqual(settings.veo_api_key, "veo-key-0002")
        self.assertEqual(settings.scene_cooldown_s, 0.25)
        self.assertEqual(settings.video_max_polls, 3)
        self.assertEqual(settings.image_size, "1K")

    def test_frozen(self):
        settings = StudioSettings()
        with self.assertRaises(Exception):
            settings.gemini_api_key = "x"


if __name__ == "__main__":
    unittest.main()
