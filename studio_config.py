"""Session configuration.

Built once at startup (``StudioSettings.from_env()``) and passed explicitly to
the session; nothing below reads the environment at call time.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


@dataclass(frozen=True)
class StudioSettings:
    gemini_api_key: str = ""
    veo_api_key: str = ""
    text_model: str = "gemini-3-flash-preview"
    planner_model: str = "gemini-3-pro-preview"
    image_model: str = "gemini-3-pro-image-preview"
    video_model: str = "veo-3.1-fast-generate-preview"
    image_size: str = "2K"
    video_resolution: str = "720p"
    scene_cooldown_s: float = 1.0
    video_poll_interval_s: float = 10.0
    video_max_polls: int = 60
    output_dir: str = "studio_output"
    timeout_s: int = 120

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "StudioSettings":
        load_dotenv(env_file)
        gemini_key = os.getenv("GEMINI_API_KEY", "")
        return cls(
            gemini_api_key=gemini_key,
            veo_api_key=os.getenv("VEO_API_KEY", "") or gemini_key,
            text_model=os.getenv("GEMINI_TEXT_MODEL", cls.text_model),
            planner_model=os.getenv("GEMINI_PLANNER_MODEL", cls.planner_model),
            image_model=os.getenv("GEMINI_IMAGE_MODEL", cls.image_model),
            video_model=os.getenv("VEO_MODEL", cls.video_model),
            image_size=os.getenv("GEMINI_IMAGE_SIZE", cls.image_size),
            video_resolution=os.getenv("VEO_RESOLUTION", cls.video_resolution),
            scene_cooldown_s=_float_env("SCENE_COOLDOWN_S", cls.scene_cooldown_s),
            video_poll_interval_s=_float_env("VIDEO_POLL_INTERVAL_S", cls.video_poll_interval_s),
            video_max_polls=_int_env("VIDEO_MAX_POLLS", cls.video_max_polls),
            output_dir=os.getenv("STUDIO_OUTPUT_DIR", cls.output_dir),
            timeout_s=_int_env("GEMINI_TIMEOUT_S", cls.timeout_s),
        )
