"""
IMAGE CREATOR
=============
Generates listing images from one uploaded product photo using Gemini:
  1. Main images   — 6 square scenes (hero shot, lifestyle, detail, ...)
  2. A+ images     — 7 wide 16:9 scenes for the A+ content module

Scenes are generated one at a time with a cooldown between successful calls;
the image model's per-minute quota is the bottleneck, not latency. A failed
scene is recorded as ImageFailed and the batch moves on.
"""

from __future__ import annotations

import asyncio
import base64
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from errors import NoImageReturnedError
from gemini_llm import GeminiLLM
from studio_types import (
    ImageFailed,
    ImageSuccess,
    SceneImageResult,
    SceneSpec,
)
from telemetry import emit_telemetry


# ---------------------------------------------------------------------------
# Scene catalog
# ---------------------------------------------------------------------------

MAIN_IMAGE_SCENES: List[SceneSpec] = [
    SceneSpec(1, "White-background hero shot",
              "Studio hero shot of the product on pure white background, center composition, high contrast."),
    SceneSpec(2, "Scene showcase 1",
              "Product in a clean, high-end living room environment, warm ambient light, sharp focus."),
    SceneSpec(3, "Scene showcase 2",
              "Product in use by a person, lifestyle photography, natural morning light."),
    SceneSpec(4, "Multi-angle view",
              "Two products showing different angles, clean minimal background."),
    SceneSpec(5, "Gift / packaging",
              "Product with premium gift wrapping next to it, festive atmosphere."),
    SceneSpec(6, "Detail close-up",
              "Extreme macro shot of the product material and texture, blurred background."),
]

APLUS_IMAGE_SCENES: List[SceneSpec] = [
    SceneSpec(101, "A+ header banner",
              "A panoramic cinematic wide shot of the product brand story, professional lighting, room for text on left."),
    SceneSpec(102, "Feature breakdown 1",
              "Product technical structure view, minimalist gray background, sharp details."),
    SceneSpec(103, "Feature breakdown 2",
              "Product durability/quality demonstration, close up macro."),
    SceneSpec(104, "Usage scene A",
              "Wide shot showing the product in a professional kitchen or workspace."),
    SceneSpec(105, "Usage scene B",
              "Outdoor lifestyle wide shot, sunrise lighting, energetic feel."),
    SceneSpec(106, "Comparison",
              "Clean divided shot, showing before and after or product vs environment."),
    SceneSpec(107, "Brand backdrop",
              "Artistic abstract shot of the product material, very high resolution, 2928x1200 style."),
]

STYLE_SUFFIX = "Cinematic commercial style, high-end studio lighting, 2K resolution."


def find_scene(scene_id: int) -> Optional[SceneSpec]:
    for scene in MAIN_IMAGE_SCENES + APLUS_IMAGE_SCENES:
        if scene.id == scene_id:
            return scene
    return None


def is_wide_scene(scene_id: int) -> bool:
    return any(s.id == scene_id for s in APLUS_IMAGE_SCENES)


def scene_prompt(description: str, scene: SceneSpec, overrides: Optional[Dict[int, str]] = None) -> str:
    """``Product: <description>. Scene: <override or default suffix>``"""
    text = (overrides or {}).get(scene.id) or scene.prompt_suffix
    return f"Product: {description}. Scene: {text}"


def to_data_url(data: bytes, mime_type: str = "image/png") -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


class ImageCreator:
    """Single-image synthesis and paced scene batches on top of GeminiLLM."""

    def __init__(
        self,
        llm: GeminiLLM,
        *,
        cooldown_s: float = 1.0,
        image_size: str = "2K",
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.llm = llm
        self.cooldown_s = cooldown_s
        self.image_size = image_size
        self._sleep = sleep

    async def synthesize_image(
        self,
        reference_image: bytes,
        mime_type: str,
        prompt: str,
        wide: bool = False,
    ) -> str:
        """One reference photo + prompt -> data URL. Raises NoImageReturnedError."""
        image = await self.llm.generate_image(
            f"{prompt}. {STYLE_SUFFIX}",
            reference_image,
            mime_type=mime_type,
            aspect_ratio="16:9" if wide else "1:1",
            image_size=self.image_size,
        )
        if image is None:
            raise NoImageReturnedError("The image model returned no image for this scene.")
        return to_data_url(image.data, image.mime_type)

    async def generate_scene_batch(
        self,
        reference_image: bytes,
        mime_type: str,
        description: str,
        scenes: Sequence[SceneSpec],
        wide: bool = False,
        overrides: Optional[Dict[int, str]] = None,
    ) -> List[SceneImageResult]:
        """Generate every scene in order, one call at a time.

        Never raises for a single scene: its failure becomes ``ImageFailed``.
        The cooldown follows each success except the last scene.
        """
        kind = "A+" if wide else "main"
        print(f"      🖼️  Generating {len(scenes)} {kind} scene image(s)...")
        emit_telemetry("ImageCreator", "batch_start", {"kind": kind, "scenes": [s.id for s in scenes]})

        results: List[SceneImageResult] = []
        for index, scene in enumerate(scenes):
            prompt = scene_prompt(description, scene, overrides)
            try:
                url = await self.synthesize_image(reference_image, mime_type, prompt, wide)
            except Exception as e:
                print(f"         ❌ Failed scene {scene.id} ({scene.label}): {str(e)[:120]}")
                emit_telemetry("ImageCreator", "scene_failed", {"id": scene.id, "reason": str(e)[:200]})
                results.append(SceneImageResult(scene.id, ImageFailed(reason=str(e) or type(e).__name__)))
                continue

            print(f"         ✅ Scene {scene.id} ({scene.label})")
            emit_telemetry("ImageCreator", "scene_done", {"id": scene.id})
            results.append(SceneImageResult(scene.id, ImageSuccess(url=url)))
            if index < len(scenes) - 1:
                await self._sleep(self.cooldown_s)

        successes = sum(1 for r in results if r.ok)
        print(f"      📸 Generated {successes}/{len(scenes)} {kind} images")
        emit_telemetry("ImageCreator", "batch_done", {"kind": kind, "ok": successes, "total": len(scenes)})
        return results
