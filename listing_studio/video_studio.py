"""
VIDEO STUDIO
============
Renders a short product video with Veo. The job is asynchronous on the
server side, so it is submitted once and polled with job_poller until done,
failed, or out of attempts (10 s x 60 = 10 minutes by default).
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Optional, Sequence

from credentials import with_credential
from errors import JobFailedError
from gemini_llm import GeminiLLM
from job_poller import run_to_completion
from studio_types import ReferenceImage

DEFAULT_CREATIVE_SCRIPT = (
    "Cinematic product showcase, slow motion zoom-in, professional studio lighting, "
    "detailed texture focus."
)
VIDEO_STYLE = (
    "Professional slow motion, sharp focus, vibrant colors, 4k texture detail."
)
MAX_REFERENCE_IMAGES = 3


def compose_video_prompt(description: str, creative_script: str) -> str:
    """Product facts + creative direction, as sent from the video studio form."""
    return "\n".join([
        f"Product Info: {description}",
        f"Video Creative Script: {creative_script}",
        "Visual Goal: Ensure the video accurately reflects the product features and aesthetic "
        "based on the description and any reference images provided.",
    ])


class VideoStudio:

    def __init__(
        self,
        llm: GeminiLLM,
        *,
        resolution: str = "720p",
        aspect_ratio: str = "16:9",
        poll_interval_s: float = 10.0,
        max_polls: int = 60,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.llm = llm
        self.resolution = resolution
        self.aspect_ratio = aspect_ratio
        self.poll_interval_s = poll_interval_s
        self.max_polls = max_polls
        self._sleep = sleep

    async def render_video(
        self,
        prompt: str,
        reference_images: Optional[Sequence[ReferenceImage]] = None,
    ) -> str:
        """Submit, poll to completion, and return the media URI with the key appended.

        Only the first reference image is sent; Veo accepts a single start frame.
        """
        refs = list(reference_images or [])[:MAX_REFERENCE_IMAGES]
        print(f"      🎬 Submitting video job ({len(refs)} reference image(s))...")

        async def submit():
            return await self.llm.submit_video(
                f"Cinematic commercial product video: {prompt}. {VIDEO_STYLE}",
                image=refs[0] if refs else None,
                resolution=self.resolution,
                aspect_ratio=self.aspect_ratio,
            )

        operation = await run_to_completion(
            submit,
            self.llm.poll_video,
            self.llm.video_done,
            self.llm.video_error,
            self.poll_interval_s,
            self.max_polls,
            sleep=self._sleep,
            label="Video generation",
        )

        uri = self.llm.video_uri(operation)
        if not uri:
            raise JobFailedError("Video generation finished but returned no download link.")

        print("         ✅ Video ready")
        return with_credential(uri, self.llm.config.api_key)
