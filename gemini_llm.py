"""Google Gemini / Veo client used by every generation stage.

Async wrapper over ``google-genai`` (``client.aio``): text with optional
Google Search grounding, image synthesis from a reference photo, and Veo
video jobs. Responses come back raw; callers run text through
``response_parser.extract_structured_data``.

Requires: pip install google-genai
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, List, Optional, TypeVar

from google import genai
from google.genai import types

from errors import PermissionDeniedError
from studio_types import GroundingSource, InlineImage, ReferenceImage

T = TypeVar("T")

PERMISSION_MESSAGE = (
    "Permission denied: make sure your API key belongs to a project with billing enabled."
)


@dataclass
class GeminiConfig:
    api_key: str
    model: str = "gemini-3-flash-preview"          # keywords + listing copy
    planner_model: str = "gemini-3-pro-preview"    # launch plan
    image_model: str = "gemini-3-pro-image-preview"
    video_model: str = "veo-3.1-fast-generate-preview"
    timeout_s: int = 120


@dataclass
class TextResponse:
    text: str
    sources: List[GroundingSource] = field(default_factory=list)


def is_permission_error(exc: BaseException) -> bool:
    """401/403 from the API, or a message that says so."""
    code = getattr(exc, "code", None)
    if code in (401, 403):
        return True
    msg = str(exc).lower()
    return "403" in msg or "permission" in msg


class GeminiLLM:
    """One client per resolved API key; build a new one when the key changes."""

    def __init__(self, config: GeminiConfig, client: Any = None):
        self.config = config
        self.client = client or genai.Client(
            api_key=config.api_key,
            http_options=types.HttpOptions(timeout=config.timeout_s * 1000),
        )

    async def _guard(self, call: Awaitable[T]) -> T:
        try:
            return await call
        except Exception as e:
            if is_permission_error(e):
                raise PermissionDeniedError(PERMISSION_MESSAGE) from e
            raise

    @staticmethod
    def _extract_text(resp) -> str:
        """Join text parts, skipping thought parts."""
        texts = []
        for candidate in getattr(resp, "candidates", None) or []:
            content = getattr(candidate, "content", None)
            for part in getattr(content, "parts", None) or []:
                if getattr(part, "thought", False):
                    continue
                if getattr(part, "text", None):
                    texts.append(part.text)
        if texts:
            return "\n".join(texts).strip()
        return (getattr(resp, "text", None) or "").strip()

    @staticmethod
    def _extract_sources(resp) -> List[GroundingSource]:
        candidates = getattr(resp, "candidates", None) or []
        if not candidates:
            return []
        metadata = getattr(candidates[0], "grounding_metadata", None)
        sources = []
        for chunk in getattr(metadata, "grounding_chunks", None) or []:
            web = getattr(chunk, "web", None)
            if web is None:
                continue
            sources.append(GroundingSource(title=web.title or "", url=web.uri or ""))
        return sources

    @staticmethod
    def _extract_image(resp) -> Optional[InlineImage]:
        candidates = getattr(resp, "candidates", None) or []
        if not candidates or candidates[0].content is None:
            return None
        for part in candidates[0].content.parts or []:
            inline = getattr(part, "inline_data", None)
            if inline is not None and inline.data:
                return InlineImage(data=inline.data, mime_type=inline.mime_type or "image/png")
        return None

    # ---- text ----

    async def generate(
        self,
        prompt: str,
        *,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        json_mode: bool = False,
        web_search: bool = False,
    ) -> TextResponse:
        config = types.GenerateContentConfig(
            temperature=temperature,
            response_mime_type="application/json" if json_mode else None,
            tools=[types.Tool(google_search=types.GoogleSearch())] if web_search else None,
        )
        resp = await self._guard(self.client.aio.models.generate_content(
            model=model or self.config.model,
            contents=prompt,
            config=config,
        ))
        return TextResponse(
            text=self._extract_text(resp),
            sources=self._extract_sources(resp) if web_search else [],
        )

    # ---- images ----

    async def generate_image(
        self,
        prompt: str,
        image_bytes: bytes,
        *,
        mime_type: str = "image/png",
        aspect_ratio: str = "1:1",
        image_size: str = "2K",
    ) -> Optional[InlineImage]:
        """Reference image + prompt -> first inline image, or None if the model sent none."""
        resp = await self._guard(self.client.aio.models.generate_content(
            model=self.config.image_model,
            contents=[
                types.Content(
                    role="user",
                    parts=[
                        types.Part.from_bytes(data=image_bytes, mime_type=mime_type),
                        types.Part.from_text(text=prompt),
                    ],
                )
            ],
            config=types.GenerateContentConfig(
                response_modalities=["IMAGE", "TEXT"],
                image_config=types.ImageConfig(aspect_ratio=aspect_ratio, image_size=image_size),
            ),
        ))
        return self._extract_image(resp)

    # ---- video ----

    async def submit_video(
        self,
        prompt: str,
        *,
        image: Optional[ReferenceImage] = None,
        resolution: str = "720p",
        aspect_ratio: str = "16:9",
        count: int = 1,
    ):
        return await self._guard(self.client.aio.models.generate_videos(
            model=self.config.video_model,
            prompt=prompt,
            image=types.Image(image_bytes=image.data, mime_type=image.mime_type) if image else None,
            config=types.GenerateVideosConfig(
                number_of_videos=count,
                resolution=resolution,
                aspect_ratio=aspect_ratio,
            ),
        ))

    async def poll_video(self, operation):
        return await self._guard(self.client.aio.operations.get(operation))

    @staticmethod
    def video_done(operation) -> bool:
        return bool(getattr(operation, "done", False))

    @staticmethod
    def video_error(operation) -> Optional[str]:
        error = getattr(operation, "error", None)
        if not error:
            return None
        if isinstance(error, dict):
            return str(error.get("message") or "unknown server error")
        return str(getattr(error, "message", None) or error)

    @staticmethod
    def video_uri(operation) -> Optional[str]:
        result = getattr(operation, "response", None) or getattr(operation, "result", None)
        videos = getattr(result, "generated_videos", None) or []
        if not videos or videos[0].video is None:
            return None
        return videos[0].video.uri
