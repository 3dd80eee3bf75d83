"""
MASTER PIPELINE
===============
One studio session, driving the fixed pipeline:

  Stage 1 → Keyword research        (KeywordResearchAgent)   → context.keywords
  Stage 2 → Listing copy            (ListingCopyAgent)       → context title/description/image
  Stage 3 → Main scene images       (ImageCreator, 6 square scenes)
  Stage 4 → A+ scene images         (ImageCreator, 7 wide scenes)
  Stage 5 → 60-day launch plan      (LaunchPlanAgent)        ← title/description/keywords
  Stage 6 → Marketing video         (VideoStudio)            ← description/reference image

Stages 2-4 run in that order inside generate_everything(); stages 1, 5, 6 and
single-scene regeneration are triggered independently. Every call resolves
its API key when it starts and keeps that client until it returns.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Sequence

from credentials import EnsureCredentialSelected, mask, require_credential, resolve
from errors import ContentNotReadyError, ImageTooLargeError, SceneBusyError, UnknownSceneError
from gemini_llm import GeminiConfig, GeminiLLM
from product_context import ProductContext, apply_keyword_result, apply_listing_result
from studio_config import StudioSettings
from studio_types import (
    GeneratedImage,
    KeywordResearchResult,
    Language,
    LaunchPlan,
    ListingContent,
    ReferenceImage,
    SceneImageResult,
    SceneSpec,
)
from telemetry import emit_telemetry

from listing_studio.content_agents import KeywordResearchAgent, LaunchPlanAgent, ListingCopyAgent
from listing_studio.image_creator import (
    APLUS_IMAGE_SCENES,
    MAIN_IMAGE_SCENES,
    ImageCreator,
    find_scene,
    is_wide_scene,
    scene_prompt,
)
from listing_studio.video_studio import DEFAULT_CREATIVE_SCRIPT, VideoStudio, compose_video_prompt

MAX_UPLOAD_BYTES = 5 * 1024 * 1024


class SceneBoard:
    """Display cells for one scene catalog.

    Each write is tagged with a per-scene sequence number; a response whose
    number is no longer the latest for its scene is dropped. A failed write
    keeps whatever image the cell already had.
    """

    def __init__(self, scenes: Sequence[SceneSpec]):
        self.scenes = list(scenes)
        self._cells: Dict[int, GeneratedImage] = {
            s.id: GeneratedImage(id=s.id, label=s.label) for s in self.scenes
        }
        self._seq: Dict[int, int] = {s.id: 0 for s in self.scenes}

    def __contains__(self, scene_id: int) -> bool:
        return scene_id in self._cells

    def cell(self, scene_id: int) -> GeneratedImage:
        return self._cells[scene_id]

    def begin(self, scene_ids: Iterable[int]) -> Dict[int, int]:
        tickets = {}
        for sid in scene_ids:
            self._seq[sid] += 1
            tickets[sid] = self._seq[sid]
            self._cells[sid].is_loading = True
        return tickets

    def resolve(self, scene_id: int, ticket: int, image_url: Optional[str]) -> bool:
        """Apply a response. Returns False when the response was stale."""
        if self._seq[scene_id] != ticket:
            return False
        cell = self._cells[scene_id]
        cell.is_loading = False
        if image_url:
            cell.image_url = image_url
        return True

    def apply_batch(self, tickets: Dict[int, int], results: Iterable[SceneImageResult]) -> None:
        for r in results:
            if r.id in tickets:
                self.resolve(r.id, tickets[r.id], r.image_url or None)

    def cancel(self, tickets: Dict[int, int]) -> None:
        for sid, ticket in tickets.items():
            self.resolve(sid, ticket, None)

    def images(self) -> List[GeneratedImage]:
        return [self._cells[s.id] for s in self.scenes]


@dataclass
class GenerationReport:
    listing: ListingContent
    main_images: List[SceneImageResult] = field(default_factory=list)
    aplus_images: List[SceneImageResult] = field(default_factory=list)

    @property
    def failed_scene_ids(self) -> List[int]:
        return [r.id for r in self.main_images + self.aplus_images if not r.ok]


class StudioSession:
    """
    Holds the product context and scene boards for one user session.

    Usage:
        session = StudioSession(StudioSettings.from_env())
        await session.research_keywords("yoga mat", Language.ENGLISH)
        report = await session.generate_everything(description, photo, "image/jpeg")
        plan = await session.plan_launch()
        video_url = await session.render_video()
    """

    def __init__(
        self,
        settings: StudioSettings,
        *,
        llm_factory: Callable[[GeminiConfig], GeminiLLM] = GeminiLLM,
        ensure_credential_selected: Optional[EnsureCredentialSelected] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.settings = settings
        self._llm_factory = llm_factory
        self._ensure_credential_selected = ensure_credential_selected
        self._sleep = sleep

        self.language = Language.ENGLISH
        self.context = ProductContext()
        self.keyword_result: Optional[KeywordResearchResult] = None
        self.listing: Optional[ListingContent] = None
        self.launch_plan: Optional[LaunchPlan] = None
        self.video_url: Optional[str] = None

        self.main_board = SceneBoard(MAIN_IMAGE_SCENES)
        self.aplus_board = SceneBoard(APLUS_IMAGE_SCENES)
        self.custom_prompts: Dict[int, str] = {}

        self._reference: Optional[ReferenceImage] = None
        self._description = ""

    # ------------------------------------------------------------------
    # Clients
    # ------------------------------------------------------------------

    def _llm(self, override: Optional[str], *, video: bool = False) -> GeminiLLM:
        s = self.settings
        default = s.veo_api_key if video else s.gemini_api_key
        key = require_credential(resolve(override, default), "video generation" if video else "Gemini")
        return self._llm_factory(GeminiConfig(
            api_key=key,
            model=s.text_model,
            planner_model=s.planner_model,
            image_model=s.image_model,
            video_model=s.video_model,
            timeout_s=s.timeout_s,
        ))

    def _image_creator(self, llm: GeminiLLM) -> ImageCreator:
        return ImageCreator(
            llm,
            cooldown_s=self.settings.scene_cooldown_s,
            image_size=self.settings.image_size,
            sleep=self._sleep,
        )

    def _board_for(self, scene_id: int) -> SceneBoard:
        return self.aplus_board if is_wide_scene(scene_id) else self.main_board

    # ------------------------------------------------------------------
    # Stage 1: keywords
    # ------------------------------------------------------------------

    async def research_keywords(
        self,
        seed: str,
        language: Optional[Language] = None,
        *,
        api_key: Optional[str] = None,
    ) -> KeywordResearchResult:
        if language is not None:
            self.language = Language.parse(language)
        llm = self._llm(api_key)
        result = await KeywordResearchAgent(llm).run(seed, self.language)

        self.keyword_result = result
        self.context = apply_keyword_result(self.context, result.keyword_strings)
        return result

    # ------------------------------------------------------------------
    # Stages 2-4: listing + images
    # ------------------------------------------------------------------

    @property
    def reference_image(self) -> Optional[ReferenceImage]:
        return self._reference

    def set_reference_image(self, data: bytes, mime_type: str) -> ReferenceImage:
        if not data:
            raise ContentNotReadyError("Upload a product photo first.")
        if len(data) > MAX_UPLOAD_BYTES:
            raise ImageTooLargeError("The product photo is larger than 5MB.")
        self._reference = ReferenceImage(data=data, mime_type=mime_type or "image/png")
        return self._reference

    def _forwarded_keywords(self, ctx: ProductContext, keyword_limit: Optional[int]) -> List[str]:
        keywords = list(ctx.keywords)
        return keywords if keyword_limit is None else keywords[:keyword_limit]

    async def write_listing(
        self,
        description: str,
        language: Optional[Language] = None,
        *,
        keyword_limit: Optional[int] = None,
        api_key: Optional[str] = None,
        llm: Optional[GeminiLLM] = None,
    ) -> ListingContent:
        if language is not None:
            self.language = Language.parse(language)
        if not (description or "").strip():
            raise ContentNotReadyError("Describe the product before generating a listing.")

        llm = llm or self._llm(api_key)
        keywords = self._forwarded_keywords(self.context, keyword_limit)
        listing = await ListingCopyAgent(llm).run(description, keywords, self.language)

        ref = self._reference
        self.listing = listing
        self._description = description
        self.context = apply_listing_result(
            self.context,
            listing.title,
            description,
            image=ref.data if ref else None,
            mime_type=ref.mime_type if ref else None,
        )
        return listing

    async def generate_everything(
        self,
        description: str,
        image: bytes,
        mime_type: str,
        language: Optional[Language] = None,
        *,
        keyword_limit: Optional[int] = None,
        custom_prompts: Optional[Dict[int, str]] = None,
        include_aplus: bool = True,
        api_key: Optional[str] = None,
    ) -> GenerationReport:
        """Listing first, then the main batch, then the A+ batch.

        If the listing call fails the previous reference photo is restored, so
        the session photo always matches ``context.uploaded_image``.
        """
        previous_ref = self._reference
        ref = self.set_reference_image(image, mime_type)
        if custom_prompts:
            self.custom_prompts.update(custom_prompts)
        llm = self._llm(api_key)
        print(f"   [StudioSession] generate_everything with key {mask(llm.config.api_key)}")

        main_tickets = self.main_board.begin(s.id for s in MAIN_IMAGE_SCENES)
        aplus_tickets = self.aplus_board.begin(s.id for s in APLUS_IMAGE_SCENES) if include_aplus else {}

        try:
            listing = await self.write_listing(
                description, language, keyword_limit=keyword_limit, llm=llm,
            )
        except Exception:
            self._reference = previous_ref
            self.main_board.cancel(main_tickets)
            self.aplus_board.cancel(aplus_tickets)
            raise
        report = GenerationReport(listing=listing)

        creator = self._image_creator(llm)
        report.main_images = await creator.generate_scene_batch(
            ref.data, ref.mime_type, description, MAIN_IMAGE_SCENES,
            wide=False, overrides=dict(self.custom_prompts),
        )
        self.main_board.apply_batch(main_tickets, report.main_images)

        if include_aplus:
            report.aplus_images = await creator.generate_scene_batch(
                ref.data, ref.mime_type, description, APLUS_IMAGE_SCENES,
                wide=True, overrides=dict(self.custom_prompts),
            )
            self.aplus_board.apply_batch(aplus_tickets, report.aplus_images)

        emit_telemetry("StudioSession", "content_done", {"failed": report.failed_scene_ids})
        return report

    async def regenerate_scene(
        self,
        scene_id: int,
        prompt: Optional[str] = None,
        *,
        api_key: Optional[str] = None,
    ) -> GeneratedImage:
        """Re-run one scene. On failure the previous image stays and the error is raised."""
        scene = find_scene(scene_id)
        if scene is None:
            raise UnknownSceneError(f"Unknown scene id: {scene_id}")
        if self._reference is None:
            raise ContentNotReadyError("Upload a product photo first.")
        board = self._board_for(scene_id)
        if board.cell(scene_id).is_loading:
            raise SceneBusyError(f"Scene {scene_id} is still generating; wait for it to finish.")
        if prompt:
            self.custom_prompts[scene_id] = prompt

        ref = self._reference
        description = self._description or self.context.description
        llm = self._llm(api_key)
        ticket = board.begin([scene_id])[scene_id]

        try:
            url = await self._image_creator(llm).synthesize_image(
                ref.data,
                ref.mime_type,
                scene_prompt(description, scene, self.custom_prompts),
                wide=is_wide_scene(scene_id),
            )
        except Exception:
            board.resolve(scene_id, ticket, None)
            raise

        if not board.resolve(scene_id, ticket, url):
            print(f"         ⚠️  Dropped stale result for scene {scene_id}")
        return board.cell(scene_id)

    # ------------------------------------------------------------------
    # Stage 5: launch plan
    # ------------------------------------------------------------------

    async def plan_launch(
        self,
        language: Optional[Language] = None,
        *,
        keyword_limit: Optional[int] = None,
        api_key: Optional[str] = None,
    ) -> LaunchPlan:
        ctx = self.context
        if not ctx.has_generated_content:
            raise ContentNotReadyError(
                "The launch plan needs your listing copy and keywords. Generate content first."
            )
        lang = Language.parse(language) if language is not None else self.language
        llm = self._llm(api_key)
        plan = await LaunchPlanAgent(llm).run(
            ctx.title, ctx.description, self._forwarded_keywords(ctx, keyword_limit), lang,
        )
        self.launch_plan = plan
        return plan

    # ------------------------------------------------------------------
    # Stage 6: video
    # ------------------------------------------------------------------

    async def render_video(
        self,
        creative_script: Optional[str] = None,
        *,
        description: Optional[str] = None,
        reference_images: Optional[Sequence[ReferenceImage]] = None,
        api_key: Optional[str] = None,
    ) -> str:
        ctx = self.context
        script = DEFAULT_CREATIVE_SCRIPT if creative_script is None else creative_script
        description = ctx.description if description is None else description
        if not description.strip() and not script.strip():
            raise ContentNotReadyError("Enter a product description or a creative prompt.")

        if reference_images is None:
            reference_images = (
                [ReferenceImage(ctx.uploaded_image, ctx.mime_type)] if ctx.uploaded_image else []
            )

        if self._ensure_credential_selected is not None:
            await self._ensure_credential_selected()

        s = self.settings
        studio = VideoStudio(
            self._llm(api_key, video=True),
            resolution=s.video_resolution,
            poll_interval_s=s.video_poll_interval_s,
            max_polls=s.video_max_polls,
            sleep=self._sleep,
        )
        self.video_url = await studio.render_video(
            compose_video_prompt(description, script), reference_images,
        )
        return self.video_url
