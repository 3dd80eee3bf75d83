"""
FastAPI Server
==============
REST + WebSocket API behind the Listing Studio browser UI.

One StudioSession per server process; credential overrides typed into the
settings dialog arrive per request as ``apiKey`` / ``veoKey``.
"""

from __future__ import annotations

import base64
import binascii
import json
from typing import Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from errors import StudioError
from keyword_processor import copy_text, group_by_tier, keyword_stats, top_by_volume
from studio_config import StudioSettings
from studio_types import ReferenceImage
from telemetry import emitter

from listing_studio.master_pipeline import StudioSession
from listing_studio.output_writer import keywords_csv
from ui.job_manager import get_job, start_job

app = FastAPI(title="Listing Studio")

# Allow React dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_session: Optional[StudioSession] = None


def get_session() -> StudioSession:
    global _session
    if _session is None:
        _session = StudioSession(StudioSettings.from_env())
    return _session


_STATUS_BY_CODE = {
    "PARSE_ERROR": 422,
    "NO_IMAGE_RETURNED": 422,
    "CONTENT_NOT_READY": 422,
    "INVALID_INPUT": 422,
    "UNKNOWN_SCENE": 404,
    "SCENE_BUSY": 409,
    "IMAGE_TOO_LARGE": 413,
    "MISSING_CREDENTIAL": 401,
    "PERMISSION_DENIED": 403,
    "CREDENTIAL_SELECTION_CANCELLED": 409,
    "JOB_FAILED": 502,
    "JOB_TIMED_OUT": 504,
}


@app.exception_handler(StudioError)
async def studio_error_handler(request, exc: StudioError):
    return JSONResponse(status_code=_STATUS_BY_CODE.get(exc.code, 500), content=exc.to_dict())


# ─── Pydantic models ─────────────────────────────────────────────────────────

class KeywordParams(BaseModel):
    seed: str
    language: str = "English"
    apiKey: Optional[str] = None


class ContentParams(BaseModel):
    description: str
    imageBase64: str
    mimeType: str = "image/png"
    language: Optional[str] = None
    keywordLimit: Optional[int] = None
    customPrompts: Dict[int, str] = {}
    includeAplus: bool = True
    apiKey: Optional[str] = None


class RegenerateParams(BaseModel):
    prompt: Optional[str] = None
    apiKey: Optional[str] = None


class LaunchPlanParams(BaseModel):
    language: Optional[str] = None
    keywordLimit: Optional[int] = None
    apiKey: Optional[str] = None


class BulletParams(BaseModel):
    text: str


class RefImageParams(BaseModel):
    data: str
    mimeType: str = "image/png"


class VideoParams(BaseModel):
    creativeScript: Optional[str] = None
    description: Optional[str] = None
    referenceImages: Optional[List[RefImageParams]] = None
    veoKey: Optional[str] = None


def _b64(data: str) -> bytes:
    if "," in data and data.startswith("data:"):
        data = data.split(",", 1)[1]
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(400, "Image payload is not valid base64")


def _boards(session: StudioSession) -> dict:
    return {
        "mainImages": [c.to_dict() for c in session.main_board.images()],
        "aplusImages": [c.to_dict() for c in session.aplus_board.images()],
    }


# ─── REST endpoints ───────────────────────────────────────────────────────────

@app.post("/api/keywords")
async def api_keywords(params: KeywordParams, session: StudioSession = Depends(get_session)):
    result = await session.research_keywords(params.seed, params.language, api_key=params.apiKey)
    return {
        "keywords": [k.to_dict() for k in result.keywords],
        "sources": [s.to_dict() for s in result.sources],
        "groups": {
            tier.value: [k.keyword for k in records]
            for tier, records in group_by_tier(result.keywords).items()
        },
        "top": [k.to_dict() for k in top_by_volume(result.keywords)],
        "stats": keyword_stats(result.keywords),
        "copyText": copy_text(result.keywords),
    }


@app.get("/api/keywords.csv")
async def api_keywords_csv(session: StudioSession = Depends(get_session)):
    if session.keyword_result is None:
        raise HTTPException(404, "No keyword research yet")
    return Response(
        content=keywords_csv(session.keyword_result.keywords),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="amazon_keywords_tiered.csv"'},
    )


@app.post("/api/content")
async def api_content(params: ContentParams, session: StudioSession = Depends(get_session)):
    report = await session.generate_everything(
        params.description,
        _b64(params.imageBase64),
        params.mimeType,
        params.language,
        keyword_limit=params.keywordLimit,
        custom_prompts=params.customPrompts,
        include_aplus=params.includeAplus,
        api_key=params.apiKey,
    )
    return {
        "listing": report.listing.to_dict(),
        "failedSceneIds": report.failed_scene_ids,
        **_boards(session),
    }


@app.put("/api/listing/bullets/{index}")
async def api_edit_bullet(index: int, params: BulletParams, session: StudioSession = Depends(get_session)):
    if session.listing is None:
        raise HTTPException(404, "No listing generated yet")
    try:
        session.listing.edit_bullet(index, params.text)
    except IndexError:
        raise HTTPException(404, f"Bullet {index} out of range")
    return session.listing.to_dict()


@app.get("/api/scenes")
async def api_scenes(session: StudioSession = Depends(get_session)):
    return _boards(session)


@app.post("/api/scenes/{scene_id}/regenerate")
async def api_regenerate(
    scene_id: int,
    params: RegenerateParams,
    session: StudioSession = Depends(get_session),
):
    cell = await session.regenerate_scene(scene_id, params.prompt, api_key=params.apiKey)
    return cell.to_dict()


@app.post("/api/launch-plan")
async def api_launch_plan(params: LaunchPlanParams, session: StudioSession = Depends(get_session)):
    plan = await session.plan_launch(
        params.language, keyword_limit=params.keywordLimit, api_key=params.apiKey,
    )
    return plan.to_dict()


@app.post("/api/video")
async def api_video(params: VideoParams, session: StudioSession = Depends(get_session)):
    refs = None
    if params.referenceImages is not None:
        refs = [ReferenceImage(_b64(r.data), r.mimeType) for r in params.referenceImages]

    async def work() -> str:
        return await session.render_video(
            params.creativeScript,
            description=params.description,
            reference_images=refs,
            api_key=params.veoKey,
        )

    job = await start_job(work, kind="video")
    return {"jobId": job.job_id}


@app.get("/api/video/{job_id}")
async def api_video_status(job_id: str):
    job = get_job(job_id)
    if job is None:
        raise HTTPException(404, f"Job not found: {job_id}")
    return job.to_dict()


@app.get("/api/context")
async def api_context(session: StudioSession = Depends(get_session)):
    return session.context.to_dict()


# ─── WebSocket ────────────────────────────────────────────────────────────────

@app.websocket("/ws/telemetry")
async def ws_telemetry(websocket: WebSocket):
    """Streams live stage events to the dashboard."""
    await websocket.accept()
    queue = emitter.subscribe()
    try:
        await websocket.send_text(json.dumps({"type": "hello"}))
        while True:
            msg = await queue.get()
            await websocket.send_text(msg)
    except WebSocketDisconnect:
        pass
    finally:
        emitter.unsubscribe(queue)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("ui.server:app", host="127.0.0.1", port=8000, reload=False)
