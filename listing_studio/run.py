#!/usr/bin/env python3
"""
LISTING STUDIO — CLI ENTRY POINT
================================

Usage:
    # Keyword research only:
    python3 listing_studio/run.py --seed "wireless headphones"

    # Keywords + listing copy + main/A+ scene images:
    python3 listing_studio/run.py \\
        --seed "yoga mat" \\
        --image input/yoga_mat.jpg \\
        --description "6mm TPE yoga mat, non-slip, with carry strap"

    # Everything, including the launch plan and a Veo video:
    python3 listing_studio/run.py \\
        --seed "yoga mat" --image input/yoga_mat.jpg \\
        --description "6mm TPE yoga mat" --launch-plan --video
"""

from __future__ import annotations

import argparse
import asyncio
import mimetypes
import os
import sys
from datetime import datetime
from pathlib import Path

# Ensure parent directory is importable
_PARENT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _PARENT_DIR not in sys.path:
    sys.path.insert(0, _PARENT_DIR)

from errors import StudioError
from keyword_processor import group_by_tier, keyword_stats
from studio_config import StudioSettings
from studio_types import Language

from listing_studio.master_pipeline import StudioSession
from listing_studio.output_writer import (
    download_video,
    export_keywords_csv,
    save_scene_images,
    write_json,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Listing Studio — keyword research, listing copy, scene images, "
                    "launch plan and product video with Gemini.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--seed", required=True, help="Seed keyword to research")
    parser.add_argument(
        "--language",
        default="English",
        choices=[lang.value for lang in Language],
        help="Marketplace language (default: English)",
    )
    parser.add_argument("--image", default=None, help="Product photo (max 5MB) for listing + scenes")
    parser.add_argument("--description", default=None, help="Product description for the listing")
    parser.add_argument(
        "--keyword-limit",
        type=int,
        default=None,
        help="Forward only the first N researched keywords to listing/launch plan",
    )
    parser.add_argument("--no-aplus", action="store_true", help="Skip the 7 wide A+ scenes")
    parser.add_argument("--launch-plan", action="store_true", help="Generate the 60-day launch plan")
    parser.add_argument("--video", action="store_true", help="Render a product video with Veo")
    parser.add_argument("--video-prompt", default=None, help="Creative script for the video")
    parser.add_argument("--output", default=None, help="Output directory (default: studio_output/run_<ts>)")
    parser.add_argument("--gemini-key", default=None, help="Override GEMINI_API_KEY")
    parser.add_argument("--veo-key", default=None, help="Override VEO_API_KEY")
    return parser


async def run(args: argparse.Namespace) -> int:
    settings = StudioSettings.from_env(os.path.join(_PARENT_DIR, ".env"))
    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    out = Path(args.output or os.path.join(settings.output_dir, f"run_{ts}"))
    session = StudioSession(settings)
    language = Language.parse(args.language)

    print(f"\n🔍 [1] Keyword research: '{args.seed}' ({language.value})")
    research = await session.research_keywords(args.seed, language, api_key=args.gemini_key)
    for tier, records in group_by_tier(research.keywords).items():
        print(f"   {tier.value}: {len(records)}")
    stats = keyword_stats(research.keywords)
    print(f"   high competition: {stats['high_competition']}, avg CPC: ${stats['avg_cpc']:.2f}")
    export_keywords_csv(research.keywords, str(out / "keywords.csv"))
    write_json(
        {"keywords": [k.to_dict() for k in research.keywords],
         "sources": [s.to_dict() for s in research.sources]},
        str(out / "keywords.json"),
    )

    if args.image and args.description:
        image_path = Path(args.image)
        mime_type = mimetypes.guess_type(image_path.name)[0] or "image/png"
        print(f"\n🎨 [2] Listing copy + scene images from {image_path.name}")
        report = await session.generate_everything(
            args.description,
            image_path.read_bytes(),
            mime_type,
            keyword_limit=args.keyword_limit,
            include_aplus=not args.no_aplus,
            api_key=args.gemini_key,
        )
        print(f"   Title: {report.listing.title}")
        for i, bullet in enumerate(report.listing.bullets, 1):
            print(f"   {i}. {bullet or '(empty)'}")
        write_json(report.listing.to_dict(), str(out / "listing.json"))
        save_scene_images(session.main_board.images(), str(out / "images"), "main")
        save_scene_images(session.aplus_board.images(), str(out / "images"), "aplus")
        if report.failed_scene_ids:
            print(f"   ⚠️  Failed scenes: {report.failed_scene_ids} (re-run them individually)")
    elif args.launch_plan or args.video:
        print("\n⚠️  --launch-plan and --video need --image and --description")

    if args.launch_plan and session.context.has_generated_content:
        print("\n🚀 [3] Launch plan")
        plan = await session.plan_launch(keyword_limit=args.keyword_limit, api_key=args.gemini_key)
        for phase in plan.plan:
            print(f"   Day {phase.day_range}: {phase.focus} ({phase.budget})")
        write_json(plan.to_dict(), str(out / "launch_plan.json"))

    if args.video and session.context.has_generated_content:
        print("\n🎬 [4] Product video (this can take several minutes)")
        url = await session.render_video(args.video_prompt, api_key=args.veo_key)
        download_video(url, str(out / "product_video.mp4"))

    print(f"\n✅ Done. Output: {out}")
    return 0


def main():
    args = build_parser().parse_args()
    try:
        code = asyncio.run(run(args))
    except StudioError as e:
        print(f"\n❌ {e.code}: {e.message}")
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
