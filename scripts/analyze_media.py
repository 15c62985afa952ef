#!/usr/bin/env python3
"""
Media Analysis Smoke Script
===========================

Standalone script to run one analysis against the configured backend.

This script:
    1. Loads settings (config.yaml + environment)
    2. Runs a still-image, video or camera-snapshot analysis
    3. Prints per-frame results as they arrive
    4. Reports the final result and metrics

Prerequisites:
    - pip install -e .
    - For the real backend: VISION_ANALYST_INFERENCE_BACKEND=gemini and GEMINI_API_KEY

Usage:
    python scripts/analyze_media.py --image photo.jpg
    python scripts/analyze_media.py --video clip.mp4 --max-frames 5
    python scripts/analyze_media.py --camera --backend mock
"""

import argparse
import asyncio
import logging
import os
import sys
from typing import Optional

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from vision_analyst.config import settings
from vision_analyst.errors import VisionAnalystError, describe_failure
from vision_analyst.inference import create_inference_client
from vision_analyst.media import CaptureConstraints, OpenCVCamera
from vision_analyst.pipeline import create_orchestrator, create_still_analyzer


logger = logging.getLogger(__name__)


def print_still(annotated, output: Optional[str]) -> None:
    print("\nNarrative:")
    print(f"  {annotated.result.narrative}")
    print("\nObjects:")
    for row in annotated.summary:
        print(f"  {row.name:<20} x{row.count:<3} {row.confidence.value:<7} {row.color_token}")

    if output:
        with open(output, "wb") as f:
            f.write(annotated.render(
                thickness=settings.overlay.line_thickness,
                font_scale=settings.overlay.font_scale,
            ))
        print(f"\nAnnotated image written to {output}")


async def run_analysis(args: argparse.Namespace) -> int:
    """
    Run the requested analysis.

    Returns:
        Process exit code
    """
    logger.info("=" * 60)
    logger.info(f"Backend: {settings.inference.backend} ({settings.inference.model})")
    logger.info("=" * 60)

    client = create_inference_client(settings)

    try:
        if args.image:
            analyzer = create_still_analyzer(settings, client=client)
            print_still(await analyzer.analyze_file(args.image), args.output)

        elif args.camera:
            analyzer = create_still_analyzer(settings, client=client)
            camera = OpenCVCamera(device_index=settings.camera.device_index)
            annotated = await analyzer.analyze_camera_snapshot(
                camera,
                preferred=CaptureConstraints(
                    width=settings.camera.preferred_width,
                    height=settings.camera.preferred_height,
                ),
                warmup_frames=settings.camera.warmup_frames,
                jpeg_quality=settings.camera.snapshot_jpeg_quality,
            )
            print_still(annotated, args.output)

        else:
            orchestrator = create_orchestrator(settings, client=client)
            run = orchestrator.new_run()
            result = await orchestrator.analyze(
                args.video,
                on_sampling_progress=lambda p: print(f"  sampling... {p}%"),
                on_frame_analyzed=lambda f: print(f"\n[{f.timestamp}] {f.analysis_text}"),
                run=run,
            )
            print("\nFinal report:")
            print(result.final_report)
            print(f"\nMetrics: {run.metrics.to_dict()}")

    except VisionAnalystError as e:
        notice = describe_failure(e)
        print(f"\n{notice.kind.value}: {notice.message} (action: {notice.action.value})")
        return 1

    return 0


def main():
    parser = argparse.ArgumentParser(
        description="Run one media analysis against the configured backend"
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--image", type=str, help="JPEG/PNG file to analyse")
    source.add_argument("--video", type=str, help="Video file to analyse")
    source.add_argument("--camera", action="store_true", help="Analyse one camera snapshot")
    parser.add_argument(
        "--backend",
        choices=["mock", "gemini"],
        default=None,
        help="Override inference backend",
    )
    parser.add_argument(
        "--max-frames",
        type=int,
        default=None,
        help=f"Override max sampled frames (default: {settings.sampling.max_frames})",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Write the annotated still image here",
    )

    args = parser.parse_args()

    if args.backend:
        settings.inference.backend = args.backend
    if args.max_frames:
        settings.sampling.max_frames = args.max_frames

    sys.exit(asyncio.run(run_analysis(args)))


if __name__ == "__main__":
    main()
