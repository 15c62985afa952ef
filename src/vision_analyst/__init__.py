"""
VisionAnalyst
=============

Media analysis orchestration for vision-language inference services.

This package turns a still image, a video file or a camera snapshot into
structured, spatially-located annotations (named objects with confidence and
bounding boxes) and free-text narratives, by driving an external
vision-language model.

Components:
    - media: Frame sampling, image encoding, camera acquisition
    - inference: Inference client contract, Gemini adapter, mock backend
    - pipeline: Sequential video analysis, still-image analysis, event channel
    - overlay: Bounding-box projection, object summaries, overlay rendering
    - retry: Bounded exponential-backoff retry executor

Example:
    from vision_analyst.config import settings
    from vision_analyst.pipeline import create_orchestrator

    orchestrator = create_orchestrator(settings)
    result = await orchestrator.analyze("clip.mp4")
    print(result.final_report)
"""

__version__ = "0.1.0"
__author__ = "VisionAnalyst Project"

# Subpackages are imported explicitly by callers; keeping this module light
# avoids pulling OpenCV and LangGraph in for config-only use.

__all__ = [
    "__version__",
]
