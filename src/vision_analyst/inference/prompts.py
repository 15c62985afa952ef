"""
Prompts
=======

Fixed instructions sent to the vision-language model.

Sequential sessions use position-dependent prompts: the first frame asks
for an initial scene description, later frames ask for changes relative to
everything seen so far in the session.
"""

STILL_SYSTEM_INSTRUCTION = (
    "You are an Expert Vision Analyst. Identify objects and return bounding boxes. "
    "Coordinates for box_2d are [ymin, xmin, ymax, xmax] on a 0-1000 integer scale."
)

STILL_PROMPT = (
    "Analyze this image. Identify all key objects. For each detected object instance, "
    "return the name, confidence level, and its bounding box."
)

SEQUENCE_SYSTEM_INSTRUCTION = (
    "You are an Expert Video Analyst. You will receive a sequence of video keyframes. "
    "For each frame, identify the objects and strictly note any changes from the "
    "previous frame's analysis. Be concise."
)

FIRST_FRAME_PROMPT = "Frame at {timestamp}. Identify objects and describe the initial scene."

NEXT_FRAME_PROMPT = (
    "Frame at {timestamp}. Identify objects and note any changes (movement, appearance, "
    "disappearance) compared to all previous frames in this session."
)

SUMMARY_PROMPT = (
    "Create a final, cohesive Video Analysis Report summarizing the progression of the "
    "scene, key actions, and object movements based on all processed frames."
)

# Still-image response schema (OpenAPI subset understood by the service)
STILL_RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "objects": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "name": {"type": "STRING"},
                    "confidence": {"type": "STRING", "enum": ["High", "Medium", "Low"]},
                    "box_2d": {
                        "type": "ARRAY",
                        "items": {"type": "INTEGER"},
                        "description": "Bounding box coordinates [ymin, xmin, ymax, xmax] on a 0-1000 scale",
                    },
                },
                "required": ["name", "confidence", "box_2d"],
            },
        },
        "narrative": {"type": "STRING"},
    },
    "required": ["objects", "narrative"],
}


def frame_prompt(timestamp: str, is_first: bool) -> str:
    """Prompt for one frame of a sequential session."""
    template = FIRST_FRAME_PROMPT if is_first else NEXT_FRAME_PROMPT
    return template.format(timestamp=timestamp)
