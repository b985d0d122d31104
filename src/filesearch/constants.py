"""Project-wide named constants.

Model catalogue and chunking presets mirror what the chat UI offers.
"""

from filesearch.models import ChunkingPreset, GeminiModel

GEMINI_MODELS: tuple[GeminiModel, ...] = (
    GeminiModel(
        value="gemini-2.5-flash",
        label="Gemini 2.5 Flash",
        description="Fast, balanced quality",
        is_default=True,
    ),
    GeminiModel(
        value="gemini-2.5-pro",
        label="Gemini 2.5 Pro",
        description="Highest quality",
    ),
    GeminiModel(
        value="gemini-2.5-flash-lite",
        label="Gemini 2.5 Flash Lite",
        description="Fastest, lightweight",
    ),
    GeminiModel(
        value="gemini-2.0-flash-lite",
        label="Gemini 2.0 Flash Lite",
        description="Previous generation, stable",
    ),
)

DEFAULT_MODEL: str = next(m.value for m in GEMINI_MODELS if m.is_default)

CHUNKING_PRESETS: dict[str, ChunkingPreset] = {
    "small": ChunkingPreset(
        name="small",
        max_tokens_per_chunk=200,
        max_overlap_tokens=20,
        description="Precise extraction, small context",
    ),
    "medium": ChunkingPreset(
        name="medium",
        max_tokens_per_chunk=400,
        max_overlap_tokens=30,
        description="Balanced (recommended)",
    ),
    "large": ChunkingPreset(
        name="large",
        max_tokens_per_chunk=512,
        max_overlap_tokens=50,
        description="Largest context",
    ),
}

# Default page size for list calls, matching the provider default.
DEFAULT_PAGE_SIZE: int = 20

# Operation polling: 5s x 60 attempts bounds a wait at roughly five minutes.
DEFAULT_POLL_INTERVAL_SECONDS: float = 5.0
DEFAULT_POLL_MAX_ATTEMPTS: int = 60

# Files API caps display names at 512 characters.
MAX_DISPLAY_NAME_LENGTH: int = 512
