"""Generation services: cache, prompt, extraction, streaming and orchestration."""

from fractal.services.cache import ResponseCache
from fractal.services.extraction import Extraction, ExtractionState, MatchSource, extract
from fractal.services.navigation import NavigationHistory, normalize_url, resolve_link
from fractal.services.orchestrator import GenerationOrchestrator, build_orchestrator
from fractal.services.prompt import PromptBuilder
from fractal.services.streaming import StreamMultiplexer

__all__ = [
    "Extraction",
    "ExtractionState",
    "GenerationOrchestrator",
    "MatchSource",
    "NavigationHistory",
    "PromptBuilder",
    "ResponseCache",
    "StreamMultiplexer",
    "build_orchestrator",
    "extract",
    "normalize_url",
    "resolve_link",
]
