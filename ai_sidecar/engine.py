"""Interface the orchestrator requires of a text-generation engine."""
from typing import Protocol


class TextEngine(Protocol):
    # Return the full completion for an already rendered prompt.
    # Blocking; raise EngineError on failure.
    def generate(self, prompt: str, max_tokens: int) -> str: ...
