"""Conversation history and prompt rendering.

The rendered prompt uses the chat markers understood by the engine's
tokenizer::

    <|system|>\\n{system}</s>\\n<|assistant|>\\n{greeting}</s>\\n<|user|>\\n{prompt}</s>\\n<|assistant|>

Role markers are structural delimiters, not markup. Content is inserted
verbatim: a user who types ``<|assistant|>`` gets exactly that token sequence
in the prompt. Nothing here escapes or strips markers from content.
"""
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from .sidecarlog import LOG

TERMINATOR = "</s>\n"
DEFAULT_GREETING = "Hello, how may I help you today?"


class Role(Enum):
    SYSTEM = "<|system|>\n"
    USER = "<|user|>\n"
    ASSISTANT = "<|assistant|>\n"

    @property
    def marker(self) -> str:
        return self.value


@dataclass(frozen=True)
class Turn:
    role: Role
    content: str

    def render(self) -> str:
        return f"{self.role.marker}{self.content}{TERMINATOR}"


class Conversation:
    """One system turn followed by an append-only list of exchange turns."""

    def __init__(self, system_content: str, greeting: Optional[str] = DEFAULT_GREETING):
        self.system = Turn(Role.SYSTEM, system_content)
        self._turns: List[Turn] = []
        if greeting is not None:
            self._turns.append(Turn(Role.ASSISTANT, greeting))

    @property
    def turns(self) -> Tuple[Turn, ...]:
        return tuple(self._turns)

    def __len__(self) -> int:
        return len(self._turns)

    def _render_from(self, system: Turn) -> str:
        prompt = system.render()
        prompt += "".join(turn.render() for turn in self._turns)
        prompt += Role.ASSISTANT.marker.strip()
        LOG.debug("Rendered prompt:\n%s", prompt)
        return prompt

    def render(self) -> str:
        """Full prompt, ending in a bare assistant marker for the engine to continue."""
        return self._render_from(self.system)

    def render_with_system_override(self, content: str) -> str:
        """Like render(), with ``content`` standing in for the system turn. Stored state is untouched."""
        return self._render_from(Turn(Role.SYSTEM, content))

    def append(self, role: Role, content: str) -> None:
        self._turns.append(Turn(role, content))

    def pop_last(self) -> Turn:
        return self._turns.pop()

    def clear(self) -> None:
        """Drop every turn except the system turn."""
        self._turns.clear()
