"""Single-flight access to the generation engine and the conversation it extends.

The busy flag and the conversation form one unit of state behind one
``asyncio.Lock``. A generate call claims the flag and appends the user turn in
one critical section, runs the engine outside the lock, then appends the
assistant turn and releases the flag in a second critical section. Requests
that find the flag set are rejected, never queued. A cancelled request does
not free the slot; it is released once the engine call actually returns.
"""
import asyncio
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import Optional, Set

from .config import DEFAULT_MAX_TOKENS
from .engine import TextEngine
from .errors import ConcurrencyConflict, EngineError, GenerationFailure
from .history import Conversation, Role
from .sidecarlog import LOG


class SlotState(Enum):
    IDLE = "ready"
    BUSY = "busy"


class GenerationOrchestrator:
    def __init__(
        self,
        engine: TextEngine,
        conversation: Conversation,
        default_max_tokens: int = DEFAULT_MAX_TOKENS,
        rollback_failed_prompt: bool = False,
    ):
        self.engine = engine
        self.conversation = conversation
        self.default_max_tokens = default_max_tokens
        self.rollback_failed_prompt = rollback_failed_prompt
        self._busy = False
        self._lock = asyncio.Lock()
        # The engine is single-threaded and stateful; one worker is all it gets
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="engine")
        self._detached: Set[asyncio.Task] = set()

    async def state(self) -> SlotState:
        async with self._lock:
            return SlotState.BUSY if self._busy else SlotState.IDLE

    async def clear_history(self) -> None:
        async with self._lock:
            if self._busy:
                raise ConcurrencyConflict("cannot clear history while generating")
            self.conversation.clear()
        LOG.info("Conversation history cleared")

    async def generate(
        self,
        prompt: str,
        setup: Optional[str] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        """Append ``prompt``, run the engine, append its answer.

        Raises ConcurrencyConflict without touching state when another
        generation is in flight, and GenerationFailure when the engine fails.
        """
        async with self._lock:
            if self._busy:
                LOG.warning("Already generating text")
                raise ConcurrencyConflict("already generating text")
            self._busy = True
            self.conversation.append(Role.USER, prompt)
            if setup is not None:
                rendered = self.conversation.render_with_system_override(setup)
            else:
                rendered = self.conversation.render()

        budget = max_tokens or self.default_max_tokens
        LOG.info("Generating up to %d tokens", budget)

        loop = asyncio.get_running_loop()
        pending = loop.run_in_executor(self._executor, self.engine.generate, rendered, budget)
        try:
            # Shielded so a cancelled request cannot mark the engine call finished
            output = await asyncio.shield(pending)
            if not isinstance(output, str):
                raise EngineError("engine returned no text")
        except asyncio.CancelledError:
            LOG.warning("Generate request cancelled; slot stays held until the engine returns")
            pending.add_done_callback(self._settle_detached)
            raise
        except EngineError as e:
            LOG.error("Engine failed: %s", e)
            await self._settle(None)
            raise GenerationFailure(str(e) or "unable to generate text") from e
        except Exception as e:
            LOG.exception("Unexpected engine failure")
            await self._settle(None)
            raise GenerationFailure("unable to generate text") from e

        await self._settle(output)
        LOG.info("Generation complete (%d chars)", len(output))
        return output

    async def _settle(self, output: Optional[str]) -> None:
        """Record the outcome of an engine call, then free the slot."""
        async with self._lock:
            if output is not None:
                self.conversation.append(Role.ASSISTANT, output)
            elif self.rollback_failed_prompt:
                self.conversation.pop_last()
            self._busy = False

    def _settle_detached(self, pending: asyncio.Future) -> None:
        # Runs on the loop once an abandoned engine call finally returns
        output = None
        if pending.cancelled():
            LOG.error("Abandoned engine call was cancelled")
        elif pending.exception() is not None:
            LOG.error("Abandoned engine call failed: %s", pending.exception())
        elif isinstance(pending.result(), str):
            output = pending.result()
        task = asyncio.get_running_loop().create_task(self._settle(output))
        self._detached.add(task)
        task.add_done_callback(self._detached.discard)

    def shutdown(self):
        self._executor.shutdown(wait=False)
