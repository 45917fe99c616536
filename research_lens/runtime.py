"""Background event loop hosting the workflow for synchronous callers.

Flask handlers run on worker threads, while the workflow and chat
assistant are asyncio objects that must only be touched from one loop.
The runtime owns that loop on a daemon thread and exposes blocking
wrappers that submit coroutines to it.
"""

import asyncio
import logging
import threading
from concurrent.futures import Future
from typing import Any, Coroutine, TypeVar

from research_lens.agents.chat import DEFAULT_THREAD_ID, ChatAssistant
from research_lens.graphs.workflow import PaperWorkflow
from research_lens.state import ChatMessage, Reference, WorkspaceState

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_CALL_TIMEOUT = 300.0


class WorkspaceRuntime:
    """Owns the event loop thread the workflow and chat assistant live on."""

    def __init__(
        self,
        workflow: PaperWorkflow | None = None,
        chat: ChatAssistant | None = None,
        call_timeout: float = DEFAULT_CALL_TIMEOUT,
    ):
        self.workflow = workflow or PaperWorkflow()
        self.chat = chat or ChatAssistant()
        self.call_timeout = call_timeout

        self.loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._run_loop,
            name="research-lens-loop",
            daemon=True,
        )
        self._thread.start()

    def _run_loop(self) -> None:
        asyncio.set_event_loop(self.loop)
        self.loop.run_forever()

    def submit(self, coro: Coroutine[Any, Any, T]) -> Future:
        """Schedule a coroutine on the runtime loop."""
        return asyncio.run_coroutine_threadsafe(coro, self.loop)

    def call(self, coro: Coroutine[Any, Any, T], timeout: float | None = None) -> T:
        """Run a coroutine on the runtime loop and wait for its result."""
        return self.submit(coro).result(timeout or self.call_timeout)

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def start_run(self, text: str) -> int:
        """
        Start analysing a new upload, superseding any run in flight.

        Returns:
            Generation number of the new run.
        """
        async def _start() -> int:
            self.chat.reset()
            self.workflow.start(text)
            return self.workflow.generation

        generation = self.call(_start())
        logger.info(f"Queued run {generation}")
        return generation

    def snapshot(self) -> WorkspaceState:
        """Current workspace snapshot."""
        async def _snapshot() -> WorkspaceState:
            return self.workflow.snapshot()

        return self.call(_snapshot())

    def load_references(self) -> list[Reference]:
        """References of the current upload, extracted on first request."""
        return self.call(self.workflow.load_references())

    def ask(self, question: str, thread_id: str = DEFAULT_THREAD_ID) -> ChatMessage:
        """Ask the chat assistant about the current upload."""
        async def _ask() -> ChatMessage:
            state = self.workflow.snapshot()
            return await self.chat.ask(
                question,
                analysis=state.analysis_result,
                related_papers=state.related_papers,
                thread_id=thread_id,
            )

        return self.call(_ask())

    def shutdown(self, timeout: float = 5.0) -> None:
        """Stop the loop and join its thread."""
        if self.loop.is_running():
            self.loop.call_soon_threadsafe(self.loop.stop)
        self._thread.join(timeout)
        logger.debug("Runtime loop stopped")
