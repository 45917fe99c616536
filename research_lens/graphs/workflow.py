"""Workflow coordinator for one upload's analysis run.

The run fans out into two concurrent branches:

    analysis  ──────────────────────────────┐
    search    ── (stagger) ─────────────────┴── join ── classify

Analysis publishes as soon as it finishes so the UI can render it while
the search is still going. Every publish carries the run's generation and
is dropped if a newer upload has started; starting a new run also cancels
the previous run's tasks, so a superseded run ends silently.
"""

import asyncio
import logging
from typing import Callable

from research_lens.config import settings
from research_lens.errors import (
    RetryPolicy,
    WorkflowError,
    create_llm_retry_policy,
    create_workflow_error_model,
    log_error_with_context,
)
from research_lens.nodes import (
    ConflictClassifier,
    LiteratureSearcher,
    PaperAnalyzer,
    ReferenceExtractor,
)
from research_lens.state import (
    STATUS_CLASSIFYING,
    STATUS_IDLE,
    STATUS_INITIALIZING,
    STATUS_NO_PAPERS,
    STATUS_SEARCHING,
    AnalysisResult,
    Reference,
    RelatedPaper,
    WorkflowStage,
    WorkspaceState,
    create_initial_state,
)

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "An error occurred during analysis."

StateListener = Callable[[WorkspaceState], None]


class PaperWorkflow:
    """Runs analysis, literature search and classification for an upload.

    The workflow is the only writer of workspace state; callers read
    deep-copied snapshots or subscribe to them.
    """

    def __init__(
        self,
        analyzer: PaperAnalyzer | None = None,
        searcher: LiteratureSearcher | None = None,
        classifier: ConflictClassifier | None = None,
        reference_extractor: ReferenceExtractor | None = None,
        retry_policy: RetryPolicy | None = None,
        search_delay: float | None = None,
    ):
        self.retry_policy = retry_policy or create_llm_retry_policy()
        self.analyzer = analyzer or PaperAnalyzer()
        self.searcher = searcher or LiteratureSearcher(retry_policy=self.retry_policy)
        self.classifier = classifier or ConflictClassifier()
        self.reference_extractor = reference_extractor or ReferenceExtractor(
            retry_policy=self.retry_policy
        )
        self.search_delay = settings.search_stagger_delay if search_delay is None else search_delay

        self._state = create_initial_state()
        self._generation = 0
        self._text: str | None = None
        self._run_task: asyncio.Task | None = None
        self._branch_tasks: list[asyncio.Task] = []
        self._listeners: list[StateListener] = []

    # -------------------------------------------------------------------------
    # State access
    # -------------------------------------------------------------------------

    @property
    def generation(self) -> int:
        """Counter of the most recent run."""
        return self._generation

    @property
    def text(self) -> str | None:
        """Extracted text of the current upload."""
        return self._text

    def snapshot(self) -> WorkspaceState:
        """Deep copy of the current workspace state."""
        return self._state.model_copy(deep=True)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Register a callback invoked with a snapshot after every accepted publish.

        Returns:
            Function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.warning(f"State listener failed: {e}")

    def _publish(self, generation: int, **updates) -> bool:
        """Apply updates if the generation is current; returns whether applied."""
        if generation != self._generation:
            logger.debug(f"Dropping update from superseded run {generation}: {sorted(updates)}")
            return False
        self._state = self._state.model_copy(update=updates)
        self._notify()
        return True

    # -------------------------------------------------------------------------
    # Run lifecycle
    # -------------------------------------------------------------------------

    def _begin_run(self, text: str) -> int:
        """Start a new generation and cancel whatever the previous run left."""
        self._generation += 1
        generation = self._generation

        for task in self._branch_tasks:
            task.cancel()
        self._branch_tasks = []

        current = asyncio.current_task()
        if self._run_task is not None and self._run_task is not current and not self._run_task.done():
            self._run_task.cancel()
        self._run_task = None

        self._text = text
        self._state = create_initial_state(generation=generation, text_length=len(text)).model_copy(
            update={"analyzing": True, "searching": True, "status_text": STATUS_INITIALIZING}
        )
        self._notify()
        logger.info(f"Starting run {generation} on {len(text)} characters of text")
        return generation

    async def _run_analysis(self, generation: int, text: str) -> AnalysisResult:
        result = await self.retry_policy.execute(
            lambda: self.analyzer.analyze(text),
            description="paper analysis",
        )
        self._publish(generation, analysis_result=result, analyzing=False)
        return result

    async def _run_search(self, generation: int, text: str) -> list[RelatedPaper]:
        if self.search_delay > 0:
            await asyncio.sleep(self.search_delay)
        self._publish(generation, status_text=STATUS_SEARCHING)
        return await self.searcher.search(text)

    async def _join(
        self,
        analysis_task: asyncio.Task,
        search_task: asyncio.Task,
    ) -> tuple[AnalysisResult, list[RelatedPaper]]:
        """
        Wait for both branches.

        An analysis failure cancels the search. A search failure waits for
        the analysis to settle so its result is still published.
        """
        done, _ = await asyncio.wait(
            {analysis_task, search_task},
            return_when=asyncio.FIRST_EXCEPTION,
        )
        if analysis_task in done and not analysis_task.cancelled() and analysis_task.exception():
            search_task.cancel()
            await asyncio.gather(search_task, return_exceptions=True)
            raise analysis_task.exception()

        await asyncio.wait({analysis_task, search_task})
        search_error = None if search_task.cancelled() else search_task.exception()
        analysis = analysis_task.result()
        if search_error is not None:
            raise search_error
        return analysis, search_task.result()

    async def _classify(
        self,
        generation: int,
        analysis: AnalysisResult,
        papers: list[RelatedPaper],
    ) -> None:
        if not papers:
            logger.info("No related papers found; skipping classification")
            self._publish(generation, related_papers=[], status_text=STATUS_NO_PAPERS)
            return

        self._publish(generation, related_papers=papers, status_text=STATUS_CLASSIFYING)
        classified = await self.retry_policy.execute(
            lambda: self.classifier.classify(analysis, papers),
            description="conflict classification",
        )
        self._publish(generation, related_papers=classified)

    def _record_failure(self, generation: int, error: Exception) -> None:
        """Record an unrecovered error; the user-facing message only without an analysis."""
        stage = (
            WorkflowStage.ANALYSIS if self._state.analysis_result is None else WorkflowStage.SEARCH
        ).value
        log_error_with_context(error, stage=stage, context={"generation": generation})

        updates = {"errors": [*self._state.errors, create_workflow_error_model(error, stage)]}
        if self._state.analysis_result is None:
            updates["error"] = str(error) or DEFAULT_ERROR_MESSAGE
        self._publish(generation, **updates)

    async def _execute(self, generation: int, text: str) -> WorkspaceState:
        analysis_task = asyncio.create_task(self._run_analysis(generation, text))
        search_task = asyncio.create_task(self._run_search(generation, text))
        self._branch_tasks = [analysis_task, search_task]

        try:
            analysis, papers = await self._join(analysis_task, search_task)
            await self._classify(generation, analysis, papers)
        except asyncio.CancelledError:
            analysis_task.cancel()
            search_task.cancel()
            if generation != self._generation:
                logger.info(f"Run {generation} superseded by run {self._generation}")
                return self.snapshot()
            raise
        except Exception as e:
            self._record_failure(generation, e)
        finally:
            self._publish(generation, analyzing=False, searching=False, status_text=STATUS_IDLE)
            if generation == self._generation:
                self._branch_tasks = []
                self._run_task = None

        logger.info(
            f"Run {generation} finished: {len(self._state.related_papers)} related papers, "
            f"error={self._state.error!r}"
        )
        return self.snapshot()

    async def run(self, text: str) -> WorkspaceState:
        """
        Analyse an upload's text end to end.

        Args:
            text: Extracted document text.

        Returns:
            Snapshot of the workspace after the run settles. A superseded
            run returns the snapshot of whatever run replaced it.
        """
        generation = self._begin_run(text)
        self._run_task = asyncio.current_task()
        return await self._execute(generation, text)

    def start(self, text: str) -> asyncio.Task:
        """
        Begin a run in the background; must be called on the event loop.

        Returns:
            Task resolving to the settled snapshot.
        """
        generation = self._begin_run(text)
        task = asyncio.get_running_loop().create_task(self._execute(generation, text))
        self._run_task = task
        return task

    # -------------------------------------------------------------------------
    # On-demand operations
    # -------------------------------------------------------------------------

    async def load_references(self) -> list[Reference]:
        """
        Extract the current upload's references, once per upload.

        Returns:
            References already in state, or freshly extracted ones.

        Raises:
            WorkflowError: If no document has been loaded.
        """
        if self._text is None:
            raise WorkflowError(
                "Upload a paper before loading references.",
                stage=WorkflowStage.REFERENCES.value,
            )
        if self._state.references:
            return [ref.model_copy() for ref in self._state.references]

        generation = self._generation
        references = await self.reference_extractor.extract(self._text)
        self._publish(generation, references=references)
        return references
