"""Chat assistant grounded in the current paper analysis.

A single-node LangGraph graph answers questions about the uploaded paper.
Conversation history lives in an in-memory checkpointer keyed by thread
id; each turn the model sees the instructions with the paper context, the
last six prior messages and the new question.
"""

import logging
from typing import Annotated, Iterable, TypedDict

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, AnyMessage, HumanMessage, SystemMessage
from langchain_core.runnables import RunnableConfig
from langgraph.checkpoint.memory import MemorySaver
from langgraph.graph import END, START, StateGraph
from langgraph.graph.message import add_messages

from research_lens.agents.base import create_model, response_text
from research_lens.errors import AnalysisError
from research_lens.state.enums import ChatRole, WorkflowStage
from research_lens.state.models import AnalysisResult, ChatMessage, RelatedPaper

logger = logging.getLogger(__name__)

HISTORY_WINDOW = 6
CONTEXT_PAPER_LIMIT = 5
DEFAULT_THREAD_ID = "default"

CHAT_ERROR_REPLY = "Sorry, I encountered an error. Please try again."
EMPTY_REPLY = "Sorry, I could not generate a response."

SUGGESTED_QUESTIONS = [
    "What are the main contributions of this paper?",
    "How does this compare to related work?",
    "What are the limitations I should be aware of?",
    "Explain the methodology in simple terms",
    "What conflicts were found with other papers?",
    "What should I cite in my literature review?",
]

CHAT_INSTRUCTIONS = """You are a helpful research assistant helping a researcher understand their paper and related literature.

Instructions:
1. Answer the user's question based on the paper context provided
2. Reference specific findings, methods, or related papers when relevant
3. If comparing papers, cite specific metrics or differences
4. If the question cannot be answered from the context, politely say so
5. Keep responses concise (2-4 paragraphs max) but informative
6. Use bullet points for lists
7. Be conversational and helpful"""


class ChatState(TypedDict):
    """Graph state: the thread's messages."""

    messages: Annotated[list[AnyMessage], add_messages]


def welcome_message(analysis: AnalysisResult) -> ChatMessage:
    """Opening assistant message for a freshly analysed paper."""
    return ChatMessage(
        role=ChatRole.ASSISTANT,
        content=(
            f'Hi! I\'ve analyzed "{analysis.title}". I can help you understand the paper, '
            "explain its methodology, compare it with related research, or answer any "
            "questions you have about it. What would you like to know?"
        ),
    )


def build_paper_context(
    analysis: AnalysisResult,
    related_papers: Iterable[RelatedPaper] = (),
) -> str:
    """Render the analysis and the first few related papers as prompt context."""
    papers = list(related_papers)[:CONTEXT_PAPER_LIMIT]
    paper_lines = "\n".join(
        f"- {paper.title} ({paper.year if paper.year is not None else 'n.d.'})\n"
        f"  Status: {paper.status_text}\n"
        f"  Finding: {paper.finding}\n"
        f"  Comparison: {paper.comparison_details.reason or 'N/A'}"
        for paper in papers
    )
    return f"""UPLOADED PAPER CONTEXT:
Title: {analysis.title}
Summary: {analysis.summary}
Methodology: {analysis.methodology}
Sample Size: {analysis.sample_size}
Key Findings: {'; '.join(analysis.key_findings)}
Statistical Tests: {', '.join(analysis.statistical_tests)}
Limitations: {'; '.join(analysis.limitations)}

RELATED PAPERS FOUND:
{paper_lines or 'None yet.'}"""


def _to_chat_message(message: AnyMessage) -> ChatMessage | None:
    if isinstance(message, HumanMessage):
        return ChatMessage(role=ChatRole.USER, content=response_text(message))
    if isinstance(message, AIMessage):
        return ChatMessage(role=ChatRole.ASSISTANT, content=response_text(message))
    return None


class ChatAssistant:
    """Answers questions about the analysed paper, one thread per conversation."""

    def __init__(self, model: BaseChatModel | None = None):
        self.model = model or create_model(temperature=0.3)
        self.reset()

    def reset(self) -> None:
        """Forget every conversation; called when a new paper is uploaded."""
        self.checkpointer = MemorySaver()
        self.graph = self._build_graph()

    def _build_graph(self):
        workflow = StateGraph(ChatState)
        workflow.add_node("respond", self._respond)
        workflow.add_edge(START, "respond")
        workflow.add_edge("respond", END)
        return workflow.compile(checkpointer=self.checkpointer)

    async def _respond(self, state: ChatState, config: RunnableConfig) -> dict:
        """Graph node: answer the latest user message."""
        *prior, question = state["messages"]
        system_prompt = config["configurable"].get("system_prompt", CHAT_INSTRUCTIONS)
        window = [SystemMessage(content=system_prompt), *prior[-HISTORY_WINDOW:], question]

        try:
            reply = await self.model.ainvoke(window)
            content = response_text(reply).strip() or EMPTY_REPLY
        except Exception as e:
            logger.error(f"Chat model call failed: {e}")
            content = CHAT_ERROR_REPLY

        return {"messages": [AIMessage(content=content)]}

    async def ask(
        self,
        question: str,
        analysis: AnalysisResult | None,
        related_papers: Iterable[RelatedPaper] = (),
        thread_id: str = DEFAULT_THREAD_ID,
    ) -> ChatMessage:
        """
        Answer a question in a conversation thread.

        Args:
            question: The user's message.
            analysis: Analysis of the uploaded paper.
            related_papers: Current related papers, in display order.
            thread_id: Conversation to continue.

        Returns:
            The assistant's reply.

        Raises:
            AnalysisError: If no analysis is available yet.
            ValueError: If the question is blank.
        """
        if analysis is None:
            raise AnalysisError(
                "Chat is available once a paper has been analyzed.",
                stage=WorkflowStage.CHAT.value,
            )
        if not question.strip():
            raise ValueError("Question must not be empty")

        system_prompt = (
            f"{CHAT_INSTRUCTIONS}\n\n"
            f"Context about the uploaded paper and related research:\n"
            f"{build_paper_context(analysis, related_papers)}"
        )
        config = {"configurable": {"thread_id": thread_id, "system_prompt": system_prompt}}
        result = await self.graph.ainvoke(
            {"messages": [HumanMessage(content=question)]},
            config=config,
        )
        return ChatMessage(role=ChatRole.ASSISTANT, content=response_text(result["messages"][-1]))

    def history(self, thread_id: str = DEFAULT_THREAD_ID) -> list[ChatMessage]:
        """Messages exchanged so far in a thread."""
        snapshot = self.graph.get_state({"configurable": {"thread_id": thread_id}})
        messages = snapshot.values.get("messages", []) if snapshot.values else []
        return [m for m in (_to_chat_message(msg) for msg in messages) if m is not None]
