"""Chat model factories for Anthropic Claude."""

from typing import Any, Type, TypeVar

from langchain_anthropic import ChatAnthropic
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage
from langchain_core.runnables import Runnable
from pydantic import BaseModel

from research_lens.config import settings
from research_lens.errors import LLMResponseError

T = TypeVar("T", bound=BaseModel)

WEB_SEARCH_TOOL_TYPE = "web_search_20250305"


def create_model(
    model_name: str | None = None,
    temperature: float = 0,
    max_tokens: int | None = None,
) -> ChatAnthropic:
    """
    Create a ChatAnthropic model instance.

    Args:
        model_name: Claude model to use (default from settings).
        temperature: Sampling temperature (0 = deterministic).
        max_tokens: Maximum tokens in response.

    Returns:
        Configured ChatAnthropic instance.
    """
    return ChatAnthropic(
        model=model_name or settings.default_model,
        temperature=temperature,
        max_tokens=max_tokens or settings.max_output_tokens,
        api_key=settings.anthropic_api_key,
    )


def create_search_model(
    model: BaseChatModel | None = None,
    max_uses: int | None = None,
) -> Runnable:
    """
    Bind Anthropic's server-side web search tool to a chat model.

    The tool runs on Anthropic's side, so the response already contains
    the grounded answer; no tool-execution loop is needed here.

    Args:
        model: Model to bind (a fresh ChatAnthropic when omitted).
        max_uses: Maximum searches per request.

    Returns:
        Runnable that answers with web search enabled.
    """
    base = model or create_model()
    return base.bind_tools([{
        "type": WEB_SEARCH_TOOL_TYPE,
        "name": "web_search",
        "max_uses": max_uses or settings.web_search_max_uses,
    }])


def response_text(message: Any) -> str:
    """
    Return the plain text of a model response.

    With server tools enabled the content is a list of blocks (text,
    tool use, search results); only the text blocks are kept.

    Args:
        message: An AIMessage (or anything with ``content``).

    Returns:
        Concatenated text content.
    """
    content = getattr(message, "content", message)
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)
    return str(content)


async def invoke_structured(
    model: BaseChatModel,
    output_schema: Type[T],
    prompt: str,
    description: str,
) -> T | None:
    """
    Ask a model for output shaped like a Pydantic schema.

    Uses ``with_structured_output`` with the raw message included, so a
    reply that does not fit the schema surfaces as ``parsing_error``
    rather than an exception from inside the parser.

    Args:
        model: Chat model supporting structured output.
        output_schema: Pydantic model the reply must validate against.
        prompt: User prompt.
        description: What the call is for, used in errors.

    Returns:
        The parsed model, or None when the model gave no structured answer.

    Raises:
        LLMResponseError: If the reply does not validate against the schema.
    """
    structured_llm = model.with_structured_output(output_schema, include_raw=True)
    result = await structured_llm.ainvoke([HumanMessage(content=prompt)])

    parsing_error = result.get("parsing_error")
    if parsing_error is not None:
        raise LLMResponseError(
            f"{description} response did not match {output_schema.__name__}: {parsing_error}",
            response_body=response_text(result.get("raw")),
        )
    return result.get("parsed")
