"""Test configuration and fixtures."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from langchain_core.messages import AIMessage
from pydantic import ValidationError

from research_lens.errors import RetryPolicy


# Configure pytest-asyncio
pytest_plugins = ['pytest_asyncio']


@pytest.fixture(scope="session")
def anyio_backend():
    """Use asyncio as the async backend."""
    return "asyncio"


def make_model(*replies):
    """Mock chat model answering with the given replies in order.

    Plain ``ainvoke`` calls wrap strings in AIMessages. Calls through
    ``with_structured_output`` validate the reply (a JSON string) against
    the requested schema like the tool-call parser does: a reply that does
    not fit comes back as ``parsing_error`` and ``None`` means the model
    called no tool. Exceptions are raised either way.
    """
    pending = list(replies)
    model = MagicMock()

    def next_reply():
        reply = pending.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return reply

    async def plain(messages, *args, **kwargs):
        return AIMessage(content=next_reply())

    async def structured(messages, *args, **kwargs):
        reply = next_reply()
        raw = AIMessage(content=reply or "")
        if reply is None:
            return {"raw": raw, "parsed": None, "parsing_error": None}
        schema = model.with_structured_output.call_args.args[0]
        try:
            parsed = schema.model_validate_json(reply)
        except ValidationError as e:
            return {"raw": raw, "parsed": None, "parsing_error": e}
        return {"raw": raw, "parsed": parsed, "parsing_error": None}

    model.ainvoke = AsyncMock(side_effect=plain)
    model.with_structured_output.return_value.ainvoke = AsyncMock(side_effect=structured)
    return model


@pytest.fixture
def model_factory():
    """Factory fixture for mock chat models."""
    return make_model


@pytest.fixture
def fast_retry() -> RetryPolicy:
    """Retry policy with the default budget and no waiting."""
    return RetryPolicy(
        retries=3,
        initial_delay=0.0,
        rate_limit_base_delay=0.0,
        rate_limit_step=0.0,
    )


@pytest.fixture
def no_retry() -> RetryPolicy:
    """Single attempt."""
    return RetryPolicy(retries=0, initial_delay=0.0, max_total_delay=None)
