#!/usr/bin/env python3
"""
Paper Analysis Example

Runs the full workflow on a PDF, prints progress as it is published,
then asks the chat assistant one question about the result.

Usage:
    python examples/analyze_paper.py path/to/paper.pdf
"""

import asyncio
import sys

from research_lens.agents import ChatAssistant
from research_lens.config import settings
from research_lens.graphs import PaperWorkflow
from research_lens.tools import extract_pdf_text


def print_status(state):
    """Print each new status message."""
    if state.status_text:
        print(f"🔄 {state.status_text}")


async def main(pdf_path: str):
    """Analyse a paper and ask one follow-up question."""
    print("=" * 60)
    print("Research Lens - Paper Analysis Example")
    print("=" * 60)

    text = extract_pdf_text(pdf_path, max_pages=settings.max_pdf_pages)
    print(f"\n📄 Extracted {len(text)} characters from {pdf_path}")

    workflow = PaperWorkflow()
    workflow.subscribe(print_status)

    state = await workflow.run(text)

    if state.error:
        print(f"\n❌ {state.error}")
        return

    print(f"\n📑 {state.analysis_result.title}")
    print(f"   {state.analysis_result.summary}")
    print(f"\nRelated papers: {len(state.related_papers)}")
    for paper in state.related_papers:
        print(f"   [{paper.status.value}] {paper.title} ({paper.year})")

    assistant = ChatAssistant()
    reply = await assistant.ask(
        "What conflicts were found with other papers?",
        analysis=state.analysis_result,
        related_papers=state.related_papers,
    )
    print(f"\n🤖 {reply.content}")


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print(__doc__)
        sys.exit(1)
    asyncio.run(main(sys.argv[1]))
