"""Command-line entrypoint.

    research-lens analyze paper.pdf [--json] [--references] [--chat]
    research-lens serve [--host HOST] [--port PORT]
"""

import argparse
import asyncio
import json
import logging
import sys
import uuid

from research_lens.agents.chat import SUGGESTED_QUESTIONS, ChatAssistant, welcome_message
from research_lens.config import settings
from research_lens.errors import DocumentError
from research_lens.graphs.workflow import PaperWorkflow
from research_lens.state import PaperStatus, WorkspaceState
from research_lens.tools.pdf_text import extract_pdf_text

logger = logging.getLogger(__name__)

STATUS_ICONS = {
    PaperStatus.CONFLICTING: "⚠️ ",
    PaperStatus.SUPPORTING: "✅",
    PaperStatus.RELATED: "📄",
}


def print_workspace(state: WorkspaceState) -> None:
    """Human-readable summary of a finished run."""
    print("\n" + "=" * 60)
    if state.error:
        print(f"❌ {state.error}")
        return

    analysis = state.analysis_result
    if analysis is not None:
        print(f"📑 {analysis.title}")
        print("=" * 60)
        print(f"\n{analysis.summary}")
        print(f"\nSample size: {analysis.sample_size}")
        print(f"Methodology: {analysis.methodology}")
        for heading, items in (
            ("Key findings", analysis.key_findings),
            ("Statistical tests", analysis.statistical_tests),
            ("Limitations", analysis.limitations),
        ):
            if items:
                print(f"\n{heading}:")
                for item in items:
                    print(f"   - {item}")

    print(f"\nRelated papers ({len(state.related_papers)}):")
    if not state.related_papers:
        print("   none found")
    for paper in state.related_papers:
        year = paper.year if paper.year is not None else "n.d."
        print(f"\n {STATUS_ICONS[paper.status]} {paper.title} ({year})")
        print(f"     {paper.authors} | {paper.journal or 'Unknown venue'}")
        print(f"     {paper.status_text}: {paper.comparison_details.reason}")
        if paper.url:
            print(f"     {paper.url}")

    if state.references:
        print(f"\nReferences ({len(state.references)}):")
        for ref in state.references:
            print(f"   - {ref.title} ({ref.author}, {ref.year})")


def _print_status(state: WorkspaceState) -> None:
    if state.status_text:
        print(f"🔄 {state.status_text}")


async def chat_loop(assistant: ChatAssistant, state: WorkspaceState) -> None:
    """Interactive questions about the analysed paper."""
    thread_id = str(uuid.uuid4())
    print(f"\n🤖 {welcome_message(state.analysis_result).content}")
    print("\nTry:")
    for question in SUGGESTED_QUESTIONS[:3]:
        print(f"  {question}")
    print("\nCommands: /new - start a new conversation, /quit - exit")
    print("-" * 60)

    while True:
        try:
            user_input = input("\n🧑 You: ").strip()
        except (KeyboardInterrupt, EOFError):
            print("\n\nGoodbye!")
            break

        if not user_input:
            continue
        if user_input.lower() == "/quit":
            print("Goodbye!")
            break
        if user_input.lower() == "/new":
            thread_id = str(uuid.uuid4())
            print(f"🔄 New thread started: {thread_id[:8]}...")
            continue

        reply = await assistant.ask(
            user_input,
            analysis=state.analysis_result,
            related_papers=state.related_papers,
            thread_id=thread_id,
        )
        print(f"\n🤖 Assistant: {reply.content}")


async def analyze(
    text: str,
    as_json: bool = False,
    with_references: bool = False,
    chat: bool = False,
) -> int:
    """Run the workflow on extracted text and report the result."""
    workflow = PaperWorkflow()
    if not as_json:
        workflow.subscribe(_print_status)

    state = await workflow.run(text)
    if with_references and state.analysis_result is not None:
        await workflow.load_references()
        state = workflow.snapshot()

    if as_json:
        print(json.dumps(state.to_json_dict(), indent=2))
    else:
        print_workspace(state)

    if chat and state.analysis_result is not None:
        await chat_loop(ChatAssistant(), state)

    return 1 if state.error else 0


def build_parser() -> argparse.ArgumentParser:
    """Argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="research-lens",
        description="Analyse a research paper and map the literature around it.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser("analyze", help="Analyse a PDF")
    analyze_parser.add_argument("pdf", help="Path to the PDF file")
    analyze_parser.add_argument("--json", action="store_true", help="Print the workspace as JSON")
    analyze_parser.add_argument("--references", action="store_true", help="Also extract references")
    analyze_parser.add_argument("--chat", action="store_true", help="Ask questions afterwards")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default=None, help="Bind address")
    serve_parser.add_argument("--port", type=int, default=None, help="Port")
    serve_parser.add_argument("--debug", action="store_true", help="Flask debug mode")

    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    errors = settings.validate()
    if errors:
        print("\n⚠️  Configuration Issues:", file=sys.stderr)
        for error in errors:
            print(f"   - {error}", file=sys.stderr)

    if args.command == "serve":
        from research_lens.server import run_server

        run_server(host=args.host, port=args.port, debug=args.debug)
        return 0

    try:
        text = extract_pdf_text(args.pdf, max_pages=settings.max_pdf_pages, filename=args.pdf)
    except DocumentError as e:
        print(f"❌ {e.message} ({args.pdf})", file=sys.stderr)
        return 2
    if not text.strip():
        print(f"❌ No text could be extracted from {args.pdf}", file=sys.stderr)
        return 2

    return asyncio.run(analyze(text, as_json=args.json, with_references=args.references, chat=args.chat))


if __name__ == "__main__":
    sys.exit(main())
