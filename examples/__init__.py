"""
Research Lens - Usage Examples

Examples:
- analyze_paper.py: Analyse a PDF, list related papers, ask a question

Run examples:
    python examples/analyze_paper.py path/to/paper.pdf
"""
