"""Integration tests for the Research Lens workflow.

These tests verify end-to-end functionality including:
- Complete workflow execution with mock LLMs
- Classification merge and ordering across real components
- Degraded stages and error surfacing
- Reference loading
"""
