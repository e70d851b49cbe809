"""LLM integration layer.

This package is intentionally small and conservative:
- No prompt/output logging (notes may contain private information).
- Configurable via environment variables.
- One lazily created client handle per process, shared by every operation.
"""
