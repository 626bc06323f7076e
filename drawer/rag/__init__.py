"""RAG context package."""

from drawer.rag.context import ASSISTANT_NAME, build_rag_context, summarize_finances

__all__ = ["ASSISTANT_NAME", "build_rag_context", "summarize_finances"]
