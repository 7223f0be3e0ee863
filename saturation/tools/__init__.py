"""
External collaborator adapters.

- embeddings.py: EmbeddingTool (local sentence-transformers / Ollama)
"""

from saturation.tools.embeddings import EmbeddingProvider, EmbeddingTool

__all__ = ["EmbeddingProvider", "EmbeddingTool"]
