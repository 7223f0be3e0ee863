"""
Cosine similarity between embeddings.

All comparisons in the analyzer go through this module so the zero-vector
and dimension rules are applied the same way everywhere:
  - vectors of different length → DimensionMismatchError (fatal)
  - either vector has zero magnitude → similarity 0.0 (not an error)
  - results are clipped to [-1, 1] to absorb floating point drift
"""

import logging
from typing import Iterable, List, Optional, Sequence

import numpy as np

from saturation.errors import DimensionMismatchError

logger = logging.getLogger(__name__)

# Similarity above which two pieces of content are considered related.
RELATED_THRESHOLD = 0.7

# Minimum centroid similarity for an idea to be matched to a cluster.
MATCH_THRESHOLD = 0.6


def similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two equal-length embeddings, in [-1, 1]."""
    if len(a) != len(b):
        raise DimensionMismatchError(len(a), len(b), "similarity")

    vec1 = np.asarray(a, dtype=np.float64)
    vec2 = np.asarray(b, dtype=np.float64)

    norm1 = np.linalg.norm(vec1)
    norm2 = np.linalg.norm(vec2)
    if norm1 == 0 or norm2 == 0:
        return 0.0

    return float(np.clip(np.dot(vec1, vec2) / (norm1 * norm2), -1.0, 1.0))


def ensure_same_dimension(
    vectors: Iterable[Sequence[float]],
    expected: Optional[int] = None,
    context: str = "",
) -> int:
    """Check every vector has the same length. Returns that length.

    When ``expected`` is None the first vector sets the dimension.
    """
    dim = expected
    for vec in vectors:
        if dim is None:
            dim = len(vec)
        elif len(vec) != dim:
            raise DimensionMismatchError(dim, len(vec), context)
    return dim or 0


def _normalize_rows(matrix: np.ndarray) -> np.ndarray:
    norms = np.linalg.norm(matrix, axis=1, keepdims=True)
    norms[norms == 0] = 1
    return matrix / norms


def similarity_matrix(vectors: List[Sequence[float]]) -> np.ndarray:
    """Pairwise cosine similarity matrix (N x N).

    Rows with zero magnitude get similarity 0 against everything, including
    themselves.
    """
    if not vectors:
        return np.zeros((0, 0))

    ensure_same_dimension(vectors, context="similarity_matrix")
    normalized = _normalize_rows(np.asarray(vectors, dtype=np.float64))
    return np.clip(normalized @ normalized.T, -1.0, 1.0)


def similarities_to(query: Sequence[float], vectors: List[Sequence[float]]) -> np.ndarray:
    """Cosine similarity of ``query`` against each of ``vectors`` (length N)."""
    if not vectors:
        return np.zeros(0)

    ensure_same_dimension(vectors, expected=len(query), context="similarities_to")

    query_vec = np.asarray(query, dtype=np.float64)
    query_norm = np.linalg.norm(query_vec)
    if query_norm == 0:
        return np.zeros(len(vectors))

    candidates = _normalize_rows(np.asarray(vectors, dtype=np.float64))
    return np.clip(candidates @ (query_vec / query_norm), -1.0, 1.0)


def is_related(score: float, threshold: float = RELATED_THRESHOLD) -> bool:
    """True when a similarity score crosses the relatedness threshold."""
    return score > threshold
