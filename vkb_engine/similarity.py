from __future__ import annotations

from typing import Sequence

import numpy as np

from vkb_core.errors import DimensionMismatchError

VectorLike = np.ndarray | Sequence[float]


def as_vector(vec: VectorLike) -> np.ndarray:
    return np.asarray(vec, dtype=np.float64).reshape(-1)


def cosine_similarity(a: VectorLike, b: VectorLike) -> float:
    """
    Cosine similarity between two equal-length vectors.

    Returns a value in [-1, 1]: 1 for the same direction, 0 for orthogonal,
    -1 for opposite. A zero-magnitude vector has no direction, so the result
    is 0.0 instead of NaN.

    Raises:
        DimensionMismatchError: if the vectors differ in length.
    """
    va = as_vector(a)
    vb = as_vector(b)
    if va.shape != vb.shape:
        raise DimensionMismatchError(f"Vector dimension mismatch: {va.shape[0]} vs {vb.shape[0]}")

    denominator = float(np.linalg.norm(va)) * float(np.linalg.norm(vb))
    if denominator == 0 or not np.isfinite(denominator):
        return 0.0
    return float(np.clip(np.dot(va, vb) / denominator, -1.0, 1.0))


def cosine_similarities(query: VectorLike, matrix: np.ndarray) -> np.ndarray:
    """Cosine similarity of `query` against every row of `matrix` (zero rows score 0.0)."""
    q = as_vector(query)
    m = np.asarray(matrix, dtype=np.float64)
    if m.size == 0:
        return np.zeros(0)
    if m.ndim != 2 or m.shape[1] != q.shape[0]:
        raise DimensionMismatchError(f"Vector dimension mismatch: {q.shape[0]} vs {m.shape[-1]}")

    q_norm = float(np.linalg.norm(q))
    row_norms = np.linalg.norm(m, axis=1)
    denominators = row_norms * q_norm
    dots = m @ q
    with np.errstate(divide="ignore", invalid="ignore"):
        sims = np.where(denominators > 0, dots / denominators, 0.0)
    return np.clip(sims, -1.0, 1.0)


def embedding_to_list(vec: VectorLike | None) -> list[float] | None:
    if vec is None:
        return None
    if isinstance(vec, np.ndarray):
        return vec.astype(np.float32).tolist()
    return [float(x) for x in vec]
