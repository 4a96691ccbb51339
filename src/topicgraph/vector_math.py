"""
Vector math for topic embeddings.
Cosine similarity between fixed-length vectors.
"""

from typing import List, Sequence, Union

import numpy as np

from .errors import DimensionMismatch

Vector = Union[Sequence[float], np.ndarray]


def cosine_similarity(a: Vector, b: Vector) -> float:
    """
    Calculate cosine similarity between two vectors.

    Ranges from -1 (opposite) to 1 (identical), with 0 meaning orthogonal.
    A zero vector on either side carries no direction, so the result is 0.0.

    Args:
        a: First vector
        b: Second vector

    Returns:
        Cosine similarity score in [-1.0, 1.0]

    Raises:
        DimensionMismatch: If the vectors differ in length

    Examples:
        >>> cosine_similarity([1.0, 0.0], [1.0, 0.0])
        1.0
        >>> cosine_similarity([1.0, 0.0], [0.0, 1.0])
        0.0
        >>> cosine_similarity([1.0, 0.0], [-1.0, 0.0])
        -1.0
    """
    v1 = np.asarray(a, dtype=np.float64)
    v2 = np.asarray(b, dtype=np.float64)

    if v1.shape != v2.shape:
        raise DimensionMismatch(
            f"Cannot compare vectors of length {v1.size} and {v2.size}"
        )

    norm1 = np.linalg.norm(v1)
    norm2 = np.linalg.norm(v2)

    if norm1 == 0 or norm2 == 0:
        return 0.0

    sim = float(np.dot(v1, v2) / (norm1 * norm2))
    # float rounding can push identical vectors slightly past 1.0
    return max(-1.0, min(1.0, sim))


def is_finite_vector(vector: Vector) -> bool:
    """True if the vector is non-empty and every component is a finite number."""
    try:
        arr = np.asarray(vector, dtype=np.float64)
    except (TypeError, ValueError):
        return False
    return arr.ndim == 1 and arr.size > 0 and bool(np.all(np.isfinite(arr)))


def to_float_list(vector: Vector) -> List[float]:
    """Normalize a vector to a plain list of Python floats."""
    return [float(x) for x in vector]
