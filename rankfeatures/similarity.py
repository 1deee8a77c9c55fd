"""Row-aligned dot products between paired query and document matrices."""

from __future__ import annotations

import numpy as np
from scipy import sparse

from rankfeatures.errors import DimensionMismatchError


def row_wise_sparse_dot(a, b) -> np.ndarray:
    """Dot product of ``a[i]`` and ``b[i]`` for every row ``i``.

    Only indices that are nonzero on both sides contribute. Inputs that are
    already L2-normalized give cosine similarity; nothing is renormalized here.
    A narrower matrix is widened with empty columns.
    """

    left = sparse.csr_matrix(a, dtype=np.float64)
    right = sparse.csr_matrix(b, dtype=np.float64)
    if left.shape[0] != right.shape[0]:
        raise DimensionMismatchError(
            f"row counts differ: {left.shape[0]} != {right.shape[0]}"
        )

    width = max(left.shape[1], right.shape[1])
    if left.shape[1] != width:
        left.resize((left.shape[0], width))
    if right.shape[1] != width:
        right.resize((right.shape[0], width))

    products = left.multiply(right)
    return np.asarray(products.sum(axis=1), dtype=np.float64).ravel()


def row_wise_dense_dot(a, b) -> np.ndarray:
    """Plain per-row dot product of two equally shaped dense matrices."""

    left = np.asarray(a, dtype=np.float64)
    right = np.asarray(b, dtype=np.float64)
    if left.ndim != 2 or right.ndim != 2:
        raise DimensionMismatchError("row_wise_dense_dot expects two 2-d matrices")
    if left.shape != right.shape:
        raise DimensionMismatchError(f"shapes differ: {left.shape} != {right.shape}")
    return np.einsum("ij,ij->i", left, right)


__all__ = ["row_wise_dense_dot", "row_wise_sparse_dot"]
