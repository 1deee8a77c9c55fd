"""Truncated SVD (latent semantic) projection of sparse term matrices."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

import numpy as np
from scipy import linalg, sparse
from scipy.sparse.linalg import LinearOperator, svds
from sklearn.utils.extmath import svd_flip

from rankfeatures.errors import ConfigurationError, DimensionMismatchError

logger = logging.getLogger(__name__)

# Inputs no larger than this on both axes are decomposed with dense LAPACK.
DENSE_SVD_LIMIT = 500


@dataclass(frozen=True)
class LatentConfig:
    """Rank and centering of a latent embedder."""

    k: int
    center: bool = True
    random_state: int = 0

    def fit(self, matrix) -> "LatentProjection":
        """Keep the top ``k`` singular triples of ``matrix``.

        With ``center`` the decomposition is taken of the matrix minus its
        column means. Centering is applied implicitly, so large sparse inputs
        are never densified.
        """

        X = sparse.csr_matrix(matrix, dtype=np.float64)
        n_rows, n_cols = X.shape
        if self.k <= 0 or self.k > min(n_rows, n_cols):
            raise ConfigurationError(
                f"k must be in [1, {min(n_rows, n_cols)}] for a {n_rows}x{n_cols} matrix, got {self.k}"
            )

        mean = np.asarray(X.mean(axis=0)).ravel() if self.center else None

        if max(n_rows, n_cols) <= DENSE_SVD_LIMIT:
            dense = X.toarray()
            if mean is not None:
                dense -= mean
            u, s, vt = linalg.svd(dense, full_matrices=False)
        elif self.k == min(n_rows, n_cols):
            # ARPACK needs k < min(shape); the short side is at most k wide here.
            u, s, vt = _gram_svd(X, mean)
        else:
            rng = np.random.RandomState(self.random_state)
            v0 = rng.uniform(-1, 1, min(n_rows, n_cols))
            u, s, vt = svds(_as_operator(X, mean), k=self.k, v0=v0)

        order = np.argsort(-s, kind="stable")[: self.k]
        u, s, vt = u[:, order], s[order], vt[order]
        u, vt = svd_flip(u, vt)

        total = float(X.multiply(X).sum())
        if mean is not None:
            total -= n_rows * float(mean @ mean)
        if total > 0:
            ratio = s**2 / total
        else:
            ratio = np.zeros_like(s)

        logger.debug(
            "fitted latent projection k=%d on %dx%d matrix, explained variance %.3f",
            self.k,
            n_rows,
            n_cols,
            float(ratio.sum()),
        )

        return LatentProjection(
            config=self,
            components=_frozen(vt),
            singular_values=_frozen(s),
            mean=_frozen(mean) if mean is not None else None,
            explained_variance_ratio=_frozen(ratio),
        )


@dataclass(frozen=True, eq=False)
class LatentProjection:
    """Right singular vectors (``k x n_features``), singular values and optional column means."""

    config: LatentConfig
    components: np.ndarray = field(repr=False)
    singular_values: np.ndarray = field(repr=False)
    mean: Optional[np.ndarray] = field(repr=False)
    explained_variance_ratio: np.ndarray = field(repr=False)

    @property
    def n_components(self) -> int:
        return int(self.components.shape[0])

    @property
    def n_features(self) -> int:
        return int(self.components.shape[1])

    def transform(self, matrix) -> np.ndarray:
        """Project rows into the latent space, giving a dense ``rows x k`` array.

        Rows without any nonzero entry map to the zero vector.
        """

        X = sparse.csr_matrix(matrix, dtype=np.float64)
        if X.shape[1] != self.n_features:
            raise DimensionMismatchError(
                f"expected {self.n_features} columns, got {X.shape[1]}"
            )

        projected = np.asarray(X @ self.components.T)
        if self.mean is not None:
            projected = projected - self.mean @ self.components.T

        empty = np.asarray(abs(X).sum(axis=1)).ravel() == 0
        projected[empty] = 0.0
        return projected


def fit_latent(matrix, k: int, center: bool = True, random_state: int = 0) -> LatentProjection:
    return LatentConfig(k=k, center=center, random_state=random_state).fit(matrix)


def _as_operator(X: sparse.csr_matrix, mean: Optional[np.ndarray]):
    if mean is None:
        return X

    def matvec(v):
        v = np.ravel(v)
        return X @ v - mean @ v

    def rmatvec(u):
        u = np.ravel(u)
        return X.T @ u - mean * u.sum()

    def matmat(V):
        return X @ V - np.outer(np.ones(X.shape[0]), mean @ V)

    def rmatmat(U):
        return X.T @ U - np.outer(mean, U.sum(axis=0))

    return LinearOperator(
        shape=X.shape,
        matvec=matvec,
        rmatvec=rmatvec,
        matmat=matmat,
        rmatmat=rmatmat,
        dtype=X.dtype,
    )


def _gram_svd(X: sparse.csr_matrix, mean: Optional[np.ndarray]):
    """Full SVD through the Gram matrix of the short side, without densifying ``X``.

    Directions with a numerically zero singular value get zero vectors.
    """

    n_rows, n_cols = X.shape
    ones = np.ones(n_rows)
    if n_cols <= n_rows:
        gram = (X.T @ X).toarray()
        if mean is not None:
            gram -= n_rows * np.outer(mean, mean)
    else:
        gram = (X @ X.T).toarray()
        if mean is not None:
            row_means = X @ mean
            gram -= np.outer(row_means, ones) + np.outer(ones, row_means)
            gram += float(mean @ mean)

    eigenvalues, eigenvectors = linalg.eigh(gram)
    order = np.argsort(-eigenvalues, kind="stable")
    eigenvalues, eigenvectors = eigenvalues[order], eigenvectors[:, order]
    s = np.sqrt(np.clip(eigenvalues, 0.0, None))
    cutoff = np.sqrt(np.finfo(np.float64).eps) * float(s.max()) * 100
    keep = s > cutoff
    s[~keep] = 0.0

    if n_cols <= n_rows:
        vt = eigenvectors.T.copy()
        vt[~keep] = 0.0
        u = np.zeros((n_rows, len(s)))
        basis = eigenvectors[:, keep]
        projected = X @ basis
        if mean is not None:
            projected = projected - np.outer(ones, mean @ basis)
        u[:, keep] = projected / s[keep]
    else:
        u = eigenvectors.copy()
        u[:, ~keep] = 0.0
        vt = np.zeros((len(s), n_cols))
        basis = eigenvectors[:, keep]
        back = X.T @ basis
        if mean is not None:
            back = back - np.outer(mean, basis.sum(axis=0))
        vt[keep] = (back / s[keep]).T
    return u, s, vt


def _frozen(values: np.ndarray) -> np.ndarray:
    array = np.array(values, dtype=np.float64)
    array.setflags(write=False)
    return array


__all__ = ["DENSE_SVD_LIMIT", "LatentConfig", "LatentProjection", "fit_latent"]
