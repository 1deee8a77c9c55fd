import numpy as np
import pytest
from scipy import sparse

from rankfeatures.errors import DimensionMismatchError
from rankfeatures.similarity import row_wise_dense_dot, row_wise_sparse_dot
from rankfeatures.vectorizer import fit_vectorizer


def test_sparse_dot_uses_shared_indices_only() -> None:
    a = sparse.csr_matrix(np.array([[1.0, 2.0, 0.0], [0.0, 0.0, 3.0]]))
    b = sparse.csr_matrix(np.array([[4.0, 0.0, 5.0], [0.0, 1.0, 2.0]]))

    scores = row_wise_sparse_dot(a, b)

    assert scores.tolist() == [4.0, 6.0]


def test_sparse_dot_zero_rows_score_zero() -> None:
    a = sparse.csr_matrix(np.array([[0.0, 0.0], [1.0, 0.0]]))
    b = sparse.csr_matrix(np.array([[1.0, 1.0], [0.0, 0.0]]))

    scores = row_wise_sparse_dot(a, b)

    assert scores.tolist() == [0.0, 0.0]
    assert not np.isnan(scores).any()


def test_sparse_dot_widens_narrower_matrix() -> None:
    a = sparse.csr_matrix(np.array([[1.0, 2.0]]))
    b = sparse.csr_matrix(np.array([[3.0, 4.0, 5.0]]))

    assert row_wise_sparse_dot(a, b).tolist() == [11.0]
    assert a.shape == (1, 2)


def test_sparse_dot_rejects_row_mismatch() -> None:
    with pytest.raises(DimensionMismatchError):
        row_wise_sparse_dot(sparse.csr_matrix((2, 3)), sparse.csr_matrix((3, 3)))


def test_sparse_dot_of_normalized_rows_is_cosine() -> None:
    vectorizer = fit_vectorizer(
        [["python", "pandas"], ["java", "spring"], ["python", "numpy", "numpy"], ["rust"]],
        use_sublinear_tf=True,
    )
    queries = vectorizer.transform([["python"], ["java", "rust"], ["numpy"], ["unknown"]])
    docs = vectorizer.transform([["python", "pandas"], ["spring"], ["numpy", "python"], ["rust"]])

    scores = row_wise_sparse_dot(queries, docs)

    assert len(scores) == 4
    assert np.all(scores >= -1.0) and np.all(scores <= 1.0 + 1e-12)
    assert scores[0] > 0.0
    assert scores[1] == 0.0
    assert scores[3] == 0.0
    assert row_wise_sparse_dot(docs, docs) == pytest.approx([1.0, 1.0, 1.0, 1.0])


def test_dense_dot_per_row() -> None:
    a = np.array([[1.0, 2.0], [3.0, 4.0], [0.0, 0.0]])
    b = np.array([[5.0, 6.0], [-1.0, 1.0], [7.0, 8.0]])

    assert row_wise_dense_dot(a, b).tolist() == [17.0, 1.0, 0.0]


@pytest.mark.parametrize(
    "shape_a, shape_b",
    [((2, 3), (3, 3)), ((2, 3), (2, 4))],
)
def test_dense_dot_rejects_shape_mismatch(shape_a, shape_b) -> None:
    with pytest.raises(DimensionMismatchError):
        row_wise_dense_dot(np.zeros(shape_a), np.zeros(shape_b))


def test_empty_batches_return_empty_scores() -> None:
    assert row_wise_sparse_dot(sparse.csr_matrix((0, 4)), sparse.csr_matrix((0, 4))).shape == (0,)
    assert row_wise_dense_dot(np.zeros((0, 2)), np.zeros((0, 2))).shape == (0,)
