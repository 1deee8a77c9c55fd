import numpy as np
import pytest
from scipy import sparse

from rankfeatures.errors import ConfigurationError, DimensionMismatchError
from rankfeatures.latent import DENSE_SVD_LIMIT, LatentConfig, fit_latent


def small_matrix() -> sparse.csr_matrix:
    return sparse.csr_matrix(
        np.array(
            [
                [1.0, 0.0, 2.0, 0.0],
                [0.0, 3.0, 0.0, 1.0],
                [2.0, 1.0, 1.0, 0.0],
                [0.0, 0.0, 4.0, 2.0],
                [1.0, 1.0, 0.0, 3.0],
            ]
        )
    )


@pytest.mark.parametrize("center", [True, False])
def test_zero_row_projects_to_zero(center: bool) -> None:
    matrix = sparse.csr_matrix(np.array([[1.0, 0.0, 2.0], [0.0, 1.0, 1.0]]))
    projection = fit_latent(matrix, k=1, center=center)

    latent = projection.transform(sparse.csr_matrix((1, 3)))

    assert latent.shape == (1, 1)
    assert latent[0, 0] == 0.0


def test_singular_values_match_dense_decomposition() -> None:
    matrix = small_matrix()
    projection = fit_latent(matrix, k=3, center=True)

    dense = matrix.toarray()
    expected = np.linalg.svd(dense - dense.mean(axis=0), compute_uv=False)[:3]

    np.testing.assert_allclose(projection.singular_values, expected, rtol=1e-9)
    assert list(projection.singular_values) == sorted(projection.singular_values, reverse=True)


def test_components_are_orthonormal() -> None:
    projection = fit_latent(small_matrix(), k=3)

    gram = projection.components @ projection.components.T
    np.testing.assert_allclose(gram, np.eye(3), atol=1e-9)
    assert projection.n_components == 3
    assert projection.n_features == 4


def test_transform_subtracts_fitted_mean() -> None:
    matrix = small_matrix()
    projection = fit_latent(matrix, k=2, center=True)

    latent = projection.transform(matrix)
    dense = matrix.toarray()
    expected = (dense - dense.mean(axis=0)) @ projection.components.T

    np.testing.assert_allclose(latent, expected, atol=1e-12)
    np.testing.assert_allclose(np.linalg.norm(latent, axis=0), projection.singular_values, rtol=1e-9)


def test_transform_accepts_new_row_counts() -> None:
    projection = fit_latent(small_matrix(), k=2, center=False)

    latent = projection.transform(sparse.csr_matrix(np.ones((7, 4))))

    assert latent.shape == (7, 2)


def test_transform_rejects_column_mismatch() -> None:
    projection = fit_latent(small_matrix(), k=2)

    with pytest.raises(DimensionMismatchError):
        projection.transform(sparse.csr_matrix((2, 5)))


@pytest.mark.parametrize("k", [0, -1, 5, 6])
def test_fit_rejects_rank_out_of_range(k: int) -> None:
    with pytest.raises(ConfigurationError):
        LatentConfig(k=k).fit(small_matrix())


def test_full_rank_fit_explains_all_variance() -> None:
    projection = fit_latent(small_matrix(), k=4, center=True)

    assert float(projection.explained_variance_ratio.sum()) == pytest.approx(1.0)


def test_large_sparse_input_uses_iterative_solver() -> None:
    rows = DENSE_SVD_LIMIT + 100
    matrix = sparse.random(rows, 40, density=0.2, format="csr", random_state=0)

    projection = fit_latent(matrix, k=5, center=True)

    dense = matrix.toarray()
    expected = np.linalg.svd(dense - dense.mean(axis=0), compute_uv=False)[:5]
    np.testing.assert_allclose(projection.singular_values, expected, rtol=1e-6)
    np.testing.assert_allclose(
        projection.components @ projection.components.T, np.eye(5), atol=1e-8
    )


def test_fit_is_deterministic() -> None:
    first = fit_latent(small_matrix(), k=2)
    second = fit_latent(small_matrix(), k=2)

    np.testing.assert_array_equal(first.components, second.components)
    np.testing.assert_array_equal(first.singular_values, second.singular_values)


def test_full_rank_on_tall_matrix_matches_dense_decomposition() -> None:
    rows = DENSE_SVD_LIMIT + 200
    matrix = sparse.random(rows, 5, density=0.5, format="csr", random_state=1)

    projection = fit_latent(matrix, k=5, center=True)

    dense = matrix.toarray()
    centered = dense - dense.mean(axis=0)
    expected = np.linalg.svd(centered, compute_uv=False)
    np.testing.assert_allclose(projection.singular_values, expected, rtol=1e-6)
    np.testing.assert_allclose(projection.components @ projection.components.T, np.eye(5), atol=1e-8)


def test_full_rank_on_wide_matrix_matches_dense_decomposition() -> None:
    cols = DENSE_SVD_LIMIT + 200
    matrix = sparse.random(4, cols, density=0.3, format="csr", random_state=2)

    projection = fit_latent(matrix, k=4, center=False)

    expected = np.linalg.svd(matrix.toarray(), compute_uv=False)
    np.testing.assert_allclose(projection.singular_values, expected, rtol=1e-6)
    np.testing.assert_allclose(projection.components @ projection.components.T, np.eye(4), atol=1e-8)
    assert projection.n_features == cols


def test_full_rank_on_wide_centered_matrix_zeroes_degenerate_direction() -> None:
    cols = DENSE_SVD_LIMIT + 200
    matrix = sparse.random(4, cols, density=0.3, format="csr", random_state=3)

    projection = fit_latent(matrix, k=4, center=True)

    # Centering four rows leaves rank three.
    assert projection.singular_values[-1] == 0.0
    assert not projection.components[-1].any()
    assert np.all(np.isfinite(projection.transform(matrix)))
