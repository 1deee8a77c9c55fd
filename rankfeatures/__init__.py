"""Text similarity features for learning-to-rank: TF-IDF, truncated SVD, row-wise dots."""

from .errors import ConfigurationError, DimensionMismatchError, NotFittedError, RankFeaturesError
from .latent import LatentConfig, LatentProjection, fit_latent
from .models import Document
from .pipeline import FeatureModel, TextFeatureExtractor, fit_feature_model
from .settings import FeatureSettings, FieldGroupSettings, get_settings
from .similarity import row_wise_dense_dot, row_wise_sparse_dot
from .vectorizer import FittedVectorizer, VectorizerConfig, fit_vectorizer

__all__ = [
    "ConfigurationError",
    "DimensionMismatchError",
    "Document",
    "FeatureModel",
    "FeatureSettings",
    "FieldGroupSettings",
    "FittedVectorizer",
    "LatentConfig",
    "LatentProjection",
    "NotFittedError",
    "RankFeaturesError",
    "TextFeatureExtractor",
    "VectorizerConfig",
    "fit_feature_model",
    "fit_latent",
    "fit_vectorizer",
    "get_settings",
    "row_wise_dense_dot",
    "row_wise_sparse_dot",
]
