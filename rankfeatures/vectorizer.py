"""TF-IDF vectorizer over pre-tokenized documents."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence

import numpy as np
from scipy import sparse
from sklearn.feature_extraction.text import TfidfVectorizer

from rankfeatures.errors import ConfigurationError

logger = logging.getLogger(__name__)

TokenSequence = Sequence[str]


def _identity_analyzer(tokens: Optional[TokenSequence]) -> List[str]:
    # Module level so fitted vectorizers stay picklable.
    if not tokens:
        return []
    return list(tokens)


@dataclass(frozen=True)
class VectorizerConfig:
    """Construction-time options of a term-weighting vectorizer."""

    min_document_frequency: int = 1
    use_idf: bool = True
    use_l2_norm: bool = True
    use_sublinear_tf: bool = False

    def fit(self, corpus: Sequence[TokenSequence]) -> "FittedVectorizer":
        """Build the vocabulary and term weights from ``corpus``.

        Terms are indexed in lexicographic order. With ``use_idf`` each term is
        weighted by ``log((1 + N) / (1 + df)) + 1``.
        """

        documents = list(corpus)
        if not documents:
            raise ConfigurationError("cannot fit a vectorizer on an empty corpus")
        if self.min_document_frequency < 1:
            raise ConfigurationError(
                f"min_document_frequency must be >= 1, got {self.min_document_frequency}"
            )
        if self.min_document_frequency > len(documents):
            raise ConfigurationError(
                f"min_document_frequency={self.min_document_frequency} exceeds corpus size "
                f"{len(documents)}; the vocabulary would be empty"
            )

        tfidf = TfidfVectorizer(
            analyzer=_identity_analyzer,
            lowercase=False,
            min_df=self.min_document_frequency,
            use_idf=self.use_idf,
            smooth_idf=True,
            sublinear_tf=self.use_sublinear_tf,
            norm="l2" if self.use_l2_norm else None,
            dtype=np.float64,
        )
        try:
            tfidf.fit(documents)
        except ValueError as exc:
            # scikit-learn reports an empty vocabulary after pruning as ValueError
            raise ConfigurationError(f"vectorizer fit failed: {exc}") from exc

        vocabulary = {term: int(index) for term, index in tfidf.vocabulary_.items()}
        if self.use_idf:
            weights = np.array(tfidf.idf_, dtype=np.float64)
        else:
            weights = np.ones(len(vocabulary), dtype=np.float64)
        weights.setflags(write=False)

        logger.debug(
            "fitted vectorizer on %d documents: vocabulary=%d min_df=%d",
            len(documents),
            len(vocabulary),
            self.min_document_frequency,
        )
        return FittedVectorizer(
            config=self,
            _vocabulary=vocabulary,
            weights=weights,
            _tfidf=tfidf,
        )


@dataclass(frozen=True, eq=False)
class FittedVectorizer:
    """Frozen vocabulary and weights; turns token lists into sparse rows."""

    config: VectorizerConfig
    weights: np.ndarray = field(repr=False)
    _vocabulary: Dict[str, int] = field(repr=False)
    _tfidf: TfidfVectorizer = field(repr=False)

    @property
    def vocabulary(self) -> Mapping[str, int]:
        return MappingProxyType(self._vocabulary)

    @property
    def vocabulary_size(self) -> int:
        return len(self.vocabulary)

    def transform(self, docs: Sequence[TokenSequence]) -> sparse.csr_matrix:
        """Weighted term matrix of shape ``(len(docs), vocabulary_size)``.

        Out-of-vocabulary terms are dropped. Rows without any known term stay
        all-zero, also under L2 normalization.
        """

        documents = list(docs)
        if not documents:
            return sparse.csr_matrix((0, self.vocabulary_size), dtype=np.float64)
        return sparse.csr_matrix(self._tfidf.transform(documents), dtype=np.float64)


def fit_vectorizer(
    corpus: Sequence[TokenSequence],
    min_document_frequency: int = 1,
    use_idf: bool = True,
    use_l2_norm: bool = True,
    use_sublinear_tf: bool = False,
) -> FittedVectorizer:
    config = VectorizerConfig(
        min_document_frequency=min_document_frequency,
        use_idf=use_idf,
        use_l2_norm=use_l2_norm,
        use_sublinear_tf=use_sublinear_tf,
    )
    return config.fit(corpus)


__all__ = ["FittedVectorizer", "TokenSequence", "VectorizerConfig", "fit_vectorizer"]
