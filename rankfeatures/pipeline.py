"""Feature pipeline: fit field-group vectorizers and embedders, emit query/document features."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from rankfeatures.errors import ConfigurationError, NotFittedError
from rankfeatures.latent import LatentProjection
from rankfeatures.models.document import Document, Tokens
from rankfeatures.settings import FeatureSettings, FieldGroupSettings
from rankfeatures.similarity import row_wise_dense_dot, row_wise_sparse_dot
from rankfeatures.utils import parallel_map, timed
from rankfeatures.vectorizer import FittedVectorizer

logger = logging.getLogger(__name__)

QUERY_BODY_SIMILARITY = "queryBodySimilarity"
QUERY_BODY_LSI = "queryBodyLsi"
QUERY_TITLE_SIMILARITY = "queryTitleSimilarity"
QUERY_TITLE_LSI = "queryTitleLsi"
QUERY_HEADER_SIMILARITY = "queryHeaderSimilarity"

DocumentLike = Union[Document, Mapping[str, Any]]
Columns = Dict[str, np.ndarray]


def header_feature_name(tag: str) -> str:
    return f"{QUERY_HEADER_SIMILARITY}_{tag}"


@dataclass(frozen=True)
class FieldGroupModel:
    """Fitted vectorizer of one field group and, for body and title, its embedder."""

    vectorizer: FittedVectorizer
    latent: Optional[LatentProjection] = None


@dataclass(frozen=True)
class _Batch:
    queries: List[Tokens]
    bodies: List[Tokens]
    titles: List[Tokens]
    headers: List[Tokens]
    tagged_headers: Dict[str, List[Tokens]]

    def __len__(self) -> int:
        return len(self.queries)


@dataclass(frozen=True, eq=False)
class FeatureModel:
    """Immutable fitted state; safe to share across concurrent ``transform`` calls."""

    settings: FeatureSettings
    all_text: FieldGroupModel
    title: FieldGroupModel
    header: FieldGroupModel

    @property
    def feature_names(self) -> List[str]:
        names = [
            QUERY_BODY_SIMILARITY,
            QUERY_BODY_LSI,
            QUERY_TITLE_SIMILARITY,
            QUERY_TITLE_LSI,
            QUERY_HEADER_SIMILARITY,
        ]
        names.extend(header_feature_name(tag) for tag in self.settings.header_tags)
        return names

    def transform(self, documents: Iterable[DocumentLike]) -> pd.DataFrame:
        """Feature table with one row per document, in input order.

        Every column is computed before the table is built, so a failure
        leaves no partial result.
        """

        docs = _as_documents(documents)
        with timed("collecting query and field tokens", logger):
            batch = self._collect(docs)

        steps: List[Callable[[_Batch], Columns]] = [
            self._body_features,
            self._title_features,
            self._header_features,
        ]
        results = parallel_map(lambda step: step(batch), steps, self.settings.max_workers)

        columns: Columns = {}
        for result in results:
            columns.update(result)
        return pd.DataFrame(columns, index=pd.RangeIndex(len(batch)), columns=self.feature_names)

    def _collect(self, docs: Sequence[Document]) -> _Batch:
        tags = list(self.settings.header_tags)

        def fields(doc: Document) -> Tuple[Tokens, Tokens, Tokens, Tokens, List[Tokens]]:
            return (
                doc.query,
                doc.body,
                doc.title,
                doc.all_header_tokens(),
                [doc.header_tokens(tag) for tag in tags],
            )

        rows = parallel_map(fields, docs, self.settings.max_workers)
        return _Batch(
            queries=[row[0] for row in rows],
            bodies=[row[1] for row in rows],
            titles=[row[2] for row in rows],
            headers=[row[3] for row in rows],
            tagged_headers={tag: [row[4][idx] for row in rows] for idx, tag in enumerate(tags)},
        )

    def _body_features(self, batch: _Batch) -> Columns:
        vectorizer = self.all_text.vectorizer
        with timed("query/body similarity", logger):
            query_vectors = vectorizer.transform(batch.queries)
            body_vectors = vectorizer.transform(batch.bodies)
            similarity = row_wise_sparse_dot(query_vectors, body_vectors)

        with timed("query/body similarity in the LSI space", logger):
            lsi = _latent_dot(self.all_text.latent, query_vectors, body_vectors)

        return {QUERY_BODY_SIMILARITY: similarity, QUERY_BODY_LSI: lsi}

    def _title_features(self, batch: _Batch) -> Columns:
        vectorizer = self.title.vectorizer
        with timed("query/title similarity", logger):
            query_vectors = vectorizer.transform(batch.queries)
            title_vectors = vectorizer.transform(batch.titles)
            similarity = row_wise_sparse_dot(query_vectors, title_vectors)

        with timed("query/title similarity in the LSI space", logger):
            lsi = _latent_dot(self.title.latent, query_vectors, title_vectors)

        return {QUERY_TITLE_SIMILARITY: similarity, QUERY_TITLE_LSI: lsi}

    def _header_features(self, batch: _Batch) -> Columns:
        vectorizer = self.header.vectorizer
        columns: Columns = {}
        with timed("query/header similarity", logger):
            query_vectors = vectorizer.transform(batch.queries)
            header_vectors = vectorizer.transform(batch.headers)
            columns[QUERY_HEADER_SIMILARITY] = row_wise_sparse_dot(query_vectors, header_vectors)

        with timed("individual header tag features", logger):
            for tag, tokens in batch.tagged_headers.items():
                tag_vectors = vectorizer.transform(tokens)
                columns[header_feature_name(tag)] = row_wise_sparse_dot(query_vectors, tag_vectors)
        return columns


def fit_feature_model(
    documents: Iterable[DocumentLike],
    settings: Optional[FeatureSettings] = None,
) -> FeatureModel:
    """Fit the "all text", title and header field groups on a training corpus.

    The "all text" corpus holds every body followed by every title. Queries are
    not needed for fitting.
    """

    settings = settings or FeatureSettings()
    docs = _as_documents(documents)
    if not docs:
        raise ConfigurationError("cannot fit on an empty document collection")
    _require_latent(settings.all_text, "all_text")
    _require_latent(settings.title, "title")

    with timed("collecting training fields", logger):
        rows = parallel_map(
            lambda doc: (doc.body, doc.title, doc.all_header_tokens()),
            docs,
            settings.max_workers,
        )
    bodies = [row[0] for row in rows]
    titles = [row[1] for row in rows]
    headers = [row[2] for row in rows]

    jobs = [
        ("all_text", settings.all_text, bodies + titles),
        ("title", settings.title, titles),
        ("header", settings.header, headers),
    ]
    all_text, title, header = parallel_map(_fit_group, jobs, settings.max_workers)

    logger.info(
        "fitted feature model on %d documents: vocabulary all=%d title=%d header=%d",
        len(docs),
        all_text.vectorizer.vocabulary_size,
        title.vectorizer.vocabulary_size,
        header.vectorizer.vocabulary_size,
    )
    return FeatureModel(settings=settings, all_text=all_text, title=title, header=header)


def _fit_group(job: Tuple[str, FieldGroupSettings, List[Tokens]]) -> FieldGroupModel:
    name, group, corpus = job
    with timed(f"vectorizing {name}", logger):
        vectorizer = group.vectorizer_config().fit(corpus)

    latent_config = group.latent_config()
    if latent_config is None:
        return FieldGroupModel(vectorizer=vectorizer)

    with timed(f"SVD of {name}", logger):
        latent = latent_config.fit(vectorizer.transform(corpus))
    logger.info(
        "%s latent projection: k=%d explained variance %.3f",
        name,
        latent.n_components,
        float(latent.explained_variance_ratio.sum()),
    )
    return FieldGroupModel(vectorizer=vectorizer, latent=latent)


def _require_latent(group: FieldGroupSettings, name: str) -> None:
    if group.latent_dimensions is None:
        raise ConfigurationError(f"{name}.latent_dimensions must be set")


def _latent_dot(latent: Optional[LatentProjection], left, right) -> np.ndarray:
    if latent is None:
        raise NotFittedError("field group has no latent projection")
    return row_wise_dense_dot(latent.transform(left), latent.transform(right))


def _as_documents(documents: Iterable[DocumentLike]) -> List[Document]:
    docs: List[Document] = []
    for idx, item in enumerate(documents):
        if isinstance(item, Document):
            docs.append(item)
        elif isinstance(item, Mapping):
            try:
                docs.append(Document.from_dict(item))
            except ValueError as exc:
                raise ValueError(f"document {idx}: {exc}") from exc
        else:
            raise TypeError(f"document {idx}: expected Document or mapping, got {type(item).__name__}")
    return docs


class TextFeatureExtractor:
    """Holds the current ``FeatureModel``; ``fit`` replaces it wholesale."""

    def __init__(self, settings: Optional[FeatureSettings] = None) -> None:
        self.settings = settings or FeatureSettings()
        self._model: Optional[FeatureModel] = None

    @property
    def is_fitted(self) -> bool:
        return self._model is not None

    @property
    def model(self) -> FeatureModel:
        if self._model is None:
            raise NotFittedError("TextFeatureExtractor.fit must be called before use")
        return self._model

    @classmethod
    def from_model(cls, model: FeatureModel) -> "TextFeatureExtractor":
        extractor = cls(model.settings)
        extractor._model = model
        return extractor

    def fit(self, documents: Iterable[DocumentLike]) -> "TextFeatureExtractor":
        # Assigned only after every group fit succeeded.
        self._model = fit_feature_model(documents, self.settings)
        return self

    def transform(self, documents: Iterable[DocumentLike]) -> pd.DataFrame:
        return self.model.transform(documents)

    def fit_transform(self, documents: Iterable[DocumentLike]) -> pd.DataFrame:
        docs = list(documents)
        return self.fit(docs).transform(docs)


__all__ = [
    "FeatureModel",
    "FieldGroupModel",
    "QUERY_BODY_LSI",
    "QUERY_BODY_SIMILARITY",
    "QUERY_HEADER_SIMILARITY",
    "QUERY_TITLE_LSI",
    "QUERY_TITLE_SIMILARITY",
    "TextFeatureExtractor",
    "fit_feature_model",
    "header_feature_name",
]
