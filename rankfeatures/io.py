"""Loading documents, exporting feature tables, persisting fitted models."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Union

import joblib
import pandas as pd

from rankfeatures.models.document import Document, documents_from_records
from rankfeatures.pipeline import FeatureModel
from rankfeatures.utils import ensure_exists

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def load_documents(path: PathLike) -> List[Document]:
    """Read tokenized documents from a JSON-lines file.

    Each line holds ``url``, ``query``, ``body``, ``title`` and ``headers``;
    absent fields become empty token sequences.
    """

    target = Path(path)
    if not target.exists():
        raise FileNotFoundError(f"Document file not found: {target}")

    df = pd.read_json(target, lines=True, dtype=False, convert_dates=False)
    records = [_drop_missing(row) for row in df.to_dict(orient="records")]
    documents = documents_from_records(records)
    logger.info("loaded %d documents from %s", len(documents), target)
    return documents


def save_features(features: pd.DataFrame, path: PathLike) -> Path:
    target = Path(path)
    ensure_exists(target)
    features.to_csv(target, index=False)
    return target


def save_model(model: FeatureModel, path: PathLike) -> Path:
    """Dump the fitted vocabularies, weights and projections with joblib."""

    target = Path(path)
    ensure_exists(target)
    joblib.dump(model, target)
    logger.info("saved feature model to %s", target)
    return target


def load_model(path: PathLike) -> FeatureModel:
    target = Path(path)
    if not target.exists():
        raise FileNotFoundError(f"Model file not found: {target}")
    model = joblib.load(target)
    if not isinstance(model, FeatureModel):
        raise TypeError(f"{target} does not contain a FeatureModel (got {type(model).__name__})")
    return model


def _drop_missing(row: Dict[str, Any]) -> Dict[str, Any]:
    cleaned: Dict[str, Any] = {}
    for key, value in row.items():
        if isinstance(value, float) and pd.isna(value):
            continue
        cleaned[key] = value
    return cleaned


__all__ = ["load_documents", "load_model", "save_features", "save_model"]
