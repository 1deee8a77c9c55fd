"""Shared fixtures: a tiny tokenized corpus and settings sized for it."""

from typing import List

import pytest

from rankfeatures.models import Document
from rankfeatures.settings import FeatureSettings, FieldGroupSettings


def make_training_documents() -> List[Document]:
    return [
        Document(
            url="https://example.org/python",
            body=("python", "pandas", "dataframe"),
            title=("python", "guide"),
            headers={"h1": [["python", "basics"]], "h2": [["pandas"]]},
        ),
        Document(
            url="https://example.org/java",
            body=("java", "spring", "beans"),
            title=("java", "guide"),
            headers={"h1": [["java", "intro"]]},
        ),
        Document(
            url="https://example.org/numpy",
            body=("python", "numpy", "arrays"),
            title=("numpy", "tutorial"),
            headers={"h1": [["numpy"]], "h3": [["arrays"]]},
        ),
        Document(
            url="https://example.org/rust",
            body=("rust", "cargo", "crates"),
            title=("rust", "book"),
            headers={"h2": [["cargo"]]},
        ),
    ]


def make_small_settings() -> FeatureSettings:
    return FeatureSettings(
        all_text=FieldGroupSettings(min_document_frequency=1, use_sublinear_tf=True, latent_dimensions=2),
        title=FieldGroupSettings(min_document_frequency=1, latent_dimensions=2),
        header=FieldGroupSettings(min_document_frequency=1),
        max_workers=2,
    )


@pytest.fixture
def training_documents() -> List[Document]:
    return make_training_documents()


@pytest.fixture
def small_settings() -> FeatureSettings:
    return make_small_settings()
