"""Exceptions raised by the feature pipeline."""

from __future__ import annotations


class RankFeaturesError(Exception):
    """Base class for every error raised by rankfeatures."""


class ConfigurationError(RankFeaturesError, ValueError):
    """Invalid fit parameters: empty corpus, degenerate thresholds, rank out of range."""


class DimensionMismatchError(RankFeaturesError, ValueError):
    """Two paired structures disagree on row or column count."""


class NotFittedError(RankFeaturesError, RuntimeError):
    """Transform was requested before fit."""


__all__ = [
    "ConfigurationError",
    "DimensionMismatchError",
    "NotFittedError",
    "RankFeaturesError",
]
