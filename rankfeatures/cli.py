"""Command line entry point: fit a feature model, turn documents into features."""

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from rankfeatures.errors import RankFeaturesError
from rankfeatures.io import load_documents, load_model, save_features, save_model
from rankfeatures.pipeline import fit_feature_model
from rankfeatures.settings import FeatureSettings, get_settings

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rankfeatures",
        description="Query/document text similarity features for ranking models.",
    )
    parser.add_argument("--log-level", default="INFO", help="logging level (default: INFO)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    fit = subparsers.add_parser("fit", help="fit vectorizers and latent projections on a corpus")
    fit.add_argument("--train", type=Path, required=True, help="training documents (JSON lines)")
    fit.add_argument("--model", type=Path, required=True, help="where to write the fitted model")
    fit.add_argument(
        "--settings",
        type=Path,
        default=None,
        help="settings YAML (default: $RANKFEATURES_SETTINGS, else built-in defaults)",
    )

    transform = subparsers.add_parser("transform", help="compute the feature table for documents")
    transform.add_argument("--model", type=Path, required=True, help="fitted model file")
    transform.add_argument("--input", type=Path, required=True, help="documents with queries (JSON lines)")
    transform.add_argument("--output", type=Path, required=True, help="feature table CSV")
    return parser


def resolve_settings(path: Optional[Path]) -> FeatureSettings:
    target = path or os.getenv("RANKFEATURES_SETTINGS")
    if not target:
        return FeatureSettings()
    return get_settings(Path(target))


def run_fit(args: argparse.Namespace) -> int:
    settings = resolve_settings(args.settings)
    documents = load_documents(args.train)
    model = fit_feature_model(documents, settings)
    save_model(model, args.model)
    print(f"Fitted on {len(documents)} documents -> {args.model}")
    return 0


def run_transform(args: argparse.Namespace) -> int:
    model = load_model(args.model)
    documents = load_documents(args.input)
    features = model.transform(documents)
    save_features(features, args.output)
    print(f"Wrote {len(features)} rows x {len(features.columns)} features -> {args.output}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    handlers = {"fit": run_fit, "transform": run_transform}
    try:
        return handlers[args.command](args)
    except (RankFeaturesError, FileNotFoundError, ValueError) as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
