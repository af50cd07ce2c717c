"""Readyhub ingest — export sources, classification, fragment chunking.

The run orchestration lives in readyhub.ingest.pipeline (imported directly,
it depends on the store and payload layers).
"""

from readyhub.ingest.chunker import FragmentChunker, split_fixed
from readyhub.ingest.classifier import DEFAULT_CLASSIFIER, ClassifiedFile, Classifier, classify
from readyhub.ingest.rules import REQUIRED_KEYS, RULES, ClassificationRule
from readyhub.ingest.sources import FolderSource, SourceFile, SourceReadError, ZipSource, open_source

__all__ = [
    "ClassificationRule",
    "DEFAULT_CLASSIFIER",
    "ClassifiedFile",
    "Classifier",
    "FolderSource",
    "FragmentChunker",
    "REQUIRED_KEYS",
    "RULES",
    "SourceFile",
    "SourceReadError",
    "ZipSource",
    "classify",
    "open_source",
    "split_fixed",
]
