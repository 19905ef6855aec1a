"""Phrase segmentation for word-wrap friendly text, backed by BudouX."""

import logging

import budoux

log = logging.getLogger(__name__)


class Segmenter:
    """Splits text into phrases that are safe to break between.

    Built once per process; the model is read-only afterwards, so a single
    instance is shared across requests.
    """

    def __init__(self, parser: budoux.Parser):
        self._parser = parser

    def segment(self, text: str) -> list[str]:
        if not text:
            return []
        tokens = self._parser.parse(text)
        log.debug("Segmented %d chars into %d tokens", len(text), len(tokens))
        return tokens


def load_segmenter() -> Segmenter:
    """Load the default Japanese BudouX model."""
    log.info("Loading BudouX Japanese model")
    return Segmenter(budoux.load_default_japanese_parser())
