"""Declarative layout of the preview card."""

import logging

from models import BoxNode, ImageNode, TextNode
from segmenter import Segmenter

log = logging.getLogger(__name__)

CANVAS_WIDTH = 1200
CANVAS_HEIGHT = 630
ICON_SIZE = 500
TITLE_FONT_SIZE = 30
DESCRIPTION_FONT_SIZE = 15


def build_layout(title: str, description: str, icon_url: str, segmenter: Segmenter) -> BoxNode:
    """Describe the card as a tree: icon on the left, title over description on the right.

    The description is split into phrases and each phrase becomes its own
    inline item, so lines only break between phrases.
    """
    words = segmenter.segment(description)
    for word in words:
        log.debug("description token: %r", word)

    spans = [TextNode(text=word, font_size=DESCRIPTION_FONT_SIZE) for word in words]

    return BoxNode(
        direction="row",
        align_items="center",
        padding=(60, 30, 60, 30),
        width=CANVAS_WIDTH,
        height=CANVAS_HEIGHT,
        children=[
            ImageNode(src=icon_url, width=ICON_SIZE, height=ICON_SIZE, margin_right=30),
            BoxNode(
                direction="column",
                align_items="flex-start",
                justify_content="center",
                width=600,
                height=500,
                children=[
                    TextNode(text=title, font_size=TITLE_FONT_SIZE),
                    BoxNode(direction="row", wrap=True, children=spans),
                ],
            ),
        ],
    )
