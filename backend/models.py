"""Pydantic models for the ogcard pipeline."""

from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class OGPRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str = ""
    description: str = ""
    image: str = ""


# ── Layout tree ──────────────────────────────────────────────

class TextNode(BaseModel):
    kind: Literal["text"] = "text"
    text: str
    font_size: float
    margin_right: float = 0


class ImageNode(BaseModel):
    kind: Literal["image"] = "image"
    src: str
    width: float
    height: float
    margin_right: float = 0


class BoxNode(BaseModel):
    kind: Literal["box"] = "box"
    direction: Literal["row", "column"] = "row"
    wrap: bool = False
    align_items: Literal["flex-start", "center"] = "flex-start"
    justify_content: Literal["flex-start", "center"] = "flex-start"
    width: Optional[float] = None
    height: Optional[float] = None
    padding: tuple[float, float, float, float] = (0, 0, 0, 0)  # top, right, bottom, left
    margin_right: float = 0
    children: list["LayoutNode"] = Field(default_factory=list)


LayoutNode = Union[BoxNode, TextNode, ImageNode]

BoxNode.model_rebuild()
