"""Слои водяного знака в порядке отрисовки."""

from timemark.overlay.layers.brand_mark import BrandMarkLayer
from timemark.overlay.layers.handles import PanelHandlesLayer
from timemark.overlay.layers.id_strip import IdStripLayer
from timemark.overlay.layers.info_panel import InfoPanelLayer
from timemark.overlay.layers.map_inset import MapInsetLayer
from timemark.overlay.layers.separators import SeparatorsLayer
from timemark.overlay.layers.text_blocks import TextBlocksLayer
from timemark.overlay.layers.verified_stamp import VerifiedStampLayer

__all__ = [
    "MapInsetLayer",
    "InfoPanelLayer",
    "SeparatorsLayer",
    "TextBlocksLayer",
    "PanelHandlesLayer",
    "IdStripLayer",
    "VerifiedStampLayer",
    "BrandMarkLayer",
]
