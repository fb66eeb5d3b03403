"""Система слоёв для наложения водяного знака на кадр."""

from timemark.overlay.base import Layer, OverlayRenderer, RenderContext, Scene
from timemark.overlay.compositor import Compositor, Surface
from timemark.overlay.cv_renderer import CvOverlayRenderer
from timemark.overlay.plugin_loader import build_renderer, discover_plugins
from timemark.overlay.plugin_registry import get_plugin, list_plugins, register_layer

__all__ = [
    "Layer",
    "OverlayRenderer",
    "RenderContext",
    "Scene",
    "Compositor",
    "Surface",
    "CvOverlayRenderer",
    "build_renderer",
    "discover_plugins",
    "get_plugin",
    "list_plugins",
    "register_layer",
]
