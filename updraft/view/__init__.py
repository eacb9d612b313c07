"""Viewing surfaces, state capture/restore, and interactive navigation."""

from .codec import ViewStateCodec
from .navigation import JumpList, JumpLocation, MarkMode, NavigationCore
from .surface import (
    AUTO_FIT,
    PagedTextSurface,
    Subscription,
    SurfaceObserver,
    ViewingSurface,
    ZoomSetting,
)

__all__ = [
    "AUTO_FIT",
    "JumpList",
    "JumpLocation",
    "MarkMode",
    "NavigationCore",
    "PagedTextSurface",
    "Subscription",
    "SurfaceObserver",
    "ViewStateCodec",
    "ViewingSurface",
    "ZoomSetting",
]
