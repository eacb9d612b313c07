"""Capture and restore of per-window viewing state against a live surface."""

from __future__ import annotations

import logging

from ..document.identity import IdentityResolver
from ..document.model import DocumentViewState, FrameRect, WindowState
from ..errors import IdentityError
from .navigation import NavigationCore
from .surface import AUTO_FIT, ViewingSurface, ZoomSetting

logger = logging.getLogger(__name__)


class ViewStateCodec:
    """Translate between a surface (plus its navigation layer) and ``WindowState``."""

    def __init__(self, resolver: IdentityResolver) -> None:
        self.resolver = resolver

    def capture(
        self,
        surface: ViewingSurface,
        navigation: NavigationCore | None = None,
    ) -> DocumentViewState | None:
        """Capture page, point, zoom, and marks; ``None`` without a current page."""
        page_index = surface.current_page_index()
        if page_index is None or surface.document_path() is None:
            return None
        zoom = surface.current_zoom()
        marks = navigation.export_marks() if navigation is not None else {}
        return DocumentViewState(
            page_index=page_index,
            point=surface.current_point_in_page(),
            scale_factor=None if zoom.auto_scale else zoom.scale_factor,
            uses_auto_scale=zoom.auto_scale,
            marks=marks or None,
        )

    def capture_window(
        self,
        surface: ViewingSurface,
        navigation: NavigationCore | None = None,
        frame: FrameRect | None = None,
    ) -> WindowState | None:
        """Capture a full ``WindowState``, or ``None`` if the document has no identity."""
        path = surface.document_path()
        if path is None:
            return None
        try:
            key = self.resolver.resolve(path)
        except IdentityError as exc:
            logger.warning("Skipping window for %s: %s", path, exc)
            return None
        view = self.capture(surface, navigation)
        if view is None:
            return None
        return WindowState(
            document=key,
            view=view,
            frame=frame,
            layout_mode=surface.layout_mode,
            layout_direction=surface.layout_direction,
            paired_pages=surface.paired_pages,
        )

    def restore(
        self,
        surface: ViewingSurface,
        window: WindowState,
        fingerprint_ok: bool,
        navigation: NavigationCore | None = None,
    ) -> None:
        """Apply ``window`` to ``surface``: layout, then zoom, then position.

        The exact page-local point is used only when the document is unchanged
        since the save; otherwise the view lands on top of the saved page. The
        saved page index is always clamped to the document's current length.
        """
        surface.set_layout(window.layout_mode, window.layout_direction, window.resolved_paired_pages())

        view = window.view
        if view.uses_auto_scale or view.scale_factor is None:
            surface.set_zoom(AUTO_FIT)
        else:
            surface.set_zoom(ZoomSetting.fixed(view.scale_factor))

        page_index = max(0, min(view.page_index, max(0, surface.page_count() - 1)))
        if fingerprint_ok and view.point is not None:
            surface.navigate_to(page_index, view.point)
        else:
            surface.navigate_to(page_index)

        if navigation is not None:
            navigation.import_marks(view.marks, fingerprint_ok)
