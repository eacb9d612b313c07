"""Viewing-surface interfaces and the paged text surface.

A surface shows one document in one window. It exposes position, zoom, and
navigation to the codec and navigation layers, and reports changes to
whatever observer subscribed to it. Subscriptions are revocable and the
surface holds only the observer handle, so a closed window cannot keep
triggering saves.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from ..document.model import (
    DEFAULT_LAYOUT_DIRECTION,
    DEFAULT_LAYOUT_MODE,
    DIRECTION_HORIZONTAL,
    DIRECTION_VERTICAL,
    LAYOUT_DIRECTIONS,
    LAYOUT_MODES,
    LAYOUT_SINGLE_PAGE_CONTINUOUS,
    LAYOUT_TWO_UP_CONTINUOUS,
    FrameRect,
    PagePoint,
    default_paired_pages,
    is_side_by_side,
)
from .text import read_text, split_pages

MIN_SCALE = 0.25
MAX_SCALE = 4.0
SCALE_STEP = 1.25
DEFAULT_LINES_PER_PAGE = 60


@dataclass(frozen=True)
class ZoomSetting:
    """Either auto-fit or an explicit scale factor, never both."""

    auto_scale: bool = True
    scale_factor: float | None = None

    @classmethod
    def fixed(cls, scale_factor: float) -> ZoomSetting:
        return cls(auto_scale=False, scale_factor=clamp_scale(scale_factor))


AUTO_FIT = ZoomSetting()


def clamp_scale(scale_factor: float) -> float:
    return max(MIN_SCALE, min(MAX_SCALE, float(scale_factor)))


class SurfaceObserver(Protocol):
    """What a surface notifies: the coordinator side of a window."""

    def on_view_state_changed(self) -> None: ...

    def on_window_closing(self) -> None: ...

    def on_window_frame_changed(self, frame: FrameRect) -> None: ...


class ViewingSurface(Protocol):
    """What the codec and navigation layers consume from a surface."""

    layout_mode: str
    layout_direction: str
    paired_pages: bool

    def document_path(self) -> Path | None: ...

    def current_page_index(self) -> int | None: ...

    def current_point_in_page(self) -> PagePoint | None: ...

    def current_zoom(self) -> ZoomSetting: ...

    def set_zoom(self, zoom: ZoomSetting) -> None: ...

    def page_count(self) -> int: ...

    def navigate_to(self, page_index: int, point: PagePoint | None = None) -> None: ...

    def set_layout(self, layout_mode: str, layout_direction: str, paired_pages: bool) -> None: ...

    def subscribe(self, observer: SurfaceObserver) -> Subscription: ...

    def notify_closing(self) -> None: ...


class Subscription:
    """Handle returned by ``subscribe``; ``cancel`` detaches the observer."""

    def __init__(self, registry: ObserverRegistry, observer: SurfaceObserver) -> None:
        self._registry = registry
        self.observer = observer
        self.active = True

    def cancel(self) -> None:
        if not self.active:
            return
        self.active = False
        self._registry.remove(self)


class ObserverRegistry:
    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []

    def __len__(self) -> int:
        return len(self._subscriptions)

    def add(self, observer: SurfaceObserver) -> Subscription:
        subscription = Subscription(self, observer)
        self._subscriptions.append(subscription)
        return subscription

    def remove(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    def observers(self) -> list[SurfaceObserver]:
        return [subscription.observer for subscription in list(self._subscriptions)]


class PagedTextSurface:
    """A text file laid out as fixed-height pages.

    The page-local point is ``(column offset, line offset within page)`` of
    the viewport's top-left corner.
    """

    def __init__(
        self,
        path: Path | None,
        source: str,
        *,
        lines_per_page: int = DEFAULT_LINES_PER_PAGE,
        viewport_rows: int = 24,
        viewport_cols: int = 80,
    ) -> None:
        self.path = path
        self.lines_per_page = max(1, lines_per_page)
        self.pages = split_pages(source, self.lines_per_page)
        self.viewport_rows = max(1, viewport_rows)
        self.viewport_cols = max(1, viewport_cols)
        self.page_index = 0
        self.line_offset = 0
        self.column_offset = 0
        self.zoom = AUTO_FIT
        self.layout_mode = DEFAULT_LAYOUT_MODE
        self.layout_direction = DEFAULT_LAYOUT_DIRECTION
        self.paired_pages = default_paired_pages(DEFAULT_LAYOUT_MODE)
        self._observers = ObserverRegistry()

    @classmethod
    def open(cls, path: Path, **kwargs) -> PagedTextSurface:
        """Load ``path`` from disk; raises ``OSError`` when it cannot be read."""
        return cls(path, read_text(path), **kwargs)

    # Observation

    def subscribe(self, observer: SurfaceObserver) -> Subscription:
        return self._observers.add(observer)

    @property
    def observer_count(self) -> int:
        return len(self._observers)

    def _notify_view_changed(self) -> None:
        for observer in self._observers.observers():
            observer.on_view_state_changed()

    def notify_closing(self) -> None:
        for observer in self._observers.observers():
            observer.on_window_closing()

    def resize(self, rows: int, cols: int) -> None:
        rows = max(1, rows)
        cols = max(1, cols)
        if (rows, cols) == (self.viewport_rows, self.viewport_cols):
            return
        self.viewport_rows = rows
        self.viewport_cols = cols
        frame = FrameRect(0.0, 0.0, float(cols), float(rows))
        for observer in self._observers.observers():
            observer.on_window_frame_changed(frame)

    # Consumed interface

    def document_path(self) -> Path | None:
        return self.path

    def page_count(self) -> int:
        return len(self.pages)

    def page_lines(self, page_index: int) -> list[str]:
        if 0 <= page_index < len(self.pages):
            return self.pages[page_index]
        return []

    def current_page_index(self) -> int | None:
        if self.path is None:
            return None
        return self.page_index

    def current_point_in_page(self) -> PagePoint | None:
        if self.path is None:
            return None
        return PagePoint(float(self.column_offset), float(self.line_offset))

    def current_zoom(self) -> ZoomSetting:
        return self.zoom

    def set_zoom(self, zoom: ZoomSetting) -> None:
        if zoom.auto_scale or zoom.scale_factor is None:
            zoom = AUTO_FIT
        else:
            zoom = ZoomSetting.fixed(zoom.scale_factor)
        if zoom == self.zoom:
            return
        self.zoom = zoom
        self._notify_view_changed()

    def navigate_to(self, page_index: int, point: PagePoint | None = None) -> None:
        """Move to ``page_index`` (clamped); ``point`` or the top of the page."""
        page_index = max(0, min(int(page_index), self.page_count() - 1))
        if point is None or not (math.isfinite(point.x) and math.isfinite(point.y)):
            line_offset, column_offset = 0, 0
        else:
            max_line = max(0, len(self.pages[page_index]) - 1)
            line_offset = max(0, min(int(point.y), max_line))
            column_offset = max(0, int(point.x))
        self._move(page_index, line_offset, column_offset)

    def set_layout(self, layout_mode: str, layout_direction: str, paired_pages: bool) -> None:
        if layout_mode not in LAYOUT_MODES:
            layout_mode = DEFAULT_LAYOUT_MODE
        if layout_direction not in LAYOUT_DIRECTIONS:
            layout_direction = DEFAULT_LAYOUT_DIRECTION
        state = (layout_mode, layout_direction, bool(paired_pages))
        if state == (self.layout_mode, self.layout_direction, self.paired_pages):
            return
        self.layout_mode, self.layout_direction, self.paired_pages = state
        self._notify_view_changed()

    # Interactive movement

    def _move(self, page_index: int, line_offset: int, column_offset: int) -> None:
        state = (page_index, line_offset, column_offset)
        if state == (self.page_index, self.line_offset, self.column_offset):
            return
        self.page_index, self.line_offset, self.column_offset = state
        self._notify_view_changed()

    @property
    def continuous(self) -> bool:
        return self.layout_mode in {LAYOUT_SINGLE_PAGE_CONTINUOUS, LAYOUT_TWO_UP_CONTINUOUS}

    def scroll_lines(self, delta: int) -> None:
        """Scroll by ``delta`` lines; continuous layouts flow across page boundaries."""
        page_index = self.page_index
        line_offset = self.line_offset + delta
        if self.continuous:
            while line_offset < 0 and page_index > 0:
                page_index -= 1
                line_offset += max(1, len(self.pages[page_index]))
            while line_offset >= max(1, len(self.pages[page_index])) and page_index < self.page_count() - 1:
                line_offset -= max(1, len(self.pages[page_index]))
                page_index += 1
        max_line = max(0, len(self.pages[page_index]) - 1)
        line_offset = max(0, min(line_offset, max_line))
        self._move(page_index, line_offset, self.column_offset)

    def scroll_columns(self, delta: int) -> None:
        self._move(self.page_index, self.line_offset, max(0, self.column_offset + delta))

    def pages_per_spread(self) -> int:
        return 2 if is_side_by_side(self.layout_mode) else 1

    def step_page(self, delta: int) -> None:
        """Move by whole pages (whole spreads in side-by-side layouts)."""
        target = self.page_index + delta * self.pages_per_spread()
        self.navigate_to(max(0, min(target, self.page_count() - 1)))

    def zoom_by(self, factor: float) -> None:
        current = self.zoom.scale_factor if self.zoom.scale_factor is not None else 1.0
        self.set_zoom(ZoomSetting.fixed(current * factor))

    def cycle_layout_mode(self) -> None:
        idx = LAYOUT_MODES.index(self.layout_mode) if self.layout_mode in LAYOUT_MODES else 0
        mode = LAYOUT_MODES[(idx + 1) % len(LAYOUT_MODES)]
        self.set_layout(mode, self.layout_direction, default_paired_pages(mode))

    def toggle_direction(self) -> None:
        direction = DIRECTION_HORIZONTAL if self.layout_direction == DIRECTION_VERTICAL else DIRECTION_VERTICAL
        self.set_layout(self.layout_mode, direction, self.paired_pages)

    def toggle_paired_pages(self) -> None:
        self.set_layout(self.layout_mode, self.layout_direction, not self.paired_pages)
