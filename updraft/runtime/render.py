"""Screen rendering for the active window.

Draws the visible part of the current page (or spread) plus a one-row
status line. Pure string building; the loop writes the result.
"""

from __future__ import annotations

from ..view.surface import PagedTextSurface

PAGE_RULE = "─"


def build_status_line(left_text: str, width: int, right_text: str = "") -> str:
    usable = max(1, width - 1)
    if usable <= len(right_text):
        return right_text[-usable:]
    left_limit = max(0, usable - len(right_text) - 1)
    left = left_text[:left_limit]
    gap = " " * (usable - len(left) - len(right_text))
    return f"{left}{gap}{right_text}"


def _clip(line: str, start: int, width: int) -> str:
    return line[start : start + max(0, width)]


def _page_rule(page_index: int, width: int) -> str:
    label = f" page {page_index + 1} "
    if width <= len(label):
        return label[:width]
    left = (width - len(label)) // 2
    return PAGE_RULE * left + label + PAGE_RULE * (width - len(label) - left)


def page_rows(surface: PagedTextSurface, first_page: int, line_offset: int, rows: int, width: int) -> list[str]:
    """Rows for one column starting at ``first_page``/``line_offset``.

    Continuous layouts flow into following pages, separated by a rule.
    """
    continuous = surface.continuous
    step = surface.pages_per_spread()
    out: list[str] = []
    page_index = first_page
    offset = line_offset
    while len(out) < rows and page_index < surface.page_count():
        lines = surface.page_lines(page_index)
        for line in lines[offset:]:
            if len(out) >= rows:
                break
            out.append(_clip(line, surface.column_offset, width))
        if not continuous:
            break
        page_index += step
        offset = 0
        if len(out) < rows and page_index < surface.page_count():
            out.append(_page_rule(page_index, width))
    while len(out) < rows:
        out.append("~")
    return out


def zoom_label(surface: PagedTextSurface) -> str:
    zoom = surface.current_zoom()
    if zoom.auto_scale or zoom.scale_factor is None:
        return "fit"
    return f"{zoom.scale_factor * 100:.0f}%"


def status_text(
    surface: PagedTextSurface,
    title: str,
    window_number: int,
    window_total: int,
) -> str:
    book = " book" if surface.paired_pages else ""
    return (
        f"[{window_number}/{window_total}] {title}  "
        f"p.{surface.page_index + 1}/{surface.page_count()}  "
        f"{zoom_label(surface)}  {surface.layout_mode} {surface.layout_direction}{book}"
    )


def build_frame(
    surface: PagedTextSurface,
    title: str,
    window_number: int,
    window_total: int,
    width: int,
    height: int,
    message: str = "",
) -> str:
    """Return the full escape-sequence payload for one screen refresh."""
    rows = max(1, height - 1)
    out: list[str] = ["\033[H\033[J"]
    if surface.pages_per_spread() == 2:
        column_width = max(1, (width - 3) // 2)
        left = page_rows(surface, surface.page_index, surface.line_offset, rows, column_width)
        right = page_rows(surface, surface.page_index + 1, surface.line_offset, rows, column_width)
        if surface.page_index + 1 >= surface.page_count():
            right = [""] * rows
        for left_row, right_row in zip(left, right):
            out.append(f"{left_row.ljust(column_width)} │ {right_row}\r\n")
    else:
        for row in page_rows(surface, surface.page_index, surface.line_offset, rows, width):
            out.append(f"{row}\r\n")

    status = build_status_line(status_text(surface, title, window_number, window_total), width, message)
    out.append("\033[7m")
    out.append(status)
    out.append("\033[0m")
    return "".join(out)
