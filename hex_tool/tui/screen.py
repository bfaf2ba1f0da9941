# tui/screen.py
"""
Отрисовка снимка документа средствами rich: 16 байт в строке + текстовая
колонка, под ними метки и строка статуса. Только форматирование.
"""
from __future__ import annotations
from typing import Optional

from rich.console import Group
from rich.table import Table
from rich.text import Text

from ..codec.decoder import ByteCategory, Nibble, Pane, byte_category, bytes_to_text
from ..editor.document import Snapshot

CATEGORY_STYLE = {
    ByteCategory.NULL: "bright_black",
    ByteCategory.PRINTABLE: "cyan",
    ByteCategory.WHITESPACE: "green",
    ByteCategory.ASCII_OTHER: "magenta",
    ByteCategory.NON_ASCII: "yellow",
}

STYLE_CURSOR = "reverse bold"
STYLE_SELECTION = "on blue"
STYLE_MATCH = "black on yellow"
STYLE_CURRENT_MATCH = "black on bright_yellow"


def _in_ranges(offset: int, ranges) -> Optional[tuple]:
    for start, end in ranges:
        if start <= offset < end:
            return start, end
    return None


def _cell_style(snap: Snapshot, offset: int, byte: int) -> str:
    style = CATEGORY_STYLE[byte_category(byte)]
    match = _in_ranges(offset, snap.search_match_highlights)
    if match is not None:
        style = STYLE_CURRENT_MATCH if match[0] == snap.current_match else STYLE_MATCH
    sel = snap.selection
    if sel is not None and sel.start <= offset < sel.end:
        style = f"{style} {STYLE_SELECTION}"
    return style


def _hex_cell(snap: Snapshot, offset: int, byte: int) -> Text:
    digits = f"{byte:02X}"
    style = _cell_style(snap, offset, byte)
    cell = Text()
    if offset == snap.cursor.offset and snap.cursor.pane is Pane.HEX:
        hi = STYLE_CURSOR if snap.cursor.nibble is Nibble.HIGH else style
        lo = STYLE_CURSOR if snap.cursor.nibble is Nibble.LOW else style
        cell.append(digits[0], hi)
        cell.append(digits[1], lo)
    elif offset == snap.cursor.offset:
        cell.append(digits, f"{style} underline")
    else:
        cell.append(digits, style)
    return cell


def render_rows(snap: Snapshot) -> Table:
    per_row = snap.bytes_per_row
    wide = snap.length > 0xFFFFFF
    table = Table(show_edge=False, box=None, pad_edge=False, header_style="bold")
    table.add_column("Смещение", style="bright_black", no_wrap=True)
    table.add_column(" ".join(f"{i:02X}" for i in range(per_row)), no_wrap=True)
    table.add_column("ASCII", no_wrap=True)

    data = snap.window_bytes
    rows = (len(data) + per_row - 1) // per_row
    # курсор за последним байтом открывает ещё одну строку
    eof_row = snap.cursor.offset == snap.length and snap.length == snap.window_offset + rows * per_row
    for row in range(rows + (1 if eof_row else 0)):
        start = snap.window_offset + row * per_row
        chunk = data[row * per_row:(row + 1) * per_row]
        hex_part = Text()
        text_part = Text()
        for i, b in enumerate(chunk):
            offset = start + i
            if i:
                hex_part.append(" ")
            hex_part.append_text(_hex_cell(snap, offset, b))
            glyph = bytes_to_text([b])
            if offset == snap.cursor.offset and snap.cursor.pane is Pane.TEXT:
                text_part.append(glyph, STYLE_CURSOR)
            else:
                text_part.append(glyph, _cell_style(snap, offset, b))
        if snap.cursor.offset == start + len(chunk) == snap.length and len(chunk) < per_row:
            if chunk:
                hex_part.append(" ")
            hex_part.append("__", STYLE_CURSOR)
            text_part.append(" ", STYLE_CURSOR)
        table.add_row(f"{start:08X}" if wide else f"{start:06X}", hex_part, text_part)
    return table


def render_labels(snap: Snapshot) -> Table:
    grid = Table.grid(padding=(0, 2))
    grid.add_column(style="bold")
    grid.add_column()
    grid.add_column(style="bold")
    grid.add_column()
    cells = []
    for label in snap.labels:
        value = label.value if label.available else "-"
        cells.append((label.title, value))
    for i in range(0, len(cells), 2):
        left = cells[i]
        right = cells[i + 1] if i + 1 < len(cells) else ("", "")
        grid.add_row(left[0], left[1], right[0], right[1])
    return grid


def render_header(snap: Snapshot) -> Text:
    head = Text()
    head.append(f" {snap.path} ", "bold black on cyan")
    head.append(f" {snap.length} байт | {snap.byte_order.value}-endian | панель: {snap.cursor.pane.value} ")
    if snap.dirty:
        head.append(" * изменён ", "bold white on red")
    return head


def render(snap: Snapshot) -> Group:
    parts = [render_header(snap), render_rows(snap), Text(""), render_labels(snap)]
    if snap.notification:
        parts.append(Text(snap.notification, style="yellow"))
    return Group(*parts)
