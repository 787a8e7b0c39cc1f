"""
どこで: `palette.render`
何を: パレットを表示/デバッグ用のテキストへ整形する。
なぜ: フロントエンドに依存せず、要素・評価色・order を一目で確認できるようにするため。

出力例::

    DefaultPalette 1.0.0 [History: 3 items]
    Example
    [1 pages] [2 lines] [6 columns] [8 elements] [wrap 16:16]
    Page 0
      Line 0
        00:00:00  #32324E  0
        00:00:01  #0000FF  0
      Line 1
        00:01:00  #2A2A67  2
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

from .address import Select

if TYPE_CHECKING:  # pragma: no cover
    from .palette import Palette


def _group_title(prefix: str, number: int, name: Optional[str], label: Optional[str]) -> str:
    title = f"{prefix} {number}"
    if name and label:
        return f"{title} - {name} ({label})"
    if name or label:
        return f"{title} - {name or label}"
    return title


def render_header(palette: "Palette") -> List[str]:
    desc = palette.describe()
    version = ".".join(str(v) for v in desc.version)
    lines = [f"{desc.title} {version} [History: {desc.history_depth} items]"]
    if desc.name:
        lines.append(desc.name)
    lines.append(
        f"[{desc.page_count} pages] [{desc.line_count} lines] [{desc.column_count} columns] "
        f"[{desc.element_count} elements] [wrap {desc.wrap}]"
    )
    return lines


def render_palette(palette: "Palette") -> str:
    """Full text rendering: header, metadata and one row per element."""
    out = render_header(palette)
    channel_max = palette.policy.channel_max
    page: Optional[int] = None
    line: Optional[int] = None
    for address, color, order in palette.query():
        if address.page != page:
            page, line = address.page, None
            group = Select.page_of(page)
            out.append(_group_title("Page", page, palette.name_of(group), palette.label_of(group)))
        if address.line != line:
            line = address.line
            group = Select.line_of(page, line)
            out.append(
                "  " + _group_title("Line", line, palette.name_of(group), palette.label_of(group))
            )
        out.append(f"    {address.label()}  {color.to_hex(channel_max)}  {order}")
    return "\n".join(out)


__all__ = ["render_header", "render_palette"]
