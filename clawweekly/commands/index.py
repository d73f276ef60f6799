"""Rebuild the site sidebar and homepage issue list from the documents on disk."""

import re
from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ..config import Config
from ..models import IndexEntry
from ..utils.dates import format_date_range, get_week_period, month_bucket, parse_month_bucket
from ..utils.logging import success, warning, info, step
from ..utils.paths import (
    get_docs_dir,
    get_index_page_path,
    get_site_config_path,
    get_weekly_link,
    is_weekly_file,
    week_from_file_name,
)

MonthGroup = Tuple[str, List[IndexEntry]]

SIDEBAR_START_RE = re.compile(r"sidebar\s*:\s*\[")
TRAILING_COMMA_RE = re.compile(r"\s*,")


def collect_index_entries(docs_dir: Path, tz: Optional[str] = None, link_prefix: str = "docs") -> List[IndexEntry]:
    """Build an index entry for every NN.md document in ``docs_dir``."""
    entries = []
    for path in sorted(Path(docs_dir).iterdir()):
        if not path.is_file() or not is_weekly_file(path.name):
            continue
        week = week_from_file_name(path.name)
        if week < 1:
            warning(f"Skipping {path.name}: week numbers start at 1")
            continue
        period = get_week_period(week)
        entries.append(IndexEntry(
            week=week,
            title=f"第{week}期：{format_date_range(period.start, period.end, tz)}",
            link=get_weekly_link(week, link_prefix),
            month=month_bucket(period.end, tz),
            end=period.end,
        ))
    return entries


def group_entries_by_month(entries: List[IndexEntry]) -> List[MonthGroup]:
    """Group entries by month, newest month first and newest issue first within it."""
    grouped: Dict[str, List[IndexEntry]] = defaultdict(list)
    for entry in entries:
        grouped[entry.month].append(entry)

    months = sorted(grouped, key=parse_month_bucket, reverse=True)
    return [
        (month, sorted(grouped[month], key=lambda e: e.week, reverse=True))
        for month in months
    ]


def render_sidebar(groups: List[MonthGroup]) -> str:
    """Render the sidebar as a JavaScript array literal."""
    sidebar = "[\n"
    for month_index, (month, items) in enumerate(groups):
        sidebar += "      {\n"
        sidebar += f"        text: '{month}',\n"
        sidebar += "        items: [\n"
        for item_index, item in enumerate(items):
            sidebar += "          {\n"
            sidebar += f"            text: '{item.title}',\n"
            sidebar += f"            link: '{item.link}'\n"
            sidebar += "          }"
            if item_index < len(items) - 1:
                sidebar += ","
            sidebar += "\n"
        sidebar += "        ]\n"
        sidebar += "      }"
        if month_index < len(groups) - 1:
            sidebar += ","
        sidebar += "\n"
    sidebar += "    ]"
    return sidebar


def _skip_string(text: str, pos: int) -> int:
    """Return the index just past the string literal starting at ``pos``."""
    quote = text[pos]
    pos += 1
    while pos < len(text):
        char = text[pos]
        if char == "\\":
            pos += 2
            continue
        if char == quote:
            return pos + 1
        pos += 1
    return pos


def _skip_literal(text: str, pos: int) -> Optional[int]:
    """If a string or comment starts at ``pos``, return the index just past it."""
    if text[pos] in "'\"`":
        return _skip_string(text, pos)
    if text.startswith("//", pos):
        newline = text.find("\n", pos)
        return len(text) if newline == -1 else newline
    if text.startswith("/*", pos):
        close = text.find("*/", pos + 2)
        return len(text) if close == -1 else close + 2
    return None


def _find_sidebar_start(text: str) -> Optional[re.Match]:
    """Find the first ``sidebar: [`` that is code, not inside a string or comment."""
    pos = 0
    while pos < len(text):
        skipped = _skip_literal(text, pos)
        if skipped is not None:
            pos = skipped
            continue
        if text[pos] == "s" and (pos == 0 or not (text[pos - 1].isalnum() or text[pos - 1] in "_$")):
            match = SIDEBAR_START_RE.match(text, pos)
            if match:
                return match
        pos += 1
    return None


def find_sidebar_span(text: str) -> Optional[Tuple[int, int]]:
    """Locate ``sidebar: [...],`` in the site config.

    Returns the span from ``sidebar`` through the trailing comma, or None when
    the array is missing, unbalanced, or not followed by a comma.
    """
    match = _find_sidebar_start(text)
    if not match:
        return None

    depth = 0
    pos = match.end() - 1
    while pos < len(text):
        char = text[pos]
        skipped = _skip_literal(text, pos)
        if skipped is not None:
            pos = skipped
            continue
        if char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
            if depth == 0:
                comma = TRAILING_COMMA_RE.match(text, pos + 1)
                if not comma:
                    return None
                return match.start(), comma.end()
        pos += 1
    return None


def update_nav_link(config_text: str, nav_text: str, link: str) -> Tuple[str, bool]:
    """Point the nav entry labelled ``nav_text`` at ``link``."""
    nav_re = re.compile(rf"(text:\s*'{re.escape(nav_text)}',\s*link:\s*')[^']*(')")
    updated, count = nav_re.subn(lambda m: f"{m.group(1)}{link}{m.group(2)}", config_text, count=1)
    return updated, count > 0


def update_sidebar_config(
    config_text: str,
    groups: List[MonthGroup],
    latest_link: str,
    nav_text: str = "周报列表",
) -> Optional[str]:
    """Rewrite the sidebar and the latest-issue nav link; None if the sidebar is not found."""
    span = find_sidebar_span(config_text)
    if span is None:
        return None

    start, end = span
    updated = f"{config_text[:start]}sidebar: {render_sidebar(groups)},{config_text[end:]}"

    updated, found = update_nav_link(updated, nav_text, latest_link)
    if not found:
        warning(f"导航栏中未找到 '{nav_text}' 链接，跳过导航更新")
    return updated


def render_index_list(groups: List[MonthGroup], start_marker: str = "## 📚 周报列表") -> str:
    """Render the homepage issue list, starting with its own heading."""
    content = f"{start_marker}\n\n"
    for month, items in groups:
        content += f"### {month}\n\n"
        for item in items:
            content += f"- [{item.title}]({item.link})\n"
        content += "\n"
    content += "\n"
    return content


def update_index_content(
    index_text: str,
    groups: List[MonthGroup],
    start_marker: str = "## 📚 周报列表",
    end_marker: str = "## 🚀 项目特色",
) -> Optional[str]:
    """Replace everything from ``start_marker`` up to ``end_marker``; None if either is missing."""
    start = index_text.find(start_marker)
    if start == -1:
        return None
    end = index_text.find(end_marker, start + len(start_marker))
    if end == -1:
        return None
    return index_text[:start] + render_index_list(groups, start_marker) + index_text[end:]


def regenerate_indexes(site_root: Path, config: Config) -> Tuple[bool, bool]:
    """Rewrite the sidebar config and homepage from every document on disk.

    Either file is left untouched, with a warning, when it is missing or its
    anchors cannot be found. Returns whether each file was updated.
    """
    site = config.site
    docs_dir = get_docs_dir(site_root, site.docs_dir)
    if not docs_dir.is_dir():
        warning(f"周报目录不存在: {docs_dir}")
        return False, False

    entries = collect_index_entries(docs_dir, site.timezone, site.docs_dir)
    if not entries:
        warning(f"{docs_dir} 中没有找到周报文件，跳过索引更新")
        return False, False

    groups = group_entries_by_month(entries)
    latest = max(entry.week for entry in entries)
    info(f"共 {len(entries)} 期周报，最新为第{latest}期")

    sidebar_updated = False
    config_path = get_site_config_path(site_root, site.config_file)
    if not config_path.exists():
        warning(f"无法自动更新侧边栏配置: {config_path} 不存在")
    else:
        updated = update_sidebar_config(
            config_path.read_text(encoding="utf-8"),
            groups,
            get_weekly_link(latest, site.docs_dir),
            site.nav_text,
        )
        if updated is None:
            warning(f"无法在 {config_path} 中找到 sidebar 配置，跳过侧边栏更新")
        else:
            config_path.write_text(updated, encoding="utf-8")
            sidebar_updated = True
            success("已自动更新侧边栏配置")

    index_updated = False
    index_path = get_index_page_path(site_root, site.index_file)
    if not index_path.exists():
        warning(f"无法自动更新首页: {index_path} 不存在")
    else:
        updated = update_index_content(
            index_path.read_text(encoding="utf-8"),
            groups,
            site.index_start_marker,
            site.index_end_marker,
        )
        if updated is None:
            warning("无法找到首页更新标记，跳过首页更新")
        else:
            index_path.write_text(updated, encoding="utf-8")
            index_updated = True
            success("已自动更新首页周报列表")

    return sidebar_updated, index_updated


def index_main(site_root: Path, config: Config) -> Tuple[bool, bool]:
    """Regenerate the sidebar and homepage without fetching anything."""
    step(f"正在根据 {get_docs_dir(site_root, config.site.docs_dir)} 重建索引...")
    return regenerate_indexes(site_root, config)
