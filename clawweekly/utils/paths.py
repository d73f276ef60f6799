"""Path utilities for the VitePress site layout."""

import re
from pathlib import Path
from typing import Tuple

# Issue documents are named by their two-digit, zero-padded week index.
WEEKLY_FILE_RE = re.compile(r"^\d{2}\.md$")


def get_docs_dir(site_root: Path, docs_dir: str = "docs") -> Path:
    """Get the directory holding the weekly documents."""
    return Path(site_root) / docs_dir


def get_weekly_file_name(week: int) -> str:
    return f"{week:02d}.md"


def get_weekly_doc_path(site_root: Path, week: int, docs_dir: str = "docs") -> Path:
    """Get the markdown path for a specific week."""
    return get_docs_dir(site_root, docs_dir) / get_weekly_file_name(week)


def get_weekly_link(week: int, docs_dir: str = "docs") -> str:
    """Get the site-relative link to a week's page."""
    return f"/{docs_dir}/{week:02d}"


def get_site_config_path(site_root: Path, config_file: str = ".vitepress/config.js") -> Path:
    return Path(site_root) / config_file


def get_index_page_path(site_root: Path, index_file: str = "index.md") -> Path:
    return Path(site_root) / index_file


def is_weekly_file(file_name: str) -> bool:
    return WEEKLY_FILE_RE.match(file_name) is not None


def week_from_file_name(file_name: str) -> int:
    """Parse the week index out of a document name like 07.md."""
    if not is_weekly_file(file_name):
        raise ValueError(f"Not a weekly document name: {file_name}")
    return int(file_name[:2])


def parse_repo(repo: str) -> Tuple[str, str]:
    """Parse a repository string into owner and name."""
    if "/" not in repo:
        raise ValueError(f"Repository must be in format 'owner/name', got: {repo}")

    parts = repo.split("/")
    if len(parts) != 2:
        raise ValueError(f"Repository must be in format 'owner/name', got: {repo}")

    owner, name = parts
    if not owner or not name:
        raise ValueError(f"Repository owner and name cannot be empty, got: {repo}")

    return owner, name
