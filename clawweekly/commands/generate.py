"""Generate one weekly issue end to end: fetch, render, write, reindex."""

import time
from pathlib import Path
from typing import Callable, List, Optional

from ..config import Config
from ..models import Period, RepositoryRef, RepositorySnapshot
from ..utils.dates import get_week_period, to_search_date
from ..utils.github import fetch_weekly_data
from ..utils.logging import console, info, step, success, summary_table, print_repo_list
from ..utils.markdown import Analyzer, make_analyzer, render_weekly_report
from ..utils.paths import get_weekly_doc_path
from .index import regenerate_indexes

Fetcher = Callable[[RepositoryRef, Period, Optional[str], int], RepositorySnapshot]


def skip_analysis(data, analysis_type):
    return None


def collect_snapshots(
    config: Config,
    period: Period,
    fetch: Fetcher = fetch_weekly_data,
    sleep: Callable[[float], None] = time.sleep,
) -> List[RepositorySnapshot]:
    """Fetch each configured repository in turn, pausing between them."""
    snapshots = []
    for index, repo in enumerate(config.repositories):
        if index > 0 and config.reporting.request_delay > 0:
            sleep(config.reporting.request_delay)
        snapshots.append(fetch(repo, period, config.github.token, config.reporting.issue_limit))
    return snapshots


def generate_main(
    week: int,
    config: Config,
    site_root: Optional[Path] = None,
    skip_ai: bool = False,
    dry_run: bool = False,
    fetch: Fetcher = fetch_weekly_data,
    sleep: Callable[[float], None] = time.sleep,
    analyze: Optional[Analyzer] = None,
) -> str:
    """Generate the issue for ``week`` and return the rendered markdown."""
    site_root = Path(site_root if site_root is not None else config.site.root)
    period = get_week_period(week)

    step(f"🚀 开始生成第{week}期 {config.project_name} Weekly... 🦞")
    info(f"📅 时间范围: {to_search_date(period.start)} 至 {to_search_date(period.end)}")
    print_repo_list([repo.full_name for repo in config.repositories])

    snapshots = collect_snapshots(config, period, fetch, sleep)

    if analyze is None:
        analyze = skip_analysis if skip_ai else make_analyzer(config)
    content = render_weekly_report(snapshots, week, period, config, analyze)

    if dry_run:
        console.print(content, markup=False, highlight=False)
        info("Dry run: no files were written")
        return content

    output_path = get_weekly_doc_path(site_root, week, config.site.docs_dir)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(content, encoding="utf-8")

    regenerate_indexes(site_root, config)

    success(f"第{week}期周报已生成: {output_path}")
    summary_table(
        "📊 数据统计",
        [
            {
                "repo": s.repo.full_name,
                "commits": s.commit_count,
                "prs": s.pull_requests.total,
                "issues": s.issues.total,
                "releases": len(s.releases),
            }
            for s in snapshots
        ],
    )
    return content
