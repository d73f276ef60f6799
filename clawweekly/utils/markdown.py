"""Markdown rendering of a weekly issue."""

from typing import Any, Callable, Dict, List, Optional, Sequence

from ..config import Config
from ..models import Period, Release, RepositorySnapshot
from .ai import analyze_with_ai, build_providers
from .dates import format_date_cn, format_short_date

# (payload, analysis_type) -> summary text, or None to leave it out
Analyzer = Callable[[Any, str], Optional[str]]

BODY_EXCERPT_LIMIT = 200
NO_RELEASES_TEXT = "本周暂无版本发布。"


def truncate_body(text: str, limit: int = BODY_EXCERPT_LIMIT) -> str:
    """Cut a release body to ``limit`` characters, marking the cut with '...'."""
    if len(text) > limit:
        return text[:limit] + "..."
    return text


def aggregate_totals(snapshots: Sequence[RepositorySnapshot]) -> Dict[str, int]:
    """Sum commit, PR, issue and release counts across all repositories."""
    return {
        "commits": sum(s.commit_count for s in snapshots),
        "prs": sum(s.pull_requests.total for s in snapshots),
        "issues": sum(s.issues.total for s in snapshots),
        "releases": sum(len(s.releases) for s in snapshots),
    }


def make_analyzer(config: Config) -> Analyzer:
    """Bind ``analyze_with_ai`` to a config, building the backends once."""
    providers = build_providers(config)

    def analyze(data: Any, analysis_type: str) -> Optional[str]:
        return analyze_with_ai(data, analysis_type, config, providers)

    return analyze


def render_overview(snapshots: Sequence[RepositorySnapshot]) -> str:
    lines = [
        "## 📊 本周活动概览",
        "",
        "| 仓库 | 新增Commit | 新增PR | 新增Issue | 版本发布 |",
        "|------|------------|--------|-----------|----------|",
    ]
    for s in snapshots:
        lines.append(
            f"| {s.repo.label} | {s.commit_count} | {s.pull_requests.total} | {s.issues.total} | {len(s.releases)} |"
        )
    return "\n".join(lines) + "\n"


def render_release(release: Release, payload: Dict[str, Any], analyze: Analyzer, tz: str) -> str:
    content = f"\n**{release.tag_name}** - {release.name or release.tag_name}\n"
    content += f"- 发布时间: {format_short_date(release.published_at, tz)}\n"

    if release.body:
        analysis = analyze([payload], "releases")
        if analysis:
            content += f"\n**🤖 AI 分析**:\n{analysis}\n\n"
        content += f"- 更新内容: {truncate_body(release.body)}\n"

    if release.url:
        content += f"- [查看详情]({release.url})\n"
    return content


def render_releases(snapshots: Sequence[RepositorySnapshot], analyze: Analyzer, tz: str) -> str:
    content = "\n## 🚀 重要更新\n"

    for s in snapshots:
        if not s.releases:
            continue
        content += f"\n### {s.repo.name} 版本发布\n"
        payload = s.to_payload()
        for release, release_payload in zip(s.releases, payload["releases"]):
            content += render_release(release, release_payload, analyze, tz)

    if not any(s.releases for s in snapshots):
        content += f"\n{NO_RELEASES_TEXT}\n"
    return content


def render_repository_activity(snapshot: RepositorySnapshot, analyze: Analyzer, pr_limit: int) -> str:
    prs = snapshot.pull_requests
    issues = snapshot.issues
    payload = snapshot.to_payload()
    content = f"\n### {snapshot.repo.label}\n\n"

    if prs.total > 0:
        shown = prs.items[:pr_limit]
        analysis = analyze(payload["pull_requests"]["items"][:pr_limit], "prs")
        if analysis:
            content += f"**🔀 PR动向分析**:\n{analysis}\n\n"

        if shown:
            content += f"**重要PR** (共{prs.total}个，合并{prs.merged}个，待合并{prs.open}个):\n"
            for pr in shown:
                content += f"- [#{pr.number}]({pr.url}) {pr.title} - @{pr.user}\n"
            content += "\n"

    if issues.total > 0:
        content += "**🔥 本周热门讨论** (按点赞排序):\n"
        for issue in issues.top_issues:
            prefix = f"{issue.reactions}× " if issue.reactions > 0 else ""
            content += f"- {prefix}[#{issue.number}]({issue.url}) {issue.title} - @{issue.user}\n"
        content += "\n"

        analysis = analyze(payload["issues"]["top_issues"], "issues")
        if analysis:
            content += f"**🤖 AI 概括分析**:\n{analysis}\n\n"

    return content


def render_weekly_report(
    snapshots: Sequence[RepositorySnapshot],
    week: int,
    period: Period,
    config: Config,
    analyze: Optional[Analyzer] = None,
) -> str:
    """Render the full markdown document for one issue."""
    if analyze is None:
        analyze = make_analyzer(config)

    tz = config.site.timezone
    start_str = format_date_cn(period.start, tz)
    end_str = format_date_cn(period.end, tz)

    parts: List[str] = [
        f"# 第{week}期【{start_str}-{end_str}】\n\n",
        render_overview(snapshots),
        render_releases(snapshots, analyze, tz),
        "\n## 🔄 本周更新分析\n",
    ]

    for s in snapshots:
        if s.has_activity:
            parts.append(render_repository_activity(s, analyze, config.reporting.pr_limit))

    totals = aggregate_totals(snapshots)
    parts.append(
        "\n## 📝 本期总结\n\n"
        f"本周 {config.project_name} 生态继续保持活跃发展，"
        f"共计 **{totals['commits']}** 次提交，**{totals['prs']}** 个PR，"
        f"**{totals['issues']}** 个Issue（热门讨论见上方）。\n\n"
        "---\n\n"
        f"*本期编辑：{config.editor} | 数据统计截止：{end_str}* 🦞\n"
    )

    return "".join(parts)
