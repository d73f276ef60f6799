import pytest

from clawweekly.config import Config
from clawweekly.models import (
    IssueStats,
    IssueSummary,
    PullRequestStats,
    PullRequestSummary,
    Release,
    RepositoryRef,
    RepositorySnapshot,
)
from clawweekly.utils.dates import get_week_period

SITE_CONFIG_JS = """import { defineConfig } from 'vitepress'

export default defineConfig({
  title: 'OpenClaw Weekly',
  base: '/',

  themeConfig: {
    nav: [
      { text: '首页', link: '/' },
      { text: '周报列表', link: '/docs/01' },
      { text: 'GitHub', link: 'https://github.com/openclaw/openclaw' }
    ],

    sidebar: [
      {
        text: '2026年1月',
        items: [
          {
            text: '第1期：2025年12月29日-2026年1月5日',
            link: '/docs/01'
          }
        ]
      }
    ],

    socialLinks: [
      { icon: 'github', link: 'https://github.com/openclaw/openclaw' }
    ],

    search: {
      provider: 'local'
    }
  }
})
"""

INDEX_MD = """---
layout: home
---

# OpenClaw Weekly

## 📚 周报列表

### 2026年1月

- [第1期：2025年12月29日-2026年1月5日](/docs/01)

## 🚀 项目特色

- 自动化数据采集
"""


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("GITHUB_TOKEN", "DIFY_API_KEY", "QWEN_API_KEY", "OPENAI_API_KEY",
                 "ANTHROPIC_API_KEY", "DEBUG", "AI_DEBUG"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def repo():
    return RepositoryRef(owner="openclaw", name="openclaw", display_name="OpenClaw主仓库")


@pytest.fixture
def period():
    return get_week_period(1)


@pytest.fixture
def config(tmp_path):
    cfg = Config()
    cfg.site.root = str(tmp_path)
    cfg.reporting.request_delay = 0
    return cfg


@pytest.fixture
def site(tmp_path):
    (tmp_path / ".vitepress").mkdir()
    (tmp_path / ".vitepress" / "config.js").write_text(SITE_CONFIG_JS, encoding="utf-8")
    (tmp_path / "index.md").write_text(INDEX_MD, encoding="utf-8")
    (tmp_path / "docs").mkdir()
    return tmp_path


@pytest.fixture
def make_snapshot(repo, period):
    def _make(commits=0, prs=None, issues=None, releases=None, ref=None, pr_total=None, issue_total=None):
        prs = prs or []
        issues = issues or []
        return RepositorySnapshot(
            repo=ref or repo,
            period=period,
            commit_count=commits,
            releases=releases or [],
            pull_requests=PullRequestStats(
                total=pr_total if pr_total is not None else len(prs),
                merged=sum(1 for pr in prs if pr.merged_at),
                open=sum(1 for pr in prs if pr.state == "open"),
                items=prs,
            ),
            issues=IssueStats(
                total=issue_total if issue_total is not None else len(issues),
                top_issues=issues,
            ),
        )
    return _make


def make_pr(number, state="closed", merged_at="2025-12-30T10:00:00Z", title=None):
    return PullRequestSummary(
        number=number,
        title=title or f"PR {number}",
        state=state,
        user="octocat",
        created_at="2025-12-30T09:00:00Z",
        merged_at=merged_at,
        url=f"https://github.com/openclaw/openclaw/pull/{number}",
    )


def make_issue(number, reactions=0, title=None):
    return IssueSummary(
        number=number,
        title=title or f"Issue {number}",
        state="open",
        user="lobster",
        reactions=reactions,
        created_at="2025-12-31T09:00:00Z",
        url=f"https://github.com/openclaw/openclaw/issues/{number}",
    )


def make_release(tag="v1.0.0", body="Release notes", published_at="2025-12-30T12:00:00Z"):
    return Release(
        tag_name=tag,
        name=f"OpenClaw {tag}",
        published_at=published_at,
        body=body,
        url=f"https://github.com/openclaw/openclaw/releases/tag/{tag}",
    )
