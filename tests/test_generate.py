from clawweekly.commands.generate import collect_snapshots, generate_main, skip_analysis
from clawweekly.models import RepositoryRef

from conftest import make_issue, make_pr


class FakeFetcher:
    def __init__(self, make_snapshot, **kwargs):
        self.make_snapshot = make_snapshot
        self.kwargs = kwargs
        self.calls = []

    def __call__(self, repo, period, token, issue_limit):
        self.calls.append((repo, period, token, issue_limit))
        return self.make_snapshot(ref=repo, **self.kwargs)


def test_generate_writes_document_and_reindexes(site, config, make_snapshot):
    fetch = FakeFetcher(
        make_snapshot,
        commits=3,
        prs=[make_pr(7)],
        issues=[make_issue(11, reactions=5), make_issue(12)],
    )
    content = generate_main(2, config, site, fetch=fetch, sleep=lambda s: None, analyze=skip_analysis)

    doc_path = site / "docs" / "02.md"
    assert doc_path.read_text(encoding="utf-8") == content
    assert content.startswith("# 第2期【2026年1月5日-2026年1月12日】")
    assert "共计 **3** 次提交，**1** 个PR，**2** 个Issue" in content

    config_js = (site / ".vitepress" / "config.js").read_text(encoding="utf-8")
    assert "{ text: '周报列表', link: '/docs/02' }" in config_js
    assert "link: '/docs/02'" in config_js
    index_md = (site / "index.md").read_text(encoding="utf-8")
    assert "- [第2期：2026年1月5日-2026年1月12日](/docs/02)" in index_md


def test_generate_passes_token_and_issue_limit(site, config, make_snapshot):
    config.github.token = "ghp_test"
    config.reporting.issue_limit = 3
    fetch = FakeFetcher(make_snapshot)
    generate_main(1, config, site, fetch=fetch, sleep=lambda s: None, analyze=skip_analysis)

    [(repo, period, token, limit)] = fetch.calls
    assert repo.full_name == "openclaw/openclaw"
    assert period.week == 1
    assert token == "ghp_test"
    assert limit == 3


def test_dry_run_writes_nothing(site, config, make_snapshot):
    config_before = (site / ".vitepress" / "config.js").read_bytes()
    index_before = (site / "index.md").read_bytes()

    content = generate_main(
        1, config, site, dry_run=True,
        fetch=FakeFetcher(make_snapshot, commits=1), sleep=lambda s: None, analyze=skip_analysis,
    )

    assert content.startswith("# 第1期")
    assert list((site / "docs").iterdir()) == []
    assert (site / ".vitepress" / "config.js").read_bytes() == config_before
    assert (site / "index.md").read_bytes() == index_before


def test_generate_creates_missing_docs_dir(tmp_path, config, make_snapshot):
    generate_main(1, config, tmp_path, fetch=FakeFetcher(make_snapshot), sleep=lambda s: None,
                  analyze=skip_analysis)
    assert (tmp_path / "docs" / "01.md").exists()


def test_site_root_defaults_to_config(site, config, make_snapshot):
    config.site.root = str(site)
    generate_main(4, config, fetch=FakeFetcher(make_snapshot), sleep=lambda s: None, analyze=skip_analysis)
    assert (site / "docs" / "04.md").exists()


def test_skip_ai_never_builds_providers(site, config, make_snapshot, monkeypatch):
    config.ai.get_provider("dify").api_key = "d-key"

    def explode(*args, **kwargs):
        raise AssertionError("no AI backend should be called")

    monkeypatch.setattr("clawweekly.utils.ai.requests.post", explode)
    content = generate_main(1, config, site, skip_ai=True, fetch=FakeFetcher(make_snapshot, prs=[make_pr(1)]),
                            sleep=lambda s: None)
    assert "🤖" not in content


def test_sleep_only_between_repositories(config, period, make_snapshot):
    config.repositories = [
        RepositoryRef("openclaw", "openclaw"),
        RepositoryRef("openclaw", "docs"),
        RepositoryRef("openclaw", "skills"),
    ]
    config.reporting.request_delay = 1.5
    delays = []
    fetch = FakeFetcher(make_snapshot)

    snapshots = collect_snapshots(config, period, fetch, delays.append)

    assert delays == [1.5, 1.5]
    assert [s.repo.name for s in snapshots] == ["openclaw", "docs", "skills"]


def test_zero_delay_never_sleeps(config, period, make_snapshot):
    config.repositories = [RepositoryRef("a", "b"), RepositoryRef("c", "d")]
    config.reporting.request_delay = 0
    delays = []
    collect_snapshots(config, period, FakeFetcher(make_snapshot), delays.append)
    assert delays == []
