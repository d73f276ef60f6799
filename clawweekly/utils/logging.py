"""Rich console logging utilities."""

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.text import Text
from typing import List, Dict, Any

# Global console instance
console = Console()


def success(message: str) -> None:
    """Print a success message."""
    console.print(f"✅ {message}")


def error(message: str) -> None:
    """Print an error message."""
    console.print(f"❌ {message}", style="red")


def warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"⚠️  {message}", style="yellow")


def info(message: str) -> None:
    """Print an info message."""
    console.print(f"ℹ️  {message}", style="blue")


def step(message: str) -> None:
    """Print a step message."""
    console.print(f"📥 {message}", style="cyan")


def debug_block(title: str, body: str) -> None:
    """Print a dimmed block of debug output between rules."""
    console.print(f"\n🔍 [DEBUG] {title}", style="magenta")
    console.rule(style="dim")
    console.print(body, style="dim", markup=False, highlight=False)
    console.rule(style="dim")


def summary_table(title: str, results: List[Dict[str, Any]]) -> None:
    """Print per-repository activity counts for a generated issue."""
    table = Table(title=title)
    table.add_column("Repository", style="cyan")
    table.add_column("Commits", justify="right")
    table.add_column("PRs", justify="right")
    table.add_column("Issues", justify="right")
    table.add_column("Releases", justify="right", style="dim")

    for result in results:
        table.add_row(
            result.get("repo", "Unknown"),
            str(result.get("commits", 0)),
            str(result.get("prs", 0)),
            str(result.get("issues", 0)),
            str(result.get("releases", 0)),
        )

    console.print(table)


def print_config_info(config) -> None:
    """Print configuration information."""
    info_text = Text()
    info_text.append("Configuration loaded:\n", style="bold")
    info_text.append(f"  Project: {config.project_name}\n")
    info_text.append(f"  Repositories: {len(config.repositories)} configured\n")
    info_text.append(f"  GitHub token: {'✅ Found' if config.github.token else '❌ Missing'}\n")
    available = [p.name for p in config.ai.providers if p.api_key]
    info_text.append(f"  AI keys: {', '.join(available) if available else 'none'}\n")
    info_text.append(f"  Site root: {config.site.root}")

    console.print(Panel(info_text, title="Weekly Configuration"))


def print_repo_list(repos: List[str]) -> None:
    """Print a formatted list of repositories."""
    if not repos:
        warning("No repositories configured")
        return

    console.print(f"\n📋 Repositories ({len(repos)}):")
    for repo in repos:
        console.print(f"  • {repo}")
    console.print()
