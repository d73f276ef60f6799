"""Main CLI application for clawweekly."""

import typer
from pathlib import Path
from typing import Optional

from .config import load_config, create_default_config, create_default_keys_file, CONFIG_FILE_NAME, KEYS_FILE_NAME
from .utils.logging import console, success, error, info, print_config_info

# Create the main Typer app
app = typer.Typer(
    name="clawweekly",
    help="Generate the OpenClaw weekly activity report",
    no_args_is_help=True,
)


def _load_config_or_exit():
    try:
        return load_config()
    except RuntimeError as e:
        error(str(e))
        raise typer.Exit(1)


@app.command(help="Fetch activity for a week and write its report")
def generate(
    week: int = typer.Argument(1, help="Issue number; issue 1 covers the week of 2025-12-29"),
    root: Optional[Path] = typer.Option(None, "--root", help="Site root (defaults to config value)"),
    skip_ai: bool = typer.Option(False, "--skip-ai", help="Do not call any AI backend"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print the report without writing files"),
    debug: bool = typer.Option(False, "--debug", help="Print AI request details"),
) -> None:
    """Fetch activity for a week and write its report."""
    from .commands.generate import generate_main

    if week < 1:
        error(f"Week index must be >= 1, got: {week}")
        raise typer.Exit(1)

    config = _load_config_or_exit()
    if debug:
        config.ai.debug = True

    generate_main(week, config, root, skip_ai=skip_ai, dry_run=dry_run)


@app.command(help="Rebuild the sidebar and homepage issue list")
def index(
    root: Optional[Path] = typer.Option(None, "--root", help="Site root (defaults to config value)"),
) -> None:
    """Rebuild the sidebar and homepage from the documents on disk."""
    from .commands.index import index_main

    config = _load_config_or_exit()
    index_main(root if root is not None else Path(config.site.root), config)


@app.command(help="Show the date range covered by an issue")
def period(
    week: int = typer.Argument(..., help="Issue number"),
) -> None:
    """Show the date range covered by an issue."""
    from .utils.dates import get_week_period, format_date_range, month_bucket

    if week < 1:
        error(f"Week index must be >= 1, got: {week}")
        raise typer.Exit(1)

    config = _load_config_or_exit()
    tz = config.site.timezone
    p = get_week_period(week)
    console.print(f"第{week}期: {format_date_range(p.start, p.end, tz)}")
    console.print(f"  UTC: {p.start.isoformat()} → {p.end.isoformat()}")
    console.print(f"  归档月份: {month_bucket(p.end, tz)}")


@app.command()
def init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing configuration files")
) -> None:
    """Initialize a new weekly site with default configuration."""
    config_path = Path(CONFIG_FILE_NAME)
    keys_path = Path(KEYS_FILE_NAME)

    try:
        if config_path.exists() and not force:
            error(f"Configuration file {config_path} already exists. Use --force to overwrite.")
            raise typer.Exit(1)

        if force and config_path.exists():
            config_path.unlink()

        create_default_config(config_path)
        success(f"Created configuration file: {config_path}")

        if keys_path.exists() and not force:
            info(f"Keys file {keys_path} already exists, skipping.")
        else:
            if force and keys_path.exists():
                keys_path.unlink()

            create_default_keys_file(keys_path)
            success(f"Created keys file: {keys_path}")
            info(f"Please edit {KEYS_FILE_NAME} to add your GitHub token and AI keys")

        gitignore_path = Path(".gitignore")
        gitignore_content = gitignore_path.read_text() if gitignore_path.exists() else ""
        if KEYS_FILE_NAME not in gitignore_content:
            with open(gitignore_path, "a") as f:
                if gitignore_content and not gitignore_content.endswith("\n"):
                    f.write("\n")
                f.write(f"\n# Weekly report keys\n{KEYS_FILE_NAME}\n")
            success("Updated .gitignore to exclude keys file")

        console.print("\n🎉 Weekly project initialized!")
        console.print("\nNext steps:")
        console.print(f"1. Edit {KEYS_FILE_NAME} to add your GitHub token")
        console.print(f"2. Edit {CONFIG_FILE_NAME} to configure your repositories")
        console.print("3. Run 'clawweekly generate <week>' to write a report")

    except FileExistsError as e:
        error(str(e))
        raise typer.Exit(1)
    except OSError as e:
        error(f"Failed to initialize project: {e}")
        raise typer.Exit(1)


@app.command()
def config(
    show_keys: bool = typer.Option(False, "--show-keys", help="Show sensitive configuration (GitHub token)")
) -> None:
    """Show current configuration."""
    cfg = _load_config_or_exit()
    print_config_info(cfg)

    if show_keys and cfg.github.token:
        console.print(f"\n🔑 GitHub token: {cfg.github.token[:8]}...")
    elif not cfg.github.token:
        console.print("\n⚠️  No GitHub token configured!")
        console.print(f"Edit {KEYS_FILE_NAME} or set GITHUB_TOKEN environment variable")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output")
) -> None:
    """clawweekly: weekly activity reports for OpenClaw."""
    if verbose:
        import logging
        logging.basicConfig(level=logging.DEBUG)


if __name__ == "__main__":
    app()
