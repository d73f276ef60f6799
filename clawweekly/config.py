"""Configuration management for clawweekly."""

import os
from pathlib import Path
from typing import Dict, List, Optional
import tomli
import tomli_w
from dataclasses import dataclass, field
from typing import Any

from .models import RepositoryRef
from .utils.paths import parse_repo

CONFIG_FILE_NAME = ".clawweekly.toml"
KEYS_FILE_NAME = ".clawweekly-keys.toml"

# Summarization backends, highest priority first.
DEFAULT_PROVIDER_PRIORITY = ["dify", "qwen", "openai", "claude"]

PROVIDER_ENV_KEYS = {
    "dify": "DIFY_API_KEY",
    "qwen": "QWEN_API_KEY",
    "openai": "OPENAI_API_KEY",
    "claude": "ANTHROPIC_API_KEY",
}


@dataclass
class GitHubConfig:
    """GitHub API configuration."""
    token: Optional[str] = None


@dataclass
class ProviderConfig:
    """One text-generation backend."""
    name: str
    api_key: Optional[str] = None
    model: Optional[str] = None
    base_url: Optional[str] = None
    user: Optional[str] = None
    max_payload_chars: Optional[int] = None


def default_providers() -> List[ProviderConfig]:
    return [
        ProviderConfig(
            name="dify",
            base_url="https://api.dify.ai/v1/workflows/run",
            user="openclaw-weekly-bot",
            max_payload_chars=16384,
        ),
        ProviderConfig(
            name="qwen",
            model="qwen-max",
            base_url="https://dashscope.aliyuncs.com/api/v1/services/aigc/text-generation/generation",
        ),
        ProviderConfig(
            name="openai",
            model="gpt-4",
            base_url="https://api.openai.com/v1",
        ),
        ProviderConfig(
            name="claude",
            model="claude-3-sonnet-20240229",
            base_url="https://api.anthropic.com/v1/messages",
        ),
    ]


@dataclass
class AIConfig:
    """Summarization configuration."""
    priority: List[str] = field(default_factory=lambda: list(DEFAULT_PROVIDER_PRIORITY))
    providers: List[ProviderConfig] = field(default_factory=default_providers)
    debug: bool = False
    max_tokens: int = 500
    temperature: float = 0.7

    def get_provider(self, name: str) -> Optional[ProviderConfig]:
        for provider in self.providers:
            if provider.name == name:
                return provider
        return None


@dataclass
class ReportingConfig:
    """Reporting configuration."""
    issue_limit: int = 5
    pr_limit: int = 10
    request_delay: float = 1.0


@dataclass
class SiteConfig:
    """Layout of the VitePress site the issues are published into."""
    root: str = "."
    docs_dir: str = "docs"
    config_file: str = ".vitepress/config.js"
    index_file: str = "index.md"
    timezone: str = "Asia/Shanghai"
    nav_text: str = "周报列表"
    index_start_marker: str = "## 📚 周报列表"
    index_end_marker: str = "## 🚀 项目特色"


def default_repositories() -> List[RepositoryRef]:
    return [RepositoryRef(owner="openclaw", name="openclaw", display_name="OpenClaw主仓库")]


@dataclass
class Config:
    """Main configuration class."""
    project_name: str = "OpenClaw"
    project_description: str = "OpenClaw 是一个个人 AI 助手，支持多渠道（WhatsApp、Telegram、Slack、Discord 等）集成。"
    editor: str = "PAAS-AIOPS助手"
    repositories: List[RepositoryRef] = field(default_factory=default_repositories)
    github: GitHubConfig = field(default_factory=GitHubConfig)
    ai: AIConfig = field(default_factory=AIConfig)
    reporting: ReportingConfig = field(default_factory=ReportingConfig)
    site: SiteConfig = field(default_factory=SiteConfig)

    def get_repository(self, full_name: str) -> Optional[RepositoryRef]:
        """Get a configured repository by its owner/name."""
        for repo in self.repositories:
            if repo.full_name == full_name:
                return repo
        return None


def find_config_file(file_name: str = CONFIG_FILE_NAME) -> Optional[Path]:
    """Find the config file, checking current directory and parents."""
    current = Path.cwd()

    for parent in [current] + list(current.parents):
        config_path = parent / file_name
        if config_path.exists():
            return config_path

    return None


def find_keys_file() -> Optional[Path]:
    """Find the keys file, checking current directory and parents."""
    return find_config_file(KEYS_FILE_NAME)


def _load_repositories(entries: List[Any]) -> List[RepositoryRef]:
    repositories = []
    for entry in entries:
        if isinstance(entry, str):
            owner, name = parse_repo(entry)
            display_name = None
        elif isinstance(entry, dict):
            owner = entry.get("owner", "")
            name = entry.get("name", "")
            display_name = entry.get("display_name")
        else:
            raise ValueError(f"Unsupported repository entry: {entry!r}")

        if not owner or not name:
            raise ValueError(f"Repository entry needs both owner and name: {entry!r}")
        repositories.append(RepositoryRef(owner=owner, name=name, display_name=display_name))
    return repositories


def _apply_ai_section(config: Config, ai: Dict[str, Any]) -> None:
    config.ai.priority = ai.get("priority", config.ai.priority)
    config.ai.debug = ai.get("debug", config.ai.debug)
    config.ai.max_tokens = ai.get("max_tokens", config.ai.max_tokens)
    config.ai.temperature = ai.get("temperature", config.ai.temperature)

    for name, settings in ai.get("providers", {}).items():
        provider = config.ai.get_provider(name)
        if provider is None:
            provider = ProviderConfig(name=name)
            config.ai.providers.append(provider)
        provider.model = settings.get("model", provider.model)
        provider.base_url = settings.get("base_url", provider.base_url)
        provider.user = settings.get("user", provider.user)
        provider.max_payload_chars = settings.get("max_payload_chars", provider.max_payload_chars)


def load_config(config_path: Optional[Path] = None, keys_path: Optional[Path] = None) -> Config:
    """Load configuration from .clawweekly.toml and .clawweekly-keys.toml files."""
    config = Config()

    # Load main config
    config_path = config_path or find_config_file()
    if config_path:
        try:
            with open(config_path, "rb") as f:
                data = tomli.load(f)

            if "project" in data:
                project = data["project"]
                config.project_name = project.get("name", config.project_name)
                config.project_description = project.get("description", config.project_description)
                config.editor = project.get("editor", config.editor)

            if "repositories" in data:
                config.repositories = _load_repositories(data["repositories"])

            if "reporting" in data:
                reporting = data["reporting"]
                config.reporting.issue_limit = reporting.get("issue_limit", config.reporting.issue_limit)
                config.reporting.pr_limit = reporting.get("pr_limit", config.reporting.pr_limit)
                config.reporting.request_delay = reporting.get("request_delay", config.reporting.request_delay)

            site = data.get("site", {})
            for key in ("docs_dir", "config_file", "index_file", "timezone", "nav_text",
                        "index_start_marker", "index_end_marker"):
                setattr(config.site, key, site.get(key, getattr(config.site, key)))
            # A relative site root is resolved against the config file's directory
            config.site.root = str((Path(config_path).parent / site.get("root", ".")).resolve())

            if "ai" in data:
                _apply_ai_section(config, data["ai"])

        except Exception as e:
            raise RuntimeError(f"Error loading config from {config_path}: {e}")

    # Load keys file
    keys_path = keys_path or find_keys_file()
    if keys_path:
        try:
            with open(keys_path, "rb") as f:
                keys_data = tomli.load(f)

            if "github" in keys_data:
                config.github.token = keys_data["github"].get("token")

            for name, settings in keys_data.get("ai", {}).items():
                provider = config.ai.get_provider(name)
                if provider is not None:
                    provider.api_key = settings.get("api_key")

        except Exception as e:
            raise RuntimeError(f"Error loading keys from {keys_path}: {e}")

    # Fall back to environment variables
    if not config.github.token:
        config.github.token = os.environ.get("GITHUB_TOKEN")

    for provider in config.ai.providers:
        env_key = PROVIDER_ENV_KEYS.get(provider.name)
        if not provider.api_key and env_key:
            provider.api_key = os.environ.get(env_key)

    if os.environ.get("DEBUG") == "true" or os.environ.get("AI_DEBUG") == "true":
        config.ai.debug = True

    return config


def create_default_config(path: Optional[Path] = None) -> Path:
    """Create a default .clawweekly.toml file in the current directory."""
    config_path = path or Path(CONFIG_FILE_NAME)

    if config_path.exists():
        raise FileExistsError(f"Configuration file {config_path} already exists")

    default_config = {
        "project": {
            "name": "OpenClaw",
            "description": Config.project_description,
            "editor": "PAAS-AIOPS助手",
        },
        "repositories": [
            {"owner": "openclaw", "name": "openclaw", "display_name": "OpenClaw主仓库"},
        ],
        "reporting": {
            "issue_limit": 5,
            "pr_limit": 10,
            "request_delay": 1.0,
        },
        "site": {
            "root": ".",
            "docs_dir": "docs",
            "config_file": ".vitepress/config.js",
            "index_file": "index.md",
            "timezone": "Asia/Shanghai",
        },
        "ai": {
            "priority": list(DEFAULT_PROVIDER_PRIORITY),
            "debug": False,
        },
    }

    with open(config_path, "wb") as f:
        tomli_w.dump(default_config, f)
    return config_path


def create_default_keys_file(path: Optional[Path] = None) -> Path:
    """Create a default .clawweekly-keys.toml file in the current directory."""
    keys_path = path or Path(KEYS_FILE_NAME)

    if keys_path.exists():
        raise FileExistsError(f"Keys file {keys_path} already exists")

    default_keys = {
        "github": {
            "token": ""
        },
        "ai": {
            name: {"api_key": ""} for name in DEFAULT_PROVIDER_PRIORITY
        },
    }

    with open(keys_path, "wb") as f:
        tomli_w.dump(default_keys, f)
    return keys_path
