import pytest
import tomli

from clawweekly.config import (
    CONFIG_FILE_NAME,
    KEYS_FILE_NAME,
    Config,
    create_default_config,
    create_default_keys_file,
    find_config_file,
    load_config,
)


def test_defaults():
    config = Config()
    assert config.project_name == "OpenClaw"
    assert config.editor == "PAAS-AIOPS助手"
    assert [r.full_name for r in config.repositories] == ["openclaw/openclaw"]
    assert config.repositories[0].label == "OpenClaw主仓库"
    assert config.ai.priority == ["dify", "qwen", "openai", "claude"]
    assert config.ai.get_provider("dify").max_payload_chars == 16384
    assert config.reporting.issue_limit == 5
    assert config.reporting.pr_limit == 10
    assert config.site.timezone == "Asia/Shanghai"


def test_default_lists_are_not_shared():
    first, second = Config(), Config()
    first.ai.priority.append("mystery")
    first.repositories.clear()
    assert second.ai.priority == ["dify", "qwen", "openai", "claude"]
    assert len(second.repositories) == 1


def test_no_files_uses_defaults(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    config = load_config()
    assert config.project_name == "OpenClaw"
    assert config.github.token is None


def test_load_from_toml(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    config_path = tmp_path / CONFIG_FILE_NAME
    config_path.write_text(
        """
repositories = ["openclaw/openclaw", { owner = "openclaw", name = "docs", display_name = "文档" }]

[project]
name = "Lobster"
editor = "周报机器人"

[reporting]
issue_limit = 3
request_delay = 0

[site]
root = "site"
timezone = "UTC"

[ai]
priority = ["openai", "dify"]
debug = true

[ai.providers.openai]
model = "gpt-4o"
""",
        encoding="utf-8",
    )
    config = load_config(config_path)

    assert config.project_name == "Lobster"
    assert config.editor == "周报机器人"
    assert [r.full_name for r in config.repositories] == ["openclaw/openclaw", "openclaw/docs"]
    assert config.get_repository("openclaw/docs").label == "文档"
    assert config.get_repository("openclaw/missing") is None
    assert config.reporting.issue_limit == 3
    assert config.reporting.pr_limit == 10
    assert config.site.root == str((tmp_path / "site").resolve())
    assert config.site.timezone == "UTC"
    assert config.ai.priority == ["openai", "dify"]
    assert config.ai.debug is True
    assert config.ai.get_provider("openai").model == "gpt-4o"
    assert config.ai.get_provider("openai").base_url == "https://api.openai.com/v1"


def test_site_root_defaults_to_config_directory(tmp_path):
    config_path = tmp_path / CONFIG_FILE_NAME
    config_path.write_text('[project]\nname = "X"\n', encoding="utf-8")
    config = load_config(config_path)
    assert config.site.root == str(tmp_path.resolve())


def test_config_file_is_found_in_parent(tmp_path, monkeypatch):
    (tmp_path / CONFIG_FILE_NAME).write_text('[project]\nname = "Parent"\n', encoding="utf-8")
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    monkeypatch.chdir(nested)

    assert find_config_file() == tmp_path / CONFIG_FILE_NAME
    assert load_config().project_name == "Parent"


def test_keys_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / KEYS_FILE_NAME).write_text(
        """
[github]
token = "ghp_file"

[ai.qwen]
api_key = "q-file"

[ai.unknown]
api_key = "ignored"
""",
        encoding="utf-8",
    )
    config = load_config()
    assert config.github.token == "ghp_file"
    assert config.ai.get_provider("qwen").api_key == "q-file"
    assert config.ai.get_provider("unknown") is None


def test_environment_fallbacks(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("GITHUB_TOKEN", "ghp_env")
    monkeypatch.setenv("DIFY_API_KEY", "d-env")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-env")
    monkeypatch.setenv("AI_DEBUG", "true")

    config = load_config()
    assert config.github.token == "ghp_env"
    assert config.ai.get_provider("dify").api_key == "d-env"
    assert config.ai.get_provider("claude").api_key == "sk-ant-env"
    assert config.ai.get_provider("openai").api_key is None
    assert config.ai.debug is True


def test_keys_file_wins_over_environment(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("GITHUB_TOKEN", "ghp_env")
    (tmp_path / KEYS_FILE_NAME).write_text('[github]\ntoken = "ghp_file"\n', encoding="utf-8")
    assert load_config().github.token == "ghp_file"


def test_debug_env_must_be_literal_true(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DEBUG", "1")
    assert load_config().ai.debug is False


def test_malformed_config_raises_runtime_error(tmp_path):
    config_path = tmp_path / CONFIG_FILE_NAME
    config_path.write_text("[project\nname = ", encoding="utf-8")
    with pytest.raises(RuntimeError, match="Error loading config"):
        load_config(config_path)


def test_bad_repository_entry_raises_runtime_error(tmp_path):
    config_path = tmp_path / CONFIG_FILE_NAME
    config_path.write_text('repositories = ["no-slash"]\n', encoding="utf-8")
    with pytest.raises(RuntimeError):
        load_config(config_path)


def test_create_default_files(tmp_path):
    config_path = create_default_config(tmp_path / CONFIG_FILE_NAME)
    keys_path = create_default_keys_file(tmp_path / KEYS_FILE_NAME)

    with open(config_path, "rb") as f:
        data = tomli.load(f)
    assert data["project"]["name"] == "OpenClaw"
    assert data["repositories"][0]["owner"] == "openclaw"

    with open(keys_path, "rb") as f:
        keys = tomli.load(f)
    assert set(keys["ai"]) == {"dify", "qwen", "openai", "claude"}

    loaded = load_config(config_path, keys_path)
    assert loaded.site.root == str(tmp_path.resolve())
    assert loaded.github.token is None
    assert not loaded.ai.get_provider("dify").api_key


def test_fresh_keys_file_leaves_environment_token_in_effect(tmp_path, monkeypatch):
    keys_path = create_default_keys_file(tmp_path / KEYS_FILE_NAME)
    monkeypatch.setenv("GITHUB_TOKEN", "ghp_real")
    monkeypatch.setenv("QWEN_API_KEY", "q-real")

    monkeypatch.chdir(tmp_path)
    config = load_config(keys_path=keys_path)

    assert config.github.token == "ghp_real"
    assert config.ai.get_provider("qwen").api_key == "q-real"


def test_create_default_refuses_to_overwrite(tmp_path):
    path = tmp_path / CONFIG_FILE_NAME
    path.write_text("existing", encoding="utf-8")
    with pytest.raises(FileExistsError):
        create_default_config(path)
    assert path.read_text(encoding="utf-8") == "existing"
    keys = tmp_path / KEYS_FILE_NAME
    keys.write_text("", encoding="utf-8")
    with pytest.raises(FileExistsError):
        create_default_keys_file(keys)
