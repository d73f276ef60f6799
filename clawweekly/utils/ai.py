"""Optional AI summaries of weekly activity.

Several text-generation backends are supported. The first one, in priority
order, whose API key is present and well formed is used. Summaries are an
enrichment only: when no backend is configured or the selected one fails,
callers get ``None`` and the report is rendered without them.
"""

import json
from typing import Any, Dict, List, Optional

import requests

from ..config import Config, ProviderConfig
from .logging import console, debug_block, error, info, warning

ANALYSIS_TYPES = ("releases", "prs", "issues", "commits")

EMPTY_RESULT = "分析完成，但未返回具体内容"

SYSTEM_PROMPT = "你是一个专业的技术分析师，专门分析开源项目的发展动向。请用简洁专业的中文回答。"

# What indexing into a JSON body of the wrong shape raises
MALFORMED_BODY_ERRORS = (AttributeError, KeyError, IndexError, TypeError)


class AIProviderError(RuntimeError):
    """Raised when a summarization backend call fails."""


def build_prompt(analysis_type: str, project_name: str, project_description: str = "") -> str:
    """Build the task prompt for one kind of activity data."""
    if analysis_type == "releases":
        return f"""请分析 data_content 中的 {project_name} 版本发布信息，生成详细的中文分析，突出重要功能和改进。

请提供：
1. 主要新功能概述（4-6句话）
2. 重要改进点（2-3句话）
3. 对用户的影响（2句话）

要求详细列出新版本的改动，并突出重点。{project_description}"""
    if analysis_type == "prs":
        return f"""请分析 data_content 中的 {project_name} 仓库 Pull Request 信息，提取重要的开发动向。

请提供：
1. 主要开发方向（2-4句话）
2. 重要功能或修复（列出2-3个关键点）
3. 社区活跃度评价（1句话）

要求简洁专业，突出技术重点。{project_description}"""
    if analysis_type == "issues":
        return f"""请分析 data_content 中的 {project_name} 仓库 Issue 信息，总结用户关注的热点。

请提供：
1. 用户主要关注点（4-6句话）
2. 常见问题类型（2-3个关键词）
3. 社区反馈趋势（1句话）

要求简洁明了，体现用户需求。{project_description}"""
    if analysis_type == "commits":
        return f"""请分析 data_content 中的代码提交信息，总结开发动向和技术更新。

请提供：
1. 主要开发活动（2-3句话）
2. 技术改进重点（列出2-3个关键点）
3. 代码质量和功能演进趋势（1句话）

要求简洁专业，突出技术发展方向。{project_description}"""
    raise ValueError(f"Unknown analysis type: {analysis_type}")


def serialize_payload(data: Any, max_chars: Optional[int] = None) -> str:
    """Serialize activity data to JSON, truncating with '...' past ``max_chars``."""
    text = json.dumps(data, ensure_ascii=False, default=str)
    if max_chars is not None and len(text) > max_chars:
        text = text[: max_chars - 3] + "..."
    return text


class AIProvider:
    """Base class for a summarization backend."""

    name = "base"

    def __init__(self, settings: ProviderConfig, max_tokens: int = 500, temperature: float = 0.7):
        self.settings = settings
        self.max_tokens = max_tokens
        self.temperature = temperature

    @property
    def api_key(self) -> str:
        return self.settings.api_key or ""

    def is_available(self) -> bool:
        return len(self.api_key) > 0

    def payload_text(self, data: Any) -> str:
        return serialize_payload(data, self.settings.max_payload_chars)

    def summarize(self, data: Any, analysis_type: str, prompt: str) -> Optional[str]:
        raise NotImplementedError

    def auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    def _post(self, url: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        request_headers = {"Content-Type": "application/json", **self.auth_headers()}

        try:
            response = requests.post(url, json=payload, headers=request_headers, timeout=120)
        except requests.RequestException as e:
            raise AIProviderError(f"{self.name} request failed: {e}") from e

        if response.status_code != 200:
            raise AIProviderError(f"{self.name} returned HTTP {response.status_code}: {response.text[:200]}")

        try:
            return response.json()
        except ValueError as e:
            raise AIProviderError(f"{self.name} returned invalid JSON: {e}") from e

    def _chat_messages(self, data: Any, prompt: str) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": f"{prompt}\n\ndata_content:\n{self.payload_text(data)}"},
        ]


class DifyProvider(AIProvider):
    """Dify workflow run in blocking mode."""

    name = "dify"

    def summarize(self, data: Any, analysis_type: str, prompt: str) -> Optional[str]:
        payload = {
            "inputs": {
                "analysis_type": analysis_type,
                "data_content": self.payload_text(data),
                "prompt": prompt,
            },
            "response_mode": "blocking",
            "user": self.settings.user or "openclaw-weekly-bot",
        }
        result = self._post(self.settings.base_url, payload)
        try:
            outputs = (result.get("data") or {}).get("outputs") or {}
            text = outputs.get("result") or result.get("answer")
        except MALFORMED_BODY_ERRORS as e:
            raise AIProviderError(f"dify returned an unexpected body: {e!r}") from e
        if text and not isinstance(text, str):
            raise AIProviderError(f"dify returned a non-text result: {text!r}")
        return text or EMPTY_RESULT


class QwenProvider(AIProvider):
    """Alibaba DashScope text generation."""

    name = "qwen"

    def summarize(self, data: Any, analysis_type: str, prompt: str) -> Optional[str]:
        payload = {
            "model": self.settings.model,
            "input": {"messages": self._chat_messages(data, prompt)},
            "parameters": {"max_tokens": self.max_tokens, "temperature": self.temperature},
        }
        result = self._post(self.settings.base_url, payload)
        try:
            choices = (result.get("output") or {}).get("choices") or [{}]
            content = ((choices[0].get("message") or {}).get("content") or "").strip()
        except MALFORMED_BODY_ERRORS as e:
            raise AIProviderError(f"qwen returned an unexpected body: {e!r}") from e
        return content or EMPTY_RESULT


class OpenAIProvider(AIProvider):
    """OpenAI-compatible chat completions."""

    name = "openai"

    def is_available(self) -> bool:
        return self.api_key.startswith("sk-")

    def summarize(self, data: Any, analysis_type: str, prompt: str) -> Optional[str]:
        payload = {
            "model": self.settings.model,
            "messages": self._chat_messages(data, prompt),
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }
        result = self._post(f"{self.settings.base_url.rstrip('/')}/chat/completions", payload)
        try:
            content = (result["choices"][0]["message"]["content"] or "").strip()
        except MALFORMED_BODY_ERRORS as e:
            raise AIProviderError(f"openai returned an unexpected body: {e!r}") from e
        return content or EMPTY_RESULT


class ClaudeProvider(AIProvider):
    """Anthropic messages API."""

    name = "claude"

    def is_available(self) -> bool:
        return self.api_key.startswith("sk-ant-")

    def auth_headers(self) -> Dict[str, str]:
        return {"x-api-key": self.api_key, "anthropic-version": "2023-06-01"}

    def summarize(self, data: Any, analysis_type: str, prompt: str) -> Optional[str]:
        messages = self._chat_messages(data, prompt)
        payload = {
            "model": self.settings.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "system": messages[0]["content"],
            "messages": messages[1:],
        }
        result = self._post(self.settings.base_url, payload)
        try:
            blocks = result.get("content") or []
            text = "".join(block.get("text", "") for block in blocks if block.get("type") == "text").strip()
        except MALFORMED_BODY_ERRORS as e:
            raise AIProviderError(f"claude returned an unexpected body: {e!r}") from e
        return text or EMPTY_RESULT


PROVIDER_CLASSES = {
    "dify": DifyProvider,
    "qwen": QwenProvider,
    "openai": OpenAIProvider,
    "claude": ClaudeProvider,
}


def build_providers(config: Config) -> List[AIProvider]:
    """Instantiate the configured backends in priority order."""
    providers = []
    for name in config.ai.priority:
        settings = config.ai.get_provider(name)
        provider_class = PROVIDER_CLASSES.get(name)
        if settings is None or provider_class is None:
            warning(f"Unknown AI provider '{name}' in priority list, ignoring")
            continue
        providers.append(provider_class(settings, config.ai.max_tokens, config.ai.temperature))
    return providers


def select_provider(providers: List[AIProvider]) -> Optional[AIProvider]:
    """Return the first backend with a usable key."""
    for provider in providers:
        if provider.is_available():
            return provider
    return None


def analyze_with_ai(
    data: Any,
    analysis_type: str,
    config: Config,
    providers: Optional[List[AIProvider]] = None,
) -> Optional[str]:
    """Summarize activity data with the first available backend.

    A failure of the selected backend is not retried on lower-priority ones.
    """
    if analysis_type not in ANALYSIS_TYPES:
        raise ValueError(f"Unknown analysis type: {analysis_type}")

    provider = select_provider(providers if providers is not None else build_providers(config))
    if provider is None:
        info("未配置 AI API Key，跳过智能分析")
        return None

    console.print(f"🤖 使用 {provider.name} 进行智能分析...")
    prompt = build_prompt(analysis_type, config.project_name, config.project_description)

    if config.ai.debug:
        full_payload = serialize_payload(data)
        debug_block(
            "AI 请求详情",
            f"分析类型: {analysis_type}\n"
            f"服务提供商: {provider.name}\n"
            f"API 端点: {provider.settings.base_url}\n"
            f"数据长度: {len(full_payload)} 字符\n"
            f"发送数据长度: {len(provider.payload_text(data))} 字符\n\n"
            f"{prompt}",
        )

    try:
        return provider.summarize(data, analysis_type, prompt)
    except AIProviderError as e:
        error(f"AI 分析失败 ({analysis_type}): {e}")
        return None
