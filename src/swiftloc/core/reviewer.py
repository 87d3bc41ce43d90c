"""
AI 翻译质量评审（Ollama）

- OllamaClient：基于 requests.Session 的 HTTP 客户端（连接复用）
- PromptBuilder：单条 / 批量评审提示词
- QualityReviewer：按 unit 或按批次打分（meaning / tone / completeness）

不做重试：任何网络或解析失败都会终止整个质量评审。
"""

from __future__ import annotations

import json
import logging
from typing import Iterable, NamedTuple, Optional

import requests

from ..utils.logger import APIError, ResponseParseError
from .catalog import Catalog
from .report import QualityReport, QualityResult, QualityScores

logger = logging.getLogger(__name__)

DEFAULT_HOST = "http://localhost:11434"
DEFAULT_MODEL = "llama3.2"
PROBE_TIMEOUT = 5.0
MIN_SCORE = 1
MAX_SCORE = 5

LANGUAGE_NAMES = {
    "en": "English",
    "fr": "French",
    "de": "German",
    "es": "Spanish",
    "it": "Italian",
    "pt": "Portuguese",
    "ja": "Japanese",
    "ko": "Korean",
    "zh": "Chinese",
    "ar": "Arabic",
    "ru": "Russian",
    "nl": "Dutch",
    "pl": "Polish",
    "tr": "Turkish",
    "vi": "Vietnamese",
    "th": "Thai",
    "sv": "Swedish",
    "da": "Danish",
    "fi": "Finnish",
    "no": "Norwegian",
}


class ReviewItem(NamedTuple):
    key: str
    source: str
    target: str


class OllamaClient:
    """Ollama HTTP 客户端"""

    def __init__(self, host: str = DEFAULT_HOST, timeout: float = 60.0):
        """
        Args:
            host: Ollama 服务地址
            timeout: 单次请求超时时间（秒）
        """
        self.host = host.rstrip("/")
        self.timeout = timeout

        self.session = requests.Session()
        adapter = requests.adapters.HTTPAdapter(max_retries=0)
        self.session.mount('http://', adapter)
        self.session.mount('https://', adapter)

    def generate(self, prompt: str, model: str) -> str:
        """
        调用 /api/generate（非流式）

        Raises:
            APIError: 连接失败、超时或非 200 响应
        """
        url = f"{self.host}/api/generate"
        payload = {"model": model, "prompt": prompt, "stream": False}

        try:
            response = self.session.post(url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise APIError(f"Failed to connect to Ollama at {self.host}: {e}", provider="ollama") from e

        if response.status_code != 200:
            raise APIError(
                f"Ollama API returned HTTP {response.status_code}",
                provider="ollama",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ResponseParseError("Invalid response from Ollama API", raw_response=response.text) from e
        if not isinstance(data, dict) or not isinstance(data.get("response"), str):
            raise ResponseParseError("Invalid response from Ollama API", raw_response=response.text)
        return data["response"]

    def is_available(self) -> bool:
        """探测服务是否可达（不抛异常）"""
        try:
            response = self.session.get(f"{self.host}/api/tags", timeout=PROBE_TIMEOUT)
        except requests.RequestException as e:
            logger.debug(f"Ollama probe failed: {e}")
            return False
        return response.status_code == 200

    def list_models(self) -> list[str]:
        """列出本地已拉取的模型"""
        try:
            response = self.session.get(f"{self.host}/api/tags", timeout=self.timeout)
        except requests.RequestException as e:
            raise APIError(f"Failed to connect to Ollama at {self.host}: {e}", provider="ollama") from e
        if response.status_code != 200:
            raise APIError(
                f"Ollama API returned HTTP {response.status_code}",
                provider="ollama",
                status_code=response.status_code,
            )
        try:
            return [m["name"] for m in response.json().get("models", [])]
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise ResponseParseError("Invalid model list from Ollama API", raw_response=response.text) from e

    def close(self):
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def language_name(code: str) -> str:
    return LANGUAGE_NAMES.get(code.lower(), code.upper())


class PromptBuilder:
    """质量评审提示词"""

    def build_quality_prompt(
        self,
        key: str,
        source: str,
        target: str,
        source_language: str,
        target_language: str
    ) -> str:
        return f"""You are a localization quality reviewer. Analyze this translation pair:

Key: "{key}"
Source ({language_name(source_language)}): "{source}"
Target ({language_name(target_language)}): "{target}"

Evaluate the translation on these criteria (score 1-5, where 5 is perfect):

1. MEANING: Does the translation convey the exact same information as the source?
2. TONE: Is the formality/casualness level preserved appropriately?
3. COMPLETENESS: Is any information missing or incorrectly added?

Respond ONLY with valid JSON in this exact format:
{{"meaning": <score>, "tone": <score>, "completeness": <score>, "issues": ["issue1", "issue2"]}}

If there are no issues, use an empty array: "issues": []
Do not include any text outside the JSON object."""

    def build_batch_prompt(
        self,
        items: list[ReviewItem],
        source_language: str,
        target_language: str
    ) -> str:
        entries = []
        for index, item in enumerate(items, 1):
            entries.append(
                f'{index}. Key: "{item.key}"\n'
                f'   Source: "{item.source}"\n'
                f'   Target: "{item.target}"'
            )
        listing = "\n".join(entries)

        return f"""You are a localization quality reviewer. Analyze these {language_name(source_language)} to {language_name(target_language)} translations:

{listing}

For each translation, evaluate:
- MEANING (1-5): Does it convey the same information?
- TONE (1-5): Is formality preserved?
- COMPLETENESS (1-5): Is anything missing or added?

Respond ONLY with a JSON array:
[
  {{"key": "key1", "meaning": 5, "tone": 5, "completeness": 5, "issues": []}},
  {{"key": "key2", "meaning": 4, "tone": 3, "completeness": 5, "issues": ["Tone is more formal than source"]}}
]

Do not include any text outside the JSON array."""


# ========================================
# 响应解析
# ========================================

def _slice_json(response: str, opener: str, closer: str) -> str:
    # 模型常在 JSON 前后附带说明文字，截取第一个开括号到最后一个闭括号
    trimmed = response.strip()
    start = trimmed.find(opener)
    end = trimmed.rfind(closer)
    if start != -1 and end > start:
        return trimmed[start:end + 1]
    return trimmed


def _score_value(entry: dict, name: str, raw: str) -> int:
    if name not in entry:
        raise ResponseParseError(f"Missing '{name}' score in LLM response", raw_response=raw)
    value = entry[name]
    # bool 是 int 的子类，需单独排除
    if not isinstance(value, int) or isinstance(value, bool):
        raise ResponseParseError(f"'{name}' score must be an integer, got {value!r}", raw_response=raw)
    if not MIN_SCORE <= value <= MAX_SCORE:
        raise ResponseParseError(
            f"'{name}' score must be between {MIN_SCORE} and {MAX_SCORE}, got {value}",
            raw_response=raw,
        )
    return value


def _scores_from(entry, raw: str) -> tuple[QualityScores, tuple[str, ...]]:
    if not isinstance(entry, dict):
        raise ResponseParseError("Quality entry is not a JSON object", raw_response=raw)
    scores = QualityScores(
        meaning=_score_value(entry, "meaning", raw),
        tone=_score_value(entry, "tone", raw),
        completeness=_score_value(entry, "completeness", raw),
    )

    if "issues" not in entry:
        raise ResponseParseError("Missing 'issues' in LLM response", raw_response=raw)
    issues = entry["issues"]
    if not isinstance(issues, list) or not all(isinstance(i, str) for i in issues):
        raise ResponseParseError("'issues' must be a list of strings", raw_response=raw)
    return scores, tuple(issues)


def parse_quality_response(response: str) -> tuple[QualityScores, tuple[str, ...]]:
    """解析单条评审响应"""
    try:
        entry = json.loads(_slice_json(response, "{", "}"))
    except json.JSONDecodeError as e:
        raise ResponseParseError("Failed to parse LLM response as JSON", raw_response=response) from e
    return _scores_from(entry, response)


def parse_batch_response(response: str, items: list[ReviewItem]) -> list[QualityResult]:
    """
    解析批量评审响应

    条目数必须与 items 一致；缺少 key 的条目按下标对应到 items。
    """
    try:
        entries = json.loads(_slice_json(response, "[", "]"))
    except json.JSONDecodeError as e:
        raise ResponseParseError("Failed to parse LLM response as JSON", raw_response=response) from e
    if not isinstance(entries, list):
        raise ResponseParseError("Expected a JSON array", raw_response=response)
    if len(entries) != len(items):
        raise ResponseParseError(
            f"Expected {len(items)} quality entries, got {len(entries)}",
            raw_response=response,
        )

    results = []
    for item, entry in zip(items, entries):
        scores, issues = _scores_from(entry, response)
        results.append(QualityResult(
            key=str(entry.get("key") or item.key),
            source=item.source,
            target=item.target,
            scores=scores,
            issues=issues,
        ))
    return results


class QualityReviewer:
    """AI 质量评审器"""

    def __init__(
        self,
        client: OllamaClient,
        model: str = DEFAULT_MODEL,
        batch_size: int = 0,
        prompt_builder: Optional[PromptBuilder] = None
    ):
        """
        Args:
            client: Ollama 客户端
            model: 模型名称
            batch_size: >0 时按批次评审，否则逐条评审
            prompt_builder: 提示词构建器
        """
        self.client = client
        self.model = model
        self.batch_size = batch_size
        self.prompts = prompt_builder or PromptBuilder()

    def reachable(self) -> bool:
        return self.client.is_available()

    def score_one(
        self,
        key: str,
        source: str,
        target: str,
        source_language: str,
        target_language: str
    ) -> QualityResult:
        prompt = self.prompts.build_quality_prompt(key, source, target, source_language, target_language)
        response = self.client.generate(prompt, self.model)
        scores, issues = parse_quality_response(response)
        return QualityResult(key=key, source=source, target=target, scores=scores, issues=issues)

    def score_batch(
        self,
        items: Iterable[ReviewItem],
        source_language: str,
        target_language: str
    ) -> list[QualityResult]:
        items = list(items)
        if not items:
            return []
        prompt = self.prompts.build_batch_prompt(items, source_language, target_language)
        response = self.client.generate(prompt, self.model)
        return parse_batch_response(response, items)

    def review(self, catalog: Catalog) -> QualityReport:
        """
        评审目录中所有已翻译的 unit（按目录顺序）

        Raises:
            APIError: 服务不可达，或任一请求 / 解析失败
        """
        if not self.reachable():
            raise APIError(
                f"Ollama is not running at {self.client.host}. Start it with 'ollama serve'",
                provider="ollama",
            )

        results: list[QualityResult] = []
        for catalog_file in catalog.files:
            items = [
                ReviewItem(unit.id, unit.source, unit.target)
                for unit in catalog_file.units
                if unit.target
            ]
            if not items:
                continue
            logger.info(
                f"Reviewing {len(items)} translation(s) in '{catalog_file.original}' with {self.model}"
            )

            if self.batch_size > 0:
                for i in range(0, len(items), self.batch_size):
                    results.extend(self.score_batch(
                        items[i:i + self.batch_size],
                        catalog_file.source_language,
                        catalog_file.target_language,
                    ))
            else:
                for item in items:
                    results.append(self.score_one(
                        item.key,
                        item.source,
                        item.target,
                        catalog_file.source_language,
                        catalog_file.target_language,
                    ))

        return QualityReport(results=results, model=self.model)
