"""
Configuration Management for Ragkit

Loads configuration from ~/.ragkit/config.json and environment variables.
"""

import os
import json
import logging
from pathlib import Path
from dataclasses import dataclass, field

logger = logging.getLogger("ragkit.common.config")

# Default config paths
CONFIG_DIR = Path.home() / ".ragkit"
CONFIG_PATH = CONFIG_DIR / "config.json"


@dataclass
class ElasticsearchConfig:
    """Elasticsearch connection configuration"""
    endpoint: str = "http://localhost:9200"
    api_key: str = ""
    index: str = "documents"
    timeout: float = 30.0


@dataclass
class LLMConfig:
    """LLM provider configuration for summarization"""
    provider: str = "openai"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"
    google_api_key: str = ""
    google_model: str = "gemini-2.0-flash"
    temperature: float = 0.3
    max_tokens_cap: int = 1000


@dataclass
class SessionConfig:
    """Session store bounds"""
    capacity: int = 1024
    ttl_seconds: float = 3600.0  # 0 disables expiry


@dataclass
class SearchConfig:
    """Search tool defaults"""
    default_max_results: int = 5
    excerpt_chars: int = 200


@dataclass
class RagConfig:
    """Main Ragkit configuration"""
    elasticsearch: ElasticsearchConfig = field(default_factory=ElasticsearchConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    _env_sourced_keys: set = field(default_factory=set, repr=False)


def _parse_elasticsearch_config(data: dict) -> ElasticsearchConfig:
    """Parse elasticsearch section from config dict"""
    es_data = data.get("elasticsearch", {})
    return ElasticsearchConfig(
        endpoint=es_data.get("endpoint", "http://localhost:9200"),
        api_key=es_data.get("api_key", ""),
        index=es_data.get("index", "documents"),
        timeout=float(es_data.get("timeout", 30.0)),
    )


def _parse_llm_config(data: dict) -> LLMConfig:
    """Parse llm section from config dict"""
    llm_data = data.get("llm", {})
    return LLMConfig(
        provider=llm_data.get("provider", "openai"),
        openai_api_key=llm_data.get("openai_api_key", ""),
        openai_model=llm_data.get("openai_model", "gpt-4o-mini"),
        anthropic_api_key=llm_data.get("anthropic_api_key", ""),
        anthropic_model=llm_data.get("anthropic_model", "claude-sonnet-4-20250514"),
        google_api_key=llm_data.get("google_api_key", ""),
        google_model=llm_data.get("google_model", "gemini-2.0-flash"),
        temperature=float(llm_data.get("temperature", 0.3)),
        max_tokens_cap=int(llm_data.get("max_tokens_cap", 1000)),
    )


def _parse_session_config(data: dict) -> SessionConfig:
    """Parse session section from config dict"""
    session_data = data.get("session", {})
    return SessionConfig(
        capacity=int(session_data.get("capacity", 1024)),
        ttl_seconds=float(session_data.get("ttl_seconds", 3600.0)),
    )


def _parse_search_config(data: dict) -> SearchConfig:
    """Parse search section from config dict"""
    search_data = data.get("search", {})
    return SearchConfig(
        default_max_results=int(search_data.get("default_max_results", 5)),
        excerpt_chars=int(search_data.get("excerpt_chars", 200)),
    )


def load_config() -> RagConfig:
    """
    Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables
    2. Config file (~/.ragkit/config.json)
    3. Default values
    """
    config = RagConfig()

    if CONFIG_PATH.exists():
        try:
            with open(CONFIG_PATH) as f:
                data = json.load(f)

            # all sections parse, or the whole file is ignored
            sections = (
                _parse_elasticsearch_config(data),
                _parse_llm_config(data),
                _parse_session_config(data),
                _parse_search_config(data),
            )
            config.elasticsearch, config.llm, config.session, config.search = sections
        except (json.JSONDecodeError, IOError, ValueError, TypeError) as e:
            logger.warning("Failed to load config file %s: %s", CONFIG_PATH, e)

    if os.getenv("ELASTICSEARCH_ENDPOINT"):
        config.elasticsearch.endpoint = os.getenv("ELASTICSEARCH_ENDPOINT")
    if os.getenv("ELASTICSEARCH_API_KEY"):
        config.elasticsearch.api_key = os.getenv("ELASTICSEARCH_API_KEY")
        config._env_sourced_keys.add("elasticsearch_api_key")
    if os.getenv("ELASTICSEARCH_INDEX"):
        config.elasticsearch.index = os.getenv("ELASTICSEARCH_INDEX")

    if os.getenv("RAGKIT_SESSION_CAPACITY"):
        config.session.capacity = int(os.getenv("RAGKIT_SESSION_CAPACITY"))
    if os.getenv("RAGKIT_SESSION_TTL"):
        config.session.ttl_seconds = float(os.getenv("RAGKIT_SESSION_TTL"))

    # LLM env var overrides (track env-sourced keys)
    _env_llm_map = {
        "OPENAI_API_KEY": "openai_api_key",
        "OPENAI_MODEL": "openai_model",
        "ANTHROPIC_API_KEY": "anthropic_api_key",
        "ANTHROPIC_MODEL": "anthropic_model",
        "GOOGLE_API_KEY": "google_api_key",
        "GEMINI_API_KEY": "google_api_key",
        "GOOGLE_MODEL": "google_model",
        "RAGKIT_LLM_PROVIDER": "provider",
    }
    for env_var, attr in _env_llm_map.items():
        val = os.getenv(env_var)
        if val:
            setattr(config.llm, attr, val)
            config._env_sourced_keys.add(attr)

    return config


def save_config(config: RagConfig) -> None:
    """Save configuration to file.

    API key fields that were sourced from environment variables are written
    as empty strings so that secrets are not persisted to disk.
    """
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)

    env_sourced = getattr(config, "_env_sourced_keys", set())

    llm_section = {
        "provider": config.llm.provider,
        "openai_api_key": config.llm.openai_api_key,
        "openai_model": config.llm.openai_model,
        "anthropic_api_key": config.llm.anthropic_api_key,
        "anthropic_model": config.llm.anthropic_model,
        "google_api_key": config.llm.google_api_key,
        "google_model": config.llm.google_model,
        "temperature": config.llm.temperature,
        "max_tokens_cap": config.llm.max_tokens_cap,
    }
    for key in ("openai_api_key", "anthropic_api_key", "google_api_key"):
        if key in env_sourced:
            llm_section[key] = ""

    data = {
        "elasticsearch": {
            "endpoint": config.elasticsearch.endpoint,
            "api_key": "" if "elasticsearch_api_key" in env_sourced else config.elasticsearch.api_key,
            "index": config.elasticsearch.index,
            "timeout": config.elasticsearch.timeout,
        },
        "llm": llm_section,
        "session": {
            "capacity": config.session.capacity,
            "ttl_seconds": config.session.ttl_seconds,
        },
        "search": {
            "default_max_results": config.search.default_max_results,
            "excerpt_chars": config.search.excerpt_chars,
        },
    }

    with open(CONFIG_PATH, "w") as f:
        json.dump(data, f, indent=2)

    # Set secure permissions
    CONFIG_PATH.chmod(0o600)
