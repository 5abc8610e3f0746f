"""
Configuration Management for Voice Journal

Loads configuration from ~/.voicejournal/config.json and environment variables.
A .env file in the working directory is honored via python-dotenv.
"""

import os
import json
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger("voicejournal.common.config")

# Default config paths
CONFIG_DIR = Path.home() / ".voicejournal"
CONFIG_PATH = CONFIG_DIR / "config.json"
LOGS_DIR = CONFIG_DIR / "logs"
DATA_DIR = CONFIG_DIR / "data"

DEFAULT_EMBEDDING_MODEL = "sentence-transformers/all-MiniLM-L6-v2"
GROQ_BASE_URL = "https://api.groq.com/openai/v1"
OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


@dataclass
class LLMConfig:
    """Completion provider configuration (classification + answers)"""
    provider: str = "openai"  # anthropic | openai | google
    base_url: str = GROQ_BASE_URL  # OpenAI-compatible endpoint; "" is api.openai.com
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"
    openai_api_key: str = ""
    google_api_key: str = ""
    google_model: str = "gemini-2.0-flash-exp"
    classifier_model: str = "llama-3.1-8b-instant"
    answer_model: str = "llama-3.3-70b-versatile"
    classifier_temperature: float = 0.1
    classifier_max_tokens: int = 300
    answer_temperature: float = 0.7
    answer_max_tokens: int = 1000


@dataclass
class EmbeddingConfig:
    """Embedding model configuration"""
    mode: str = "femb"  # fastembed (on-device) | openai
    model: str = DEFAULT_EMBEDDING_MODEL
    openai_api_key: str = ""
    base_url: str = ""


@dataclass
class TranscriptionConfig:
    """Whisper transcription configuration (OpenAI-compatible audio API)"""
    api_key: str = ""
    base_url: str = GROQ_BASE_URL
    model: str = "whisper-large-v3-turbo"
    language: str = "en"


@dataclass
class StorageConfig:
    """Relational store + blob store configuration"""
    db_path: str = str(DATA_DIR / "voice-journal.db")
    blob_backend: str = "local"  # local | s3
    blob_dir: str = str(DATA_DIR / "blobs")
    bucket: str = "voice-journal"
    r2_account_id: str = ""
    r2_access_key_id: str = ""
    r2_secret_access_key: str = ""


@dataclass
class RetrieverConfig:
    """Retrieval configuration"""
    topk: int = 5
    timezone: str = "UTC"
    week_start: int = 6  # Python weekday: 0=Monday ... 6=Sunday
    query_timeout_seconds: float = 60.0


@dataclass
class BotConfig:
    """Conversation handler configuration"""
    authorized_user_id: Optional[int] = None


@dataclass
class VoiceJournalConfig:
    """Main Voice Journal configuration"""
    llm: LLMConfig = field(default_factory=LLMConfig)
    embedding: EmbeddingConfig = field(default_factory=EmbeddingConfig)
    transcription: TranscriptionConfig = field(default_factory=TranscriptionConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    retriever: RetrieverConfig = field(default_factory=RetrieverConfig)
    bot: BotConfig = field(default_factory=BotConfig)
    _env_sourced_keys: set = field(default_factory=set, repr=False)


def _parse_llm_config(data: dict) -> LLMConfig:
    """Parse llm section from config dict"""
    llm_data = data.get("llm", {})
    defaults = LLMConfig()
    return LLMConfig(
        provider=llm_data.get("provider", defaults.provider),
        base_url=llm_data.get("base_url", defaults.base_url),
        anthropic_api_key=llm_data.get("anthropic_api_key", ""),
        anthropic_model=llm_data.get("anthropic_model", defaults.anthropic_model),
        openai_api_key=llm_data.get("openai_api_key", ""),
        google_api_key=llm_data.get("google_api_key", ""),
        google_model=llm_data.get("google_model", defaults.google_model),
        classifier_model=llm_data.get("classifier_model", defaults.classifier_model),
        answer_model=llm_data.get("answer_model", defaults.answer_model),
        classifier_temperature=llm_data.get("classifier_temperature", defaults.classifier_temperature),
        classifier_max_tokens=llm_data.get("classifier_max_tokens", defaults.classifier_max_tokens),
        answer_temperature=llm_data.get("answer_temperature", defaults.answer_temperature),
        answer_max_tokens=llm_data.get("answer_max_tokens", defaults.answer_max_tokens),
    )


def _parse_embedding_config(data: dict) -> EmbeddingConfig:
    """Parse embedding section from config dict"""
    embedding_data = data.get("embedding", {})
    return EmbeddingConfig(
        mode=embedding_data.get("mode", "femb"),
        model=embedding_data.get("model", DEFAULT_EMBEDDING_MODEL),
        openai_api_key=embedding_data.get("openai_api_key", ""),
        base_url=embedding_data.get("base_url", ""),
    )


def _parse_transcription_config(data: dict) -> TranscriptionConfig:
    """Parse transcription section from config dict"""
    t_data = data.get("transcription", {})
    defaults = TranscriptionConfig()
    return TranscriptionConfig(
        api_key=t_data.get("api_key", ""),
        base_url=t_data.get("base_url", defaults.base_url),
        model=t_data.get("model", defaults.model),
        language=t_data.get("language", defaults.language),
    )


def _parse_storage_config(data: dict) -> StorageConfig:
    """Parse storage section from config dict"""
    storage_data = data.get("storage", {})
    defaults = StorageConfig()
    return StorageConfig(
        db_path=storage_data.get("db_path", defaults.db_path),
        blob_backend=storage_data.get("blob_backend", defaults.blob_backend),
        blob_dir=storage_data.get("blob_dir", defaults.blob_dir),
        bucket=storage_data.get("bucket", defaults.bucket),
        r2_account_id=storage_data.get("r2_account_id", ""),
        r2_access_key_id=storage_data.get("r2_access_key_id", ""),
        r2_secret_access_key=storage_data.get("r2_secret_access_key", ""),
    )


def _parse_retriever_config(data: dict) -> RetrieverConfig:
    """Parse retriever section from config dict"""
    retriever_data = data.get("retriever", {})
    return RetrieverConfig(
        topk=retriever_data.get("topk", 5),
        timezone=retriever_data.get("timezone", "UTC"),
        week_start=retriever_data.get("week_start", 6),
        query_timeout_seconds=retriever_data.get("query_timeout_seconds", 60.0),
    )


def _parse_bot_config(data: dict) -> BotConfig:
    """Parse bot section from config dict"""
    bot_data = data.get("bot", {})
    return BotConfig(authorized_user_id=bot_data.get("authorized_user_id"))


def _apply_openai_compatible_keys(config: VoiceJournalConfig) -> None:
    """
    Pair OpenAI-compatible keys with the endpoint that accepts them.

    Completions: GROQ_API_KEY is used while the endpoint is Groq. Otherwise
    OPENAI_API_KEY is used, and an unpinned Groq default endpoint switches to
    api.openai.com. Embeddings: OPENROUTER_API_KEY goes to OpenRouter (the
    endpoint is filled in when none is configured), else OPENAI_API_KEY goes
    to api.openai.com.
    """
    groq_key = os.getenv("GROQ_API_KEY")
    openai_key = os.getenv("OPENAI_API_KEY")
    openrouter_key = os.getenv("OPENROUTER_API_KEY")

    llm = config.llm
    if groq_key and llm.base_url == GROQ_BASE_URL:
        llm.openai_api_key = groq_key
        config._env_sourced_keys.add("llm.openai_api_key")
    elif openai_key:
        llm.openai_api_key = openai_key
        config._env_sourced_keys.add("llm.openai_api_key")
        if llm.base_url == GROQ_BASE_URL and os.getenv("VOICEJOURNAL_LLM_BASE_URL") is None:
            logger.info("OPENAI_API_KEY without GROQ_API_KEY: completions go to api.openai.com")
            llm.base_url = ""

    embedding = config.embedding
    if openrouter_key:
        embedding.openai_api_key = openrouter_key
        config._env_sourced_keys.add("embedding.openai_api_key")
        if not embedding.base_url:
            embedding.base_url = OPENROUTER_BASE_URL
    elif openai_key and not embedding.base_url:
        embedding.openai_api_key = openai_key
        config._env_sourced_keys.add("embedding.openai_api_key")


def load_config() -> VoiceJournalConfig:
    """
    Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables (including a local .env file)
    2. Config file (~/.voicejournal/config.json)
    3. Default values
    """
    load_dotenv()
    config = VoiceJournalConfig()

    # Load from config file if exists
    if CONFIG_PATH.exists():
        try:
            with open(CONFIG_PATH) as f:
                data = json.load(f)

            config.llm = _parse_llm_config(data)
            config.embedding = _parse_embedding_config(data)
            config.transcription = _parse_transcription_config(data)
            config.storage = _parse_storage_config(data)
            config.retriever = _parse_retriever_config(data)
            config.bot = _parse_bot_config(data)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning("Failed to load config file: %s", e)

    # Secrets: applied and remembered so save_config never writes them
    _env_secret_map = {
        "ANTHROPIC_API_KEY": (config.llm, "llm", "anthropic_api_key"),
        "GROQ_API_KEY": (config.transcription, "transcription", "api_key"),
        "GOOGLE_API_KEY": (config.llm, "llm", "google_api_key"),
        "GEMINI_API_KEY": (config.llm, "llm", "google_api_key"),
        "R2_ACCESS_KEY_ID": (config.storage, "storage", "r2_access_key_id"),
        "R2_SECRET_ACCESS_KEY": (config.storage, "storage", "r2_secret_access_key"),
    }
    for env_var, (section, section_name, attr) in _env_secret_map.items():
        val = os.getenv(env_var)
        if val:
            setattr(section, attr, val)
            config._env_sourced_keys.add(f"{section_name}.{attr}")

    if os.getenv("VOICEJOURNAL_LLM_PROVIDER"):
        config.llm.provider = os.getenv("VOICEJOURNAL_LLM_PROVIDER")
    if os.getenv("VOICEJOURNAL_LLM_BASE_URL") is not None:
        config.llm.base_url = os.getenv("VOICEJOURNAL_LLM_BASE_URL")
    if os.getenv("VOICEJOURNAL_CLASSIFIER_MODEL"):
        config.llm.classifier_model = os.getenv("VOICEJOURNAL_CLASSIFIER_MODEL")
    if os.getenv("VOICEJOURNAL_ANSWER_MODEL"):
        config.llm.answer_model = os.getenv("VOICEJOURNAL_ANSWER_MODEL")

    _apply_openai_compatible_keys(config)

    if os.getenv("EMBEDDING_MODE"):
        config.embedding.mode = os.getenv("EMBEDDING_MODE")
    if os.getenv("EMBEDDING_MODEL"):
        config.embedding.model = os.getenv("EMBEDDING_MODEL")

    if os.getenv("VOICEJOURNAL_DB_PATH"):
        config.storage.db_path = os.getenv("VOICEJOURNAL_DB_PATH")
    if os.getenv("VOICEJOURNAL_BLOB_BACKEND"):
        config.storage.blob_backend = os.getenv("VOICEJOURNAL_BLOB_BACKEND")
    if os.getenv("R2_BUCKET_NAME"):
        config.storage.bucket = os.getenv("R2_BUCKET_NAME")
    if os.getenv("R2_ACCOUNT_ID"):
        config.storage.r2_account_id = os.getenv("R2_ACCOUNT_ID")

    if os.getenv("VOICEJOURNAL_TIMEZONE"):
        config.retriever.timezone = os.getenv("VOICEJOURNAL_TIMEZONE")
    if os.getenv("VOICEJOURNAL_WEEK_START"):
        config.retriever.week_start = int(os.getenv("VOICEJOURNAL_WEEK_START"))
    if os.getenv("VOICEJOURNAL_TOPK"):
        config.retriever.topk = int(os.getenv("VOICEJOURNAL_TOPK"))

    if os.getenv("AUTHORIZED_USER_ID"):
        config.bot.authorized_user_id = int(os.getenv("AUTHORIZED_USER_ID"))

    return config


def save_config(config: VoiceJournalConfig) -> None:
    """Save configuration to file.

    Secret fields that were sourced from environment variables are written
    as empty strings so that secrets are not persisted to disk.
    """
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)

    env_sourced = getattr(config, "_env_sourced_keys", set())

    def _secret(attr: str, value: str) -> str:
        return "" if attr in env_sourced else value

    data = {
        "llm": {
            "provider": config.llm.provider,
            "base_url": config.llm.base_url,
            "anthropic_api_key": _secret("llm.anthropic_api_key", config.llm.anthropic_api_key),
            "anthropic_model": config.llm.anthropic_model,
            "openai_api_key": _secret("llm.openai_api_key", config.llm.openai_api_key),
            "google_api_key": _secret("llm.google_api_key", config.llm.google_api_key),
            "google_model": config.llm.google_model,
            "classifier_model": config.llm.classifier_model,
            "answer_model": config.llm.answer_model,
            "classifier_temperature": config.llm.classifier_temperature,
            "classifier_max_tokens": config.llm.classifier_max_tokens,
            "answer_temperature": config.llm.answer_temperature,
            "answer_max_tokens": config.llm.answer_max_tokens,
        },
        "embedding": {
            "mode": config.embedding.mode,
            "model": config.embedding.model,
            "openai_api_key": _secret("embedding.openai_api_key", config.embedding.openai_api_key),
            "base_url": config.embedding.base_url,
        },
        "transcription": {
            "api_key": _secret("transcription.api_key", config.transcription.api_key),
            "base_url": config.transcription.base_url,
            "model": config.transcription.model,
            "language": config.transcription.language,
        },
        "storage": {
            "db_path": config.storage.db_path,
            "blob_backend": config.storage.blob_backend,
            "blob_dir": config.storage.blob_dir,
            "bucket": config.storage.bucket,
            "r2_account_id": config.storage.r2_account_id,
            "r2_access_key_id": _secret("storage.r2_access_key_id", config.storage.r2_access_key_id),
            "r2_secret_access_key": _secret("storage.r2_secret_access_key", config.storage.r2_secret_access_key),
        },
        "retriever": {
            "topk": config.retriever.topk,
            "timezone": config.retriever.timezone,
            "week_start": config.retriever.week_start,
            "query_timeout_seconds": config.retriever.query_timeout_seconds,
        },
        "bot": {
            "authorized_user_id": config.bot.authorized_user_id,
        },
    }

    with open(CONFIG_PATH, "w") as f:
        json.dump(data, f, indent=2)

    # Set secure permissions
    CONFIG_PATH.chmod(0o600)


def ensure_directories() -> None:
    """Ensure required directories exist"""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    LOGS_DIR.mkdir(parents=True, exist_ok=True)
    DATA_DIR.mkdir(parents=True, exist_ok=True)
