"""
Configuration for BlockGraph.

Supports loading from:
1. Environment variables (highest priority)
2. YAML config file
3. Default values (fallback)
"""

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field


class LLMConfig(BaseModel):
    """LLM provider configuration (answer generation)."""

    provider: str = "openai"  # openai, ollama
    model: str = "gpt-4"
    base_url: str | None = None
    api_key: str | None = None
    temperature: float = 0.7
    max_tokens: int = 500
    timeout: float = 60.0


class EmbedderConfig(BaseModel):
    """Embedder configuration."""

    provider: str = "openai"  # openai, ollama
    model: str = "text-embedding-3-small"
    base_url: str | None = None
    api_key: str | None = None
    timeout: float = 30.0
    # Optional: embedding dimension (fallback to auto-detect)
    dimension: int | None = None


class TokenizerConfig(BaseModel):
    """Token counting configuration for the embedding input guard."""

    provider: str = "tiktoken"  # tiktoken, approximate
    model: str = "cl100k_base"
    chars_per_token: float = 4.0
    embedding_token_limit: int = 8192


class Neo4jConfig(BaseModel):
    """Neo4j graph database configuration."""

    uri: str = "bolt://localhost:7687"
    username: str = "neo4j"
    password: str = "password"
    database: str = "neo4j"
    max_connection_pool_size: int = 50
    connection_timeout: float = 5.0
    query_timeout: float = 30.0
    max_retries: int = 3
    retry_delay: float = 0.5


class LinkingConfig(BaseModel):
    """Smart link engine configuration."""

    pair_delay: float = 0.1
    recommendation_limit: int = 5
    home_feed_limit: int = 10


class SearchConfig(BaseModel):
    """Search and answer configuration."""

    similarity_threshold: float = Field(default=0.25, ge=0.0, le=1.0)
    max_similarity_matches: int = 10


class ImportConfig(BaseModel):
    """Bulk import rate limiting configuration."""

    requests_per_period: int = 500
    period_seconds: float = 60.0
    max_concurrency: int = 500
    batch_size: int = 100


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    log_to_file: bool = True
    log_dir: str = "logs"
    file_rotation: str = "10 MB"
    file_retention: str = "7 days"
    compression: str = "zip"
    serialize: bool = True


class Config(BaseModel):
    """Main configuration."""

    llm: LLMConfig = Field(default_factory=LLMConfig)
    embedder: EmbedderConfig = Field(default_factory=EmbedderConfig)
    tokenizer: TokenizerConfig = Field(default_factory=TokenizerConfig)
    neo4j: Neo4jConfig = Field(default_factory=Neo4jConfig)
    linking: LinkingConfig = Field(default_factory=LinkingConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    importer: ImportConfig = Field(default_factory=ImportConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    # Graph store backend: neo4j, memory
    graph_backend: str = "neo4j"

    @classmethod
    def from_env(cls, env_file: str | Path | None = None) -> "Config":
        """
        Load configuration from environment variables.

        Priority: .env file -> system environment variables -> defaults

        Args:
            env_file: Optional path to .env file (default: .env in project root)

        Returns:
            Config instance

        Environment variables:
            BLOCKGRAPH_LLM_PROVIDER: LLM provider (openai, ollama)
            BLOCKGRAPH_LLM_MODEL: Answer model name
            BLOCKGRAPH_LLM_API_KEY: LLM API key (falls back to OPENAI_API_KEY)
            BLOCKGRAPH_EMBEDDER_PROVIDER: Embedder provider
            BLOCKGRAPH_EMBEDDER_MODEL: Embedding model name
            BLOCKGRAPH_EMBEDDER_API_KEY: Embedder API key (falls back to OPENAI_API_KEY)
            BLOCKGRAPH_NEO4J_URI: Neo4j URI
            BLOCKGRAPH_NEO4J_USERNAME: Neo4j username
            BLOCKGRAPH_NEO4J_PASSWORD: Neo4j password
            BLOCKGRAPH_LINK_PAIR_DELAY: Seconds between pairwise edge writes
            BLOCKGRAPH_SEARCH_THRESHOLD: Minimum vector similarity for search
            BLOCKGRAPH_IMPORT_RATE_LIMIT: Embedding requests per period during import
        """
        # Load .env file if provided or exists
        if env_file:
            load_dotenv(env_file)
        elif Path(".env").exists():
            load_dotenv()

        def get_env(key: str, default: Any = None) -> Any:
            """Get environment variable with type conversion."""
            value = os.getenv(key)
            if value is None or value == "":
                return default
            # Convert boolean strings
            if isinstance(default, bool):
                return str(value).lower() in ("true", "1", "yes")
            # Convert numeric strings
            if isinstance(default, int):
                return int(value)
            if isinstance(default, float):
                return float(value)
            return value

        openai_key = get_env("OPENAI_API_KEY")

        return cls(
            llm=LLMConfig(
                provider=get_env("BLOCKGRAPH_LLM_PROVIDER", "openai"),
                model=get_env("BLOCKGRAPH_LLM_MODEL", get_env("OPENAI_ANSWER_MODEL", "gpt-4")),
                base_url=get_env("BLOCKGRAPH_LLM_BASE_URL"),
                api_key=get_env("BLOCKGRAPH_LLM_API_KEY", openai_key),
                temperature=get_env("BLOCKGRAPH_LLM_TEMPERATURE", 0.7),
                max_tokens=get_env("BLOCKGRAPH_LLM_MAX_TOKENS", 500),
                timeout=get_env("BLOCKGRAPH_LLM_TIMEOUT", 60.0),
            ),
            embedder=EmbedderConfig(
                provider=get_env("BLOCKGRAPH_EMBEDDER_PROVIDER", "openai"),
                model=get_env("BLOCKGRAPH_EMBEDDER_MODEL", "text-embedding-3-small"),
                base_url=get_env("BLOCKGRAPH_EMBEDDER_BASE_URL"),
                api_key=get_env("BLOCKGRAPH_EMBEDDER_API_KEY", openai_key),
                timeout=get_env("BLOCKGRAPH_EMBEDDER_TIMEOUT", 30.0),
                dimension=get_env("BLOCKGRAPH_EMBEDDER_DIMENSION", 0) or None,
            ),
            tokenizer=TokenizerConfig(
                provider=get_env("BLOCKGRAPH_TOKENIZER_PROVIDER", "tiktoken"),
                embedding_token_limit=get_env("BLOCKGRAPH_EMBEDDING_TOKEN_LIMIT", 8192),
            ),
            graph_backend=get_env("BLOCKGRAPH_GRAPH_BACKEND", "neo4j"),
            neo4j=Neo4jConfig(
                uri=get_env("BLOCKGRAPH_NEO4J_URI", get_env("NEO4J_URI", "bolt://localhost:7687")),
                username=get_env("BLOCKGRAPH_NEO4J_USERNAME", get_env("NEO4J_USER", "neo4j")),
                password=get_env(
                    "BLOCKGRAPH_NEO4J_PASSWORD", get_env("NEO4J_PASSWORD", "password")
                ),
                database=get_env("BLOCKGRAPH_NEO4J_DATABASE", "neo4j"),
                max_connection_pool_size=get_env("BLOCKGRAPH_NEO4J_POOL_SIZE", 50),
                query_timeout=get_env("BLOCKGRAPH_NEO4J_QUERY_TIMEOUT", 30.0),
                max_retries=get_env("BLOCKGRAPH_NEO4J_MAX_RETRIES", 3),
            ),
            linking=LinkingConfig(
                pair_delay=get_env("BLOCKGRAPH_LINK_PAIR_DELAY", 0.1),
                recommendation_limit=get_env("BLOCKGRAPH_RECOMMENDATION_LIMIT", 5),
            ),
            search=SearchConfig(
                similarity_threshold=get_env("BLOCKGRAPH_SEARCH_THRESHOLD", 0.25),
                max_similarity_matches=get_env("BLOCKGRAPH_SEARCH_MAX_MATCHES", 10),
            ),
            importer=ImportConfig(
                requests_per_period=get_env("BLOCKGRAPH_IMPORT_RATE_LIMIT", 500),
                period_seconds=get_env("BLOCKGRAPH_IMPORT_PERIOD", 60.0),
                max_concurrency=get_env("BLOCKGRAPH_IMPORT_CONCURRENCY", 500),
                batch_size=get_env("BLOCKGRAPH_IMPORT_BATCH_SIZE", 100),
            ),
            logging=LoggingConfig(
                level=get_env("BLOCKGRAPH_LOG_LEVEL", "INFO"),
                log_to_file=get_env("BLOCKGRAPH_LOG_TO_FILE", True),
                log_dir=get_env("BLOCKGRAPH_LOG_DIR", "logs"),
                file_rotation=get_env("BLOCKGRAPH_LOG_FILE_ROTATION", "10 MB"),
                file_retention=get_env("BLOCKGRAPH_LOG_FILE_RETENTION", "7 days"),
                compression=get_env("BLOCKGRAPH_LOG_COMPRESSION", "zip"),
                serialize=get_env("BLOCKGRAPH_LOG_SERIALIZE", True),
            ),
        )

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> "Config":
        """
        Load configuration from YAML file.

        Args:
            yaml_path: Path to YAML configuration file

        Returns:
            Config instance

        Raises:
            FileNotFoundError: If YAML file doesn't exist
            yaml.YAMLError: If YAML is invalid
        """
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            raise FileNotFoundError(f"Config file not found: {yaml_path}")

        with open(yaml_path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)

    @classmethod
    def from_env_or_yaml(
        cls, yaml_path: str | Path | None = None, env_file: str | Path | None = None
    ) -> "Config":
        """
        Load configuration with priority: env vars > YAML > defaults.

        Only sections whose env-derived value differs from the defaults
        override the YAML content.
        """
        if yaml_path and Path(yaml_path).exists():
            with open(yaml_path) as f:
                config_dict = yaml.safe_load(f) or {}
        else:
            config_dict = {}

        env_config = cls.from_env(env_file=env_file)

        final_dict = {**config_dict}

        default = cls()
        for section in (
            "llm",
            "embedder",
            "tokenizer",
            "neo4j",
            "linking",
            "search",
            "importer",
            "logging",
        ):
            env_section = getattr(env_config, section)
            if env_section != getattr(default, section):
                final_dict[section] = env_section.model_dump()

        if env_config.graph_backend != default.graph_backend:
            final_dict["graph_backend"] = env_config.graph_backend

        return cls(**final_dict) if final_dict else env_config


# Default config instance
default_config = Config()
