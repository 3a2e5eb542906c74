"""
Configuration module for the context packing service.
Manages all environment variables and packing constants.
"""

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Dict, Optional

CATEGORIES = ("content", "document", "resource")


@dataclass
class TokenizerConfig:
    """Tokenizer configuration - budgets are only comparable within one encoding."""
    encoding_name: str = "cl100k_base"
    model_name: Optional[str] = None


@dataclass
class PackingConfig:
    """Per-category packing thresholds."""
    # Items above this are always reduced to retrieved fragments
    max_need_recall_tokens: int = 4096
    # Items below this are always kept whole in the remainder pass
    short_content_threshold: int = 100
    retrieval_limit: int = 10
    relevant_ratios: Dict[str, float] = field(
        default_factory=lambda: {c: 0.7 for c in CATEGORIES}
    )
    # Not enforced by the packer, kept for reporting
    short_ratios: Dict[str, float] = field(
        default_factory=lambda: {c: 0.3 for c in CATEGORIES}
    )


@dataclass
class BudgetSplitConfig:
    """Share of the overall budget handed to each category."""
    content_ratio: float = 0.4
    resource_ratio: float = 0.3
    document_ratio: float = 0.3
    whole_space_limit: int = 10


@dataclass
class EmbeddingConfig:
    """Embedding model used by the reference search service."""
    model_name: str = "all-MiniLM-L6-v2"
    normalize: bool = True


@dataclass
class Settings:
    """Main application settings loaded from environment."""

    # Chroma settings
    CHROMA_PATH: str = field(default_factory=lambda: os.getenv("CHROMA_PATH", "/data/chroma"))
    CHROMA_HOST: Optional[str] = field(default_factory=lambda: os.getenv("CHROMA_HOST"))
    CHROMA_PORT: int = field(default_factory=lambda: int(os.getenv("CHROMA_PORT", "8000")))
    COLLECTION_NAME: str = field(default_factory=lambda: os.getenv("COLLECTION_NAME", "knowledge_v1"))

    # Packing defaults
    DEFAULT_MAX_TOKENS: int = field(
        default_factory=lambda: int(os.getenv("DEFAULT_MAX_TOKENS", "8000"))
    )

    # Application settings
    DEBUG: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")
    LOG_LEVEL: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    # Nested configs
    tokenizer: TokenizerConfig = field(default_factory=TokenizerConfig)
    packing: PackingConfig = field(default_factory=PackingConfig)
    budget_split: BudgetSplitConfig = field(default_factory=BudgetSplitConfig)
    embedding: EmbeddingConfig = field(default_factory=EmbeddingConfig)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
