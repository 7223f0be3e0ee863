"""
Configuration management for the content saturation analyzer.

Every threshold the analysis engine uses is an env-overridable setting so
deployments can tune them without touching code. Pipeline functions take
an explicit Settings snapshot; get_settings() is only the default source.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ── Similarity & Clustering ──
    # Cosine similarity above which two pieces of content are "related".
    # DBSCAN radius is derived from it: eps = 1 - related_threshold (0.3).
    related_threshold: float = Field(default=0.7, alias="RELATED_THRESHOLD")
    # Minimum centroid similarity for an idea to be matched to a cluster.
    # Below this the idea is classified novel (no cluster).
    match_threshold: float = Field(default=0.6, alias="MATCH_THRESHOLD")
    # DBSCAN min_samples (the point itself counts).
    cluster_min_neighbors: int = Field(default=3, alias="CLUSTER_MIN_NEIGHBORS")

    # ── Trend Analyzer ──
    trend_window_days: int = Field(default=90, alias="TREND_WINDOW_DAYS")
    trend_bucket_days: int = Field(default=7, alias="TREND_BUCKET_DAYS")
    # Recent-volume window used by the saturation boost (30d / 90d ratio)
    recent_window_days: int = Field(default=30, alias="RECENT_WINDOW_DAYS")

    # ── Result shaping ──
    top_similar_limit: int = Field(default=5, alias="TOP_SIMILAR_LIMIT")

    # ── Embedding provider ──
    # 0 = infer from the first embedding and lock it
    embedding_dim: int = Field(default=0, alias="EMBEDDING_DIM")
    embedding_provider: str = Field(default="local", alias="EMBEDDING_PROVIDER")  # local | ollama
    local_embedding_model: str = Field(
        default="sentence-transformers/all-mpnet-base-v2", alias="LOCAL_EMBEDDING_MODEL"
    )
    ollama_base_url: str = Field(default="http://localhost:11434", alias="OLLAMA_BASE_URL")
    ollama_embedding_model: str = Field(default="nomic-embed-text", alias="OLLAMA_EMBEDDING_MODEL")
    embedding_max_concurrent: int = Field(default=8, alias="EMBEDDING_MAX_CONCURRENT")
    embedding_timeout: float = Field(default=60.0, alias="EMBEDDING_TIMEOUT")

    # Application Settings
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"
        populate_by_name = True

    @property
    def cluster_radius(self) -> float:
        """DBSCAN neighborhood radius in cosine distance."""
        return 1.0 - self.related_threshold


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
