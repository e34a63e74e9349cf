"""Centralized configuration for entity-search using Pydantic Settings."""

from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Strictly typed configuration loaded from ``ENTITY_SEARCH_*`` environment variables.

    Instantiate once at startup and pass it to the components that need it.
    """

    model_config = SettingsConfigDict(
        env_prefix="ENTITY_SEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    # Pagination
    max_page_size: int = Field(default=100, ge=1, description="Largest page size a query may request")
    default_page_size: int = Field(default=20, ge=1, description="Page size used when the caller gives none")

    # Query building
    fuzzy_min_similarity: float = Field(
        default=0.6,
        gt=0.0,
        le=1.0,
        description="Normalized similarity required by fuzzy field matches",
    )

    # Dispatch
    multi_kind_failure_policy: Literal["skip", "fail"] = Field(
        default="skip",
        description="On unfiltered queries: skip a failing kind (logged) or fail the whole search",
    )

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=True, description="Emit structured JSON logs")

    @model_validator(mode="after")
    def _check_page_sizes(self) -> "Settings":
        if self.default_page_size > self.max_page_size:
            raise ValueError(
                f"ENTITY_SEARCH_DEFAULT_PAGE_SIZE ({self.default_page_size}) must not exceed "
                f"ENTITY_SEARCH_MAX_PAGE_SIZE ({self.max_page_size})"
            )
        return self
