"""Application settings loaded from environment variables.

Environment Configuration:
    FOLIO_ENV: Deployment environment (local | test | staging | prod)
    DATABASE_URL: SQLAlchemy connection string (defaults to a local SQLite file)

Highlight Configuration:
    HIGHLIGHTS_STORE: Backend the API persists highlights in (sql | memory)
    HIGHLIGHTS_STORAGE_NAMESPACE: Key under which the memory store keeps its
        flat highlight collection
    HIGHLIGHT_OVERLAP_POLICY: How overlapping highlights render
        (first_start_wins | nested)

Logging Configuration:
    LOG_JSON: Emit JSON logs (true) or console-friendly logs (false)

Note: SQLite is accepted in local/test only. Staging/prod must point at a
server database.
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings


class Environment(str, Enum):
    """Valid deployment environments."""

    LOCAL = "local"
    TEST = "test"
    STAGING = "staging"
    PROD = "prod"


class OverlapPolicy(str, Enum):
    """Resolution strategy for overlapping highlights in one paragraph.

    first_start_wins: the earlier-starting highlight keeps the overlapped
        region; later highlights contribute only their uncovered tail.
    nested: every boundary splits the text; each piece is attributed to the
        innermost covering highlight and lists all covering ids.
    """

    FIRST_START_WINS = "first_start_wins"
    NESTED = "nested"


class HighlightStoreKind(str, Enum):
    """Backend behind the highlight repository.

    sql: the `highlights` table on DATABASE_URL.
    memory: one serialized collection per HIGHLIGHTS_STORAGE_NAMESPACE,
        process-local and lost on restart (local/test only).
    """

    SQL = "sql"
    MEMORY = "memory"


class Settings(BaseSettings):
    """Application configuration.

    Settings are loaded from environment variables.
    Validation rules:
    - DATABASE_URL must not be SQLite in staging and prod
    - HIGHLIGHTS_STORAGE_NAMESPACE must be non-blank
    - HIGHLIGHTS_STORE=memory is local/test only
    """

    folio_env: Environment = Field(default=Environment.LOCAL, alias="FOLIO_ENV")
    database_url: str = Field(default="sqlite:///./folio.db", alias="DATABASE_URL")

    # Highlight engine settings
    highlights_store: HighlightStoreKind = Field(
        default=HighlightStoreKind.SQL, alias="HIGHLIGHTS_STORE"
    )
    highlights_storage_namespace: str = Field(
        default="folio_highlights_v1", alias="HIGHLIGHTS_STORAGE_NAMESPACE"
    )
    highlight_overlap_policy: OverlapPolicy = Field(
        default=OverlapPolicy.FIRST_START_WINS, alias="HIGHLIGHT_OVERLAP_POLICY"
    )

    # Logging
    log_json: bool = Field(default=True, alias="LOG_JSON")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }

    @model_validator(mode="after")
    def validate_required_settings(self) -> "Settings":
        """Reject settings combinations that are unsafe for the environment."""
        if not self.highlights_storage_namespace.strip():
            raise ValueError("HIGHLIGHTS_STORAGE_NAMESPACE must not be blank")

        if self.folio_env in (Environment.STAGING, Environment.PROD):
            if self.is_sqlite:
                raise ValueError(
                    f"DATABASE_URL must not use SQLite for FOLIO_ENV={self.folio_env.value}"
                )
            if self.highlights_store == HighlightStoreKind.MEMORY:
                raise ValueError(
                    f"HIGHLIGHTS_STORE=memory is not allowed for FOLIO_ENV={self.folio_env.value}"
                )

        return self

    @property
    def is_sqlite(self) -> bool:
        """Whether the configured database is SQLite."""
        return self.database_url.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings instance loaded from environment.

    Raises:
        ValidationError: If settings are invalid.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache. Useful for testing."""
    get_settings.cache_clear()
