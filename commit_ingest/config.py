from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings


class ObjectCacheConfig(BaseModel):
    """
    Object-store tuning applied to a single repository handle.

    Values are translated into ``git -c core.*`` options on the handle's
    git command wrapper, so each handle can carry its own configuration.
    """

    model_config = ConfigDict(frozen=True)

    packed_git_window_size: int = 64 * 1024
    packed_git_limit: int = 32 * 1024 * 1024
    delta_base_cache_limit: int = 0
    big_file_threshold: int = 128 * 1024

    def as_git_options(self) -> List[str]:
        return [
            f"core.packedGitWindowSize={self.packed_git_window_size}",
            f"core.packedGitLimit={self.packed_git_limit}",
            f"core.deltaBaseCacheLimit={self.delta_base_cache_limit}",
            f"core.bigFileThreshold={self.big_file_threshold}",
        ]


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Commit Ingest"
    APP_VERSION: str = "1.0.0"
    ENV: str = "dev"  # Environment: "dev", "staging", "prod"

    # Local clones live under DATA_DIR/repos
    DATA_DIR: str = "../repo-data/data"

    # --- Repository acquisition ---
    SSH_PRIVATE_KEY_PATH: Optional[str] = None
    GIT_CLONE_TIMEOUT: int = 600
    GIT_FETCH_TIMEOUT: int = 300
    GIT_MAX_RETRIES: int = 3  # Attempts for clone/fetch on transient errors
    GIT_RETRY_MIN_DELAY: float = 1.0
    GIT_RETRY_MAX_DELAY: float = 30.0

    # --- Blob loading ---
    BINARY_PROBE_BYTES: int = 2 * 1024  # NUL byte in this prefix => binary
    MAX_TEXT_BYTES: int = 512 * 1024  # Text content is truncated past this

    # --- Tree diffing ---
    DETECT_COPIES: bool = True

    # --- Object store tuning ---
    GIT_PACKED_WINDOW_SIZE: int = 64 * 1024
    GIT_PACKED_LIMIT: int = 32 * 1024 * 1024
    GIT_DELTA_BASE_CACHE_LIMIT: int = 0
    GIT_BIG_FILE_THRESHOLD: int = 128 * 1024

    def object_cache(self) -> ObjectCacheConfig:
        return ObjectCacheConfig(
            packed_git_window_size=self.GIT_PACKED_WINDOW_SIZE,
            packed_git_limit=self.GIT_PACKED_LIMIT,
            delta_base_cache_limit=self.GIT_DELTA_BASE_CACHE_LIMIT,
            big_file_threshold=self.GIT_BIG_FILE_THRESHOLD,
        )

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
