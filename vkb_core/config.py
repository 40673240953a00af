from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "postgresql+psycopg://localhost:5432/vkb"
    EMBEDDING_MODEL: str = "sentence-transformers/all-MiniLM-L6-v2"
    EMBEDDING_DIM: int = 384
    EMBEDDING_TIMEOUT_SECONDS: float = 10.0
    EMBEDDING_RETRY_WAIT_SECONDS: float = 0.2
    EMBEDDING_MAX_WORKERS: int = 4

    # search
    RRF_K: int = 60
    VECTOR_SIMILARITY_THRESHOLD: float = 0.3
    HALF_LIFE_DAYS: float = 365.0
    MAX_QUERY_LENGTH: int = 500

    # relationship graph
    RELATIONSHIP_THRESHOLD: float = 0.75
    RELATED_LIMIT: int = 10
    RELATIONSHIP_INSERT_BATCH_SIZE: int = 500
    PROGRESS_EVERY: int = 10

    LOG_LEVEL: str = "INFO"

settings = Settings()
