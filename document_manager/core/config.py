from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    APP_ENV: str = "local"
    APP_NAME: str = "search-document-manager"
    LOG_LEVEL: str = "INFO"

    CORS_ORIGINS: str = "http://localhost:5601"

    OPENSEARCH_URL: str = "http://localhost:9200"
    OPENSEARCH_USER: str = ""
    OPENSEARCH_PASSWORD: str = ""
    OPENSEARCH_VERIFY_CERTS: bool = False
    OPENSEARCH_TIMEOUT_SECONDS: int = 30
    ENTITY_INDEX: str = "crud-entities"
    # Write refresh policy: true | false | wait_for
    OPENSEARCH_REFRESH: str = "true"

    DEFAULT_PAGE_SIZE: int = 25
    MAX_PAGE_SIZE: int = 100
    MAX_FILTERS: int = 10
    MAX_SORT_FIELDS: int = 5
    MAX_BULK_SIZE: int = 100

    # Analysed text fields and the keyword sub-field used for exact match and sorting
    KEYWORD_FIELDS: str = "title:title.keyword"

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def keyword_fields_map(self) -> dict[str, str]:
        mapping: dict[str, str] = {}
        for item in self.KEYWORD_FIELDS.split(","):
            field, _, target = item.strip().partition(":")
            if field and target:
                mapping[field.strip()] = target.strip()
        return mapping

    @property
    def opensearch_http_auth(self) -> tuple[str, str] | None:
        if not self.OPENSEARCH_USER:
            return None
        return (self.OPENSEARCH_USER, self.OPENSEARCH_PASSWORD)

settings = Settings()
