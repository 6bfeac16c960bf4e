from functools import lru_cache
from typing import Annotated, Any, Literal

from pydantic import AliasChoices, AnyUrl, BeforeValidator, Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


def parse_cors(v: Any) -> list[str] | str:
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",") if i.strip()]
    elif isinstance(v, list | str):
        return v
    raise ValueError(v)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
        frozen=True,
    )

    PROJECT_NAME: str = "Graph Connector"
    API_PREFIX: str = "/api"
    LOG_LEVEL: str = "INFO"

    TENANT_ID: str
    CLIENT_ID: str
    CLIENT_SECRET: str = Field(
        validation_alias=AliasChoices(
            "CLIENT_SECRET", "MICROSOFT_PROVIDER_AUTHENTICATION_SECRET"
        )
    )

    AUTHORITY_HOST: str = "https://login.microsoftonline.com"
    MICROSOFT_GRAPH_URL: str = "https://graph.microsoft.com"
    GRAPH_SCOPE: str = "https://graph.microsoft.com/.default"

    HTTP_TIMEOUT_SECONDS: float = Field(default=30.0, gt=0)
    FETCH_TIMEOUT_SECONDS: float = Field(default=120.0, gt=0)
    FETCH_FAILURE_POLICY: Literal["fail", "partial"] = "fail"

    BACKEND_CORS_ORIGINS: Annotated[
        list[AnyUrl] | str, BeforeValidator(parse_cors)
    ] = []

    @computed_field  # type: ignore[prop-decorator]
    @property
    def all_cors_origins(self) -> list[str]:
        return [str(origin).rstrip("/") for origin in self.BACKEND_CORS_ORIGINS]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def token_endpoint(self) -> str:
        return f"{self.AUTHORITY_HOST.rstrip('/')}/{self.TENANT_ID}/oauth2/v2.0/token"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def graph_base_url(self) -> str:
        return f"{self.MICROSOFT_GRAPH_URL.rstrip('/')}/v1.0"


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings, loaded on first use."""
    return Settings()  # type: ignore[call-arg]
