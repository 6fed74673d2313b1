from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_JWT_SECRET = "very-secret-key"


class Settings(BaseSettings):
    app_name: str = "users-api"
    environment: str = "local"
    port: int = 3000

    mongo_url: str | None = None
    mongo_scheme: str = "mongodb"
    mongo_port: int = 27017
    mongo_host: str = "localhost"
    mongo_db: str = "users_api"
    mongo_password: str | None = None
    mongo_params: str | None = None
    mongo_user: str | None = None
    mongo_tls: bool = False

    jwt_algorithm: str = "HS256"
    jwt_secret_key: str = DEFAULT_JWT_SECRET
    jwt_key_id: str = "v1"
    # Old key ids still accepted when verifying, e.g. {"v1": "<old secret>"}
    jwt_retired_keys: dict[str, str] = {}
    access_token_expires_minutes: int | None = 60 * 24 * 7

    bcrypt_rounds: int = 12

    redis_db: int = 0
    redis_port: int = 6379
    redis_host: str = "localhost"
    redis_password: str | None = None

    log_level: str = "INFO"
    log_json: bool = False

    model_config = SettingsConfigDict(env_file=(".env",), case_sensitive=True)

    @model_validator(mode="after")
    def require_secret_outside_local(self):
        if self.environment not in ("local", "test") and self.jwt_secret_key == DEFAULT_JWT_SECRET:
            raise ValueError("jwt_secret_key must be configured outside local/test environments")
        return self

    @property
    def mongo_uri(self) -> str:
        if self.mongo_url:
            return self.mongo_url
        auth = ""
        if self.mongo_user and self.mongo_password:
            auth = f"{self.mongo_user}:{self.mongo_password}@"
        # srv records carry their own port
        host = self.mongo_host if self.mongo_scheme == "mongodb+srv" else f"{self.mongo_host}:{self.mongo_port}"
        params = f"?{self.mongo_params}" if self.mongo_params else ""
        return f"{self.mongo_scheme}://{auth}{host}/{self.mongo_db}{params}"

    def signing_key(self, key_id: str | None) -> str | None:
        """Secret for a token's `kid` header, current or retired."""
        if key_id is not None and not isinstance(key_id, str):
            return None
        if key_id is None or key_id == self.jwt_key_id:
            return self.jwt_secret_key
        return self.jwt_retired_keys.get(key_id)


settings = Settings()
