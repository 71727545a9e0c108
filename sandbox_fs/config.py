# sandbox_fs/config.py
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Filesystem sandbox (every tool path is relative to this)
    SANDBOX_ROOT: Path = Path("./.sandbox")

    # MCP host identity
    MCP_SERVER_NAME: str = "SandboxFS"
    MCP_SERVER_VERSION: str = "0.1.0"

    # HTTP MCP transport
    MCP_HTTP_HOST: str = "127.0.0.1"
    MCP_HTTP_PORT: int = 8080
    MCP_HTTP_PATH: str = "/mcp"

    # Security: Bearer token and allowed origins
    MCP_HTTP_BEARER_TOKEN: str = "change-me"         # set in .env for prod
    MCP_HTTP_ALLOWED_ORIGINS: str = "http://localhost, http://127.0.0.1"
    MCP_HTTP_ALLOW_NO_ORIGIN: bool = True            # allow non-browser clients

    # Logging
    LOG_LEVEL: str = "INFO"

    def allowed_origins(self) -> set[str]:
        return {o.strip().lower() for o in self.MCP_HTTP_ALLOWED_ORIGINS.split(",") if o.strip()}
