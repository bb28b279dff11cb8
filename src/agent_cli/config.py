"""
Configuration for the agent console client.

Values come from a JSON file in the user's home directory, with
environment variables taking precedence over the file.
"""

import json
import os
from pathlib import Path
from typing import Optional, Union

from pydantic import Field, ValidationError

from .errors import ConfigError
from .models import ApiModel

CONFIG_FILE_NAME = ".agent-cli-config.json"
DEFAULT_AUTHORITY = "https://login.microsoftonline.com/"

ENV_OVERRIDES = {
    "AGENT_CLI_CLIENT_ID": "client_id",
    "AGENT_CLI_TENANT_ID": "tenant_id",
    "AGENT_CLI_SERVER_URL": "server_url",
    "AGENT_CLI_TOKEN_CACHE": "token_cache_path",
    "AGENT_CLI_ACCOUNT": "preferred_account",
}


class CliConfig(ApiModel):
    """Resolved client configuration."""

    client_id: str = Field(default="your-default-client-id", alias="clientId")
    tenant_id: str = Field(default="your-default-tenant-id", alias="tenantId")
    server_url: str = Field(default="http://localhost:5000", alias="serverUrl")
    authority: str = DEFAULT_AUTHORITY
    scope: Optional[str] = None
    preferred_account: Optional[str] = Field(default=None, alias="preferredAccount")
    token_cache_path: Optional[str] = Field(default=None, alias="tokenCachePath")
    request_timeout: float = Field(default=30.0, alias="requestTimeout", gt=0)
    device_code_timeout: Optional[float] = Field(
        default=None, alias="deviceCodeTimeout", gt=0
    )

    @property
    def authority_url(self) -> str:
        return self.authority.rstrip("/") + "/" + self.tenant_id

    @property
    def scopes(self) -> list[str]:
        return [self.scope or f"api://{self.client_id}/access_as_user"]

    def save(self, path: Optional[Union[str, Path]] = None) -> Path:
        """
        Write the configuration as indented JSON, readable only by the owner.

        Args:
            path: Target file (defaults to ``~/.agent-cli-config.json``)

        Returns:
            The path that was written
        """
        config_path = Path(path) if path else default_config_path()
        data = self.model_dump(by_alias=True, exclude_none=True)
        config_path.write_text(json.dumps(data, indent=2) + "\n")
        os.chmod(config_path, 0o600)
        return config_path


def default_config_path() -> Path:
    return Path.home() / CONFIG_FILE_NAME


def load_config(path: Optional[Union[str, Path]] = None) -> CliConfig:
    """
    Load the configuration file, falling back to defaults if it does not exist.

    Args:
        path: Config file to read (defaults to ``~/.agent-cli-config.json``)

    Returns:
        CliConfig with environment overrides applied

    Raises:
        ConfigError: If the file exists but is not valid configuration JSON
    """
    config_path = Path(path) if path else default_config_path()

    data = {}
    if config_path.exists():
        try:
            data = json.loads(config_path.read_text())
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Failed to read {config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"{config_path} must contain a JSON object")

    for env_name, field_name in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            data.pop(CliConfig.model_fields[field_name].alias, None)
            data[field_name] = value

    try:
        return CliConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {config_path}: {e}") from e
