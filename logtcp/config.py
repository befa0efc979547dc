# logtcp/config.py
from functools import lru_cache
from typing import Mapping, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from logtcp.exceptions import ConfigurationError

# Writer config keys understood by with_overrides()
CONFIG_KEYS = ("host", "tcpport", "retry", "tls", "cert", "key")


def _flag(value: str) -> bool:
    # Writer config booleans use the "T"/"F" convention; anything but "T" is false
    return value == "T"


class DestinationConfig(BaseSettings):
    """
    Destination of the log stream. Defaults below are the compiled-in layer; every field can be
    overridden with a LOGTCP_ prefixed environment variable (or a .env file), and then again per
    writer through with_overrides().

    Example:
        export LOGTCP_HOST=collector.example.com
        export LOGTCP_TLS=true
    """
    host: str = Field(default="localhost", description="Hostname of the collector")
    tcpport: int = Field(default=1337, ge=1, le=65535, description="TCP port of the collector")
    retry: bool = Field(default=False, description="Treat connect and write failures as transient")
    tls: bool = Field(default=False, description="Wrap the connection in TLS")
    cert: str = Field(default="", description="CA bundle path; empty uses the system trust store")
    key: str = Field(default="", description="Pre-shared key sent once per connection")
    tls_check_hostname: bool = Field(default=False, description="Also match the collector certificate against host")

    model_config = SettingsConfigDict(
        env_prefix="LOGTCP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    def with_overrides(self, config: Optional[Mapping[str, str]]) -> "DestinationConfig":
        """
        Apply a per-writer config layer. Only non-empty values replace the current ones;
        retry and tls are enabled by the literal "T".
        """
        if not config:
            return self

        updates = {}
        for name in CONFIG_KEYS:
            raw = config.get(name)
            if raw is None or raw == "":
                continue
            if name == "tcpport":
                updates[name] = self._parse_port(raw)
            elif name in ("retry", "tls"):
                updates[name] = _flag(raw)
            else:
                updates[name] = raw
        return self.model_copy(update=updates)

    @staticmethod
    def _parse_port(raw: str) -> int:
        try:
            port = int(raw)
        except ValueError:
            raise ConfigurationError(f"Invalid tcpport value: {raw!r}") from None
        if not 1 <= port <= 65535:
            raise ConfigurationError(f"tcpport out of range: {port}")
        return port

    @property
    def address(self) -> str:
        return f"{self.host}:{self.tcpport}"


# Singleton accessor
@lru_cache
def get_config() -> DestinationConfig:
    return DestinationConfig()


def reload_config() -> DestinationConfig:
    get_config.cache_clear()
    return get_config()
