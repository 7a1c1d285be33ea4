"""
Centralized configuration management using Pydantic Settings.

Configuration is loaded from environment variables with sensible defaults.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TransportConfig(BaseSettings):
    """LAN transport configuration (lifx-async)."""

    model_config = SettingsConfigDict(env_prefix="LIFX_TRANSPORT_", env_file=".env", extra="ignore")

    broadcast_address: str = Field(default="255.255.255.255", description="Broadcast target for discovery")
    response_timeout: float = Field(
        default=3.0, gt=0.0, le=30.0,
        description="Seconds to wait for a reply before giving up",
    )
    discovery_timeout: float = Field(
        default=3.0, gt=0.0, le=30.0,
        description="Seconds one discovery pass listens for replies",
    )


class DiscoveryConfig(BaseSettings):
    """Network device discovery configuration."""

    model_config = SettingsConfigDict(env_prefix="LIFX_DISCOVERY_", env_file=".env", extra="ignore")

    enabled: bool = Field(default=True, description="Run the periodic discovery loop")
    interval_seconds: float = Field(default=5.0, gt=0.0, description="Broadcast interval")
    followup_delay_seconds: Optional[float] = Field(
        default=1.0,
        description="Extra broadcast shortly after start for devices still booting (None = disabled)",
    )
    stale_after_cycles: int = Field(
        default=24, ge=0,
        description="Evict devices unseen for this many discovery cycles (0 = never evict)",
    )
    discover_wait_seconds: float = Field(
        default=2.0, ge=0.0, le=30.0,
        description="Wait after an on-demand discovery broadcast",
    )
    lookup_wait_seconds: float = Field(
        default=0.5, ge=0.0, le=10.0,
        description="Bounded wait for a not-yet-registered serial in single-device operations",
    )


class DispatchConfig(BaseSettings):
    """Command fan-out configuration."""

    model_config = SettingsConfigDict(env_prefix="LIFX_DISPATCH_", env_file=".env", extra="ignore")

    max_concurrency: int = Field(default=16, ge=1, le=256, description="Concurrent device calls per batch")
    call_timeout: float = Field(
        default=10.0, gt=0.0, le=120.0,
        description="Deadline for one device's step, including reads before writes",
    )


class MCPConfig(BaseSettings):
    """MCP tool server configuration."""

    model_config = SettingsConfigDict(env_prefix="LIFX_MCP_", env_file=".env", extra="ignore")

    host: str = Field(default="0.0.0.0", description="SSE bind host")
    port: int = Field(default=8060, description="SSE port")


class Settings(BaseSettings):
    """Application-wide settings."""

    model_config = SettingsConfigDict(
        env_prefix="LIFX_",
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
    )

    log_level: str = Field(default="INFO", description="Logging level")

    transport: TransportConfig = Field(default_factory=TransportConfig)
    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    dispatch: DispatchConfig = Field(default_factory=DispatchConfig)
    mcp: MCPConfig = Field(default_factory=MCPConfig)


# Singleton settings instance
settings = Settings()
