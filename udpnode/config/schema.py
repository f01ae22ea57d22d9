"""Configuration schema using Pydantic."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PORT = 3024
DEFAULT_BROADCAST_ADDRESS = "255.255.255.255"


class Base(BaseModel):
    """Base model that accepts both camelCase and snake_case keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class NodeOptions(Base):
    """Options accepted by ``configure``.  Omitted fields fall back to defaults."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="forbid"
    )

    id: str | None = None
    port: int | None = Field(default=None, ge=0, le=65535)  # 0 = OS-assigned
    broadcast_address: str | None = None
    role: str | None = None  # Interest-filter tag (unset = matches every filter)
    name: str | None = None  # Display label, diagnostics only


class NodeSettings(BaseSettings):
    """Process-level defaults, overridable through ``UDPNODE_*`` env vars."""

    port: int = Field(default=DEFAULT_PORT, ge=0, le=65535)
    broadcast_address: str = DEFAULT_BROADCAST_ADDRESS
    role: str | None = None
    name: str | None = None

    model_config = SettingsConfigDict(env_prefix="UDPNODE_")
