"""Node identity: the self-description a node sends in every discovery reply."""

from __future__ import annotations

import uuid
from typing import Any

from pydantic import ConfigDict, Field

from udpnode.config.schema import Base, NodeOptions, NodeSettings


def _new_node_id() -> str:
    return str(uuid.uuid4())


class Identity(Base):
    """Immutable self-description of one node.

    ``port`` and ``broadcast_address`` are only filled in by :meth:`configured_with`;
    an identity without them belongs to a node that has not been set up yet.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_node_id)
    port: int | None = None
    broadcast_address: str | None = None
    role: str | None = None
    name: str | None = None

    @property
    def is_configured(self) -> bool:
        return self.port is not None and self.broadcast_address is not None

    @property
    def display_name(self) -> str:
        """Label used in log lines, e.g. ``"kitchen (sensor)"``."""
        label = self.name or self.id[:8]
        return f"{label} ({self.role})" if self.role else label

    def configured_with(
        self,
        options: NodeOptions,
        settings: NodeSettings | None = None,
    ) -> Identity:
        """Return a configured copy; omitted options fall back to *settings*.

        ``id`` is kept unless *options* overrides it explicitly.
        """
        settings = settings or NodeSettings()
        return Identity(
            id=options.id or self.id,
            port=options.port if options.port is not None else settings.port,
            broadcast_address=options.broadcast_address or settings.broadcast_address,
            role=options.role or settings.role,
            name=options.name or settings.name,
        )

    def bound_to(self, port: int) -> Identity:
        """Record the port the transport actually bound (differs when 0 was asked)."""
        if port == self.port:
            return self
        return self.model_copy(update={"port": port})

    def snapshot(self) -> dict[str, Any]:
        """Wire form: camelCase keys, unset optional fields omitted."""
        return self.model_dump(by_alias=True, exclude_none=True)
