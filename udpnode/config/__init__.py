"""Configuration module for udpnode."""

from udpnode.config.loader import load_options
from udpnode.config.schema import NodeOptions, NodeSettings

__all__ = ["NodeOptions", "NodeSettings", "load_options"]
