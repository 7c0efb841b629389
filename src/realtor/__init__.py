"""Realtor — a from-scratch MCP stdio server, client, and tool-calling orchestrator."""

from __future__ import annotations

__version__ = "0.1.0"

PROTOCOL_VERSION = "2025-03-26"
