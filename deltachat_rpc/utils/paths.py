"""Centralized path and environment definitions for the RPC client.

This module provides a single source of truth for the locations and
environment variables the client reads, so the transport, the config layer
and the test factory agree on them.
"""

from pathlib import Path

# Base client directory
CLIENT_DIR = Path.home() / ".deltachat-rpc"

# Specific files
CONFIG_PATH = CLIENT_DIR / "config.json"
LOGS_DIR = CLIENT_DIR / "logs"

# Core server
DEFAULT_SERVER_BIN = "deltachat-rpc-server"

# Environment variables
ACCOUNTS_PATH_ENV = "DC_ACCOUNTS_PATH"
SERVER_PATH_ENV = "DC_RPC_SERVER"
LOG_LEVEL_ENV = "DC_RPC_LOG_LEVEL"
LOG_DIR_ENV = "DC_RPC_LOG_DIR"
CONFIG_PATH_ENV = "DC_RPC_CONFIG"
