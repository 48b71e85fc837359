"""
Server Configuration

Process-wide settings read once from environment variables.
"""

import os


def _env_float(name: str, default: float) -> float:
    value = os.environ.get(name)
    if value is None or value.strip() == '':
        return default
    return float(value)


SERVER_NAME = "astroquery-mcp"
SERVER_VERSION = "1.2.5"

LOG_LEVEL = os.environ.get('ASTRO_MCP_LOG_LEVEL', 'INFO').upper()

# Timeouts in seconds
DEFAULT_TAP_TIMEOUT = _env_float('ASTRO_MCP_TAP_TIMEOUT', 60.0)
DEFAULT_HTTP_TIMEOUT = _env_float('ASTRO_MCP_HTTP_TIMEOUT', 30.0)
LONG_TAP_TIMEOUT = 120.0

HTTP_HOST = os.environ.get('ASTRO_MCP_HOST', '127.0.0.1')
HTTP_PORT = int(os.environ.get('ASTRO_MCP_PORT', '3000'))

USER_AGENT = f"{SERVER_NAME}/{SERVER_VERSION}"


def ads_api_key():
    """Return the NASA ADS bearer token, if one is configured."""
    return os.environ.get('ADS_API_KEY') or None
