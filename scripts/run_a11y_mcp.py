#!/usr/bin/env python3
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

print(
    f"[mcp] binary={os.environ.get('MCP_BROWSER_BINARY', 'auto')} | "
    f"axe={os.environ.get('MCP_AXE_SOURCE') or os.environ.get('MCP_AXE_URL', 'cdnjs')} | "
    f"nav_timeout={os.environ.get('MCP_A11Y_NAV_TIMEOUT', '30')}s | "
    f"allowlist={os.environ.get('MCP_ALLOW_HOSTS', '*')}",
    file=sys.stderr,
)

from mcp_servers.axe_accessibility.main import main  # noqa: E402

if __name__ == "__main__":
    main()
