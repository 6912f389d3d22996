#!/usr/bin/env python3
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

print(
    f"[mcp] engine={os.environ.get('MCP_BROWSER_ENGINE', 'chromium')} | "
    f"mode={os.environ.get('MCP_BROWSER_MODE', 'launch')} | "
    f"root={os.environ.get('MCP_RECORDING_ROOT', '/data')} | "
    f"public={os.environ.get('MCP_RECORDING_PUBLIC_URL', 'https://videos.qabot.app')}",
    file=sys.stderr,
)

from mcp_servers.recorder.main import main  # noqa: E402

if __name__ == "__main__":
    main()
