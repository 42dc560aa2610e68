from __future__ import annotations

import logging
import subprocess
import sys
import webbrowser

logger = logging.getLogger(__name__)


def open_url(url: str) -> None:
    """Open *url* in the system browser without blocking the dashboard."""
    clean_url = url.strip()
    if not clean_url:
        return
    try:
        if sys.platform == "darwin":
            subprocess.Popen(["open", clean_url], stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
        else:
            webbrowser.open(clean_url, new=2)
    except (OSError, webbrowser.Error) as exc:
        logger.warning("Failed to open %s: %s", clean_url, exc)
