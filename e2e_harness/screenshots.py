"""
Screenshot capture.

Both capture helpers return a CaptureResult instead of raising: a broken
screenshot must never change the outcome of the test that asked for it.
"""

import base64
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Optional

from .models import CaptureResult

logger = logging.getLogger(__name__)


def safe_file_stem(step_name: Optional[str]) -> str:
    if not step_name:
        return "step"
    return re.sub(r"[^a-zA-Z0-9_-]", "_", step_name)


async def capture_base64(page) -> CaptureResult:
    """Full-page screenshot encoded as base64 text."""
    if page is None:
        return CaptureResult(error="no page")
    try:
        data = await page.screenshot(full_page=True)
        return CaptureResult(base64=base64.b64encode(data).decode("ascii"))
    except Exception as e:
        logger.warning(f"[WARN] Could not capture screenshot: {e}")
        return CaptureResult(error=str(e))


async def capture_to_file(page, screenshots_dir: Path, step_name: Optional[str] = None) -> CaptureResult:
    """
    Full-page screenshot saved as ``<screenshots_dir>/<step>_<timestamp>.png``.

    The returned path is relative to the parent of ``screenshots_dir`` so the
    report can link to it.
    """
    if page is None:
        return CaptureResult(error="no page")
    try:
        screenshots_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S%f")[:-3]
        path = screenshots_dir / f"{safe_file_stem(step_name)}_{timestamp}.png"
        await page.screenshot(path=str(path), full_page=True)
        return CaptureResult(path=f"{screenshots_dir.name}/{path.name}")
    except Exception as e:
        logger.warning(f"[WARN] Could not save screenshot: {e}")
        return CaptureResult(error=str(e))
