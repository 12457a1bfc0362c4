"""
PlantUML renderer invocation.

The diagram document is piped through the ``plantuml`` executable
(``-pipe``), which writes the image to stdout. The command line is
configurable, e.g. ``java -jar /opt/plantuml.jar``.
"""

import asyncio
import logging
import subprocess
from typing import List, Optional

from codesque.config import Settings, check_format
from codesque.errors import RenderError

logger = logging.getLogger(__name__)


def build_command(settings: Settings, fmt: str) -> List[str]:
    return list(settings.plantuml_command) + [f"-t{check_format(fmt)}", "-pipe", "-charset", "UTF-8"]


def _failure(returncode: int, stderr: bytes) -> str:
    detail = stderr.decode("utf-8", errors="replace").strip()[:500]
    return f"plantuml exited with status {returncode}" + (f": {detail}" if detail else "")


def render_image(puml: str, settings: Settings, fmt: Optional[str] = None,
                 source: Optional[str] = None) -> bytes:
    """Render a diagram document to image bytes, blocking until done."""
    cmd = build_command(settings, fmt or settings.output_format)
    try:
        result = subprocess.run(
            cmd, input=puml.encode("utf-8"),
            capture_output=True, timeout=settings.render_timeout,
        )
    except FileNotFoundError:
        raise RenderError(f"PlantUML executable not found: {cmd[0]}", source) from None
    except subprocess.TimeoutExpired:
        raise RenderError(f"plantuml timed out after {settings.render_timeout:g}s", source) from None

    if result.returncode != 0:
        raise RenderError(_failure(result.returncode, result.stderr), source)
    return result.stdout


async def render_image_async(puml: str, settings: Settings, fmt: Optional[str] = None,
                             source: Optional[str] = None) -> bytes:
    """Asyncio counterpart of ``render_image`` for concurrent batches."""
    cmd = build_command(settings, fmt or settings.output_format)
    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError:
        raise RenderError(f"PlantUML executable not found: {cmd[0]}", source) from None

    try:
        stdout, stderr = await asyncio.wait_for(
            proc.communicate(puml.encode("utf-8")), timeout=settings.render_timeout,
        )
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        raise RenderError(f"plantuml timed out after {settings.render_timeout:g}s", source) from None

    if proc.returncode != 0:
        raise RenderError(_failure(proc.returncode, stderr), source)
    logger.debug("Rendered %s (%d bytes)", source or "diagram", len(stdout))
    return stdout
