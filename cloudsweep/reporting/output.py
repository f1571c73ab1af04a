"""Output destination handling for file-based renderers."""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, TextIO

logger = logging.getLogger(__name__)


@contextmanager
def open_output(output_file: Optional[str] = None) -> Iterator[TextIO]:
    """
    Yield a writable text stream: ``output_file`` if given, else stdout.

    Parent directories are created as needed. Stdout is never closed.
    """
    if not output_file:
        yield sys.stdout
        return

    path = Path(output_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", newline="", encoding="utf-8") as f:
        yield f
    logger.info("Results saved to %s", path)
