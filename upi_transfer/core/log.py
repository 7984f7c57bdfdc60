from __future__ import annotations

import logging
from typing import Optional


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def sanitize_for_log(value: Optional[str]) -> Optional[str]:
    """Replace CR, LF and TAB so user input cannot forge log lines."""
    if value is None:
        return None
    return value.replace("\n", "_").replace("\r", "_").replace("\t", "_")
