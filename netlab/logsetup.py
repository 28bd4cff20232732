"""Root logger configuration shared by the CLI and the HTTP server."""

from __future__ import annotations

import logging

from netlab.config import LoggingConfig


def setup_logging(cfg: LoggingConfig | None = None, verbose: bool = False) -> None:
    cfg = cfg or LoggingConfig()
    level = logging.DEBUG if verbose else getattr(logging, cfg.level, logging.INFO)
    logging.basicConfig(
        level=level,
        format=cfg.format,
        datefmt=cfg.datefmt,
        force=True,
    )
    # aiohttp client internals are noisy below WARNING
    if not verbose:
        logging.getLogger("aiohttp").setLevel(logging.WARNING)
