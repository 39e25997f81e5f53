"""Root logger setup for the goldenlink CLI."""

from __future__ import annotations

import logging


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Route MDM log records, including the audit trail, to stderr.

    ``--verbose`` lowers ``level`` to DEBUG. ``force=True`` replaces handlers
    that are already installed.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
