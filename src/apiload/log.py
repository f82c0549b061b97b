from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(console: bool = True, level: int | str = logging.INFO) -> None:
    root = logging.getLogger("apiload")
    for handler in list(root.handlers):
        root.removeHandler(handler)
    if console:
        handler: logging.Handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
    else:
        handler = logging.NullHandler()
    root.addHandler(handler)
    root.setLevel(level)
    root.propagate = False
