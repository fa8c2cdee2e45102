# Multisig account tool package init
import logging
import os

__version__ = "0.1.0"


def _configure_logging() -> None:
    level_name = (os.getenv("MULTISIG_LOG_LEVEL") or "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logger = logging.getLogger("multisig")
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("[MULTISIG][%(levelname)s] %(message)s"))
        logger.addHandler(handler)
    logger.setLevel(level)

    build_level_name = (os.getenv("MULTISIG_BUILD_LOG_LEVEL") or level_name).upper()
    build_level = getattr(logging, build_level_name, level)
    logging.getLogger("multisig.build").setLevel(build_level)


_configure_logging()
