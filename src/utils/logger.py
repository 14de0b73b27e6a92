import logging
import sys

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'

def setup_logger(name="RPGMJsonTranslator", verbose=False):
    """
    Configure console logging once per process.
    ``name=None`` configures the root logger so module loggers inherit it.
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)

    if not any(getattr(h, "_rpgm_console", False) for h in logger.handlers):
        ch = logging.StreamHandler(sys.stdout)
        ch.setFormatter(logging.Formatter(LOG_FORMAT))
        ch._rpgm_console = True
        logger.addHandler(ch)

    for h in logger.handlers:
        if getattr(h, "_rpgm_console", False):
            h.setLevel(logging.DEBUG if verbose else logging.INFO)

    return logger
