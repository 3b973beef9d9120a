import logging
import sys

LOGGER_NAME = "fontraster"

_logger = logging.getLogger(LOGGER_NAME)


def _ensure_handler() -> None:
    if _logger.handlers:
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter("[%(asctime)s] %(message)s", datefmt="%H:%M:%S")
    )
    _logger.addHandler(handler)
    _logger.setLevel(logging.INFO)


def log_message(message: str, verbose: bool = False, always_print: bool = False) -> None:
    """
    Logs a message if verbose output is enabled or the message must always be shown.

    Args:
        message (str): Message to log.
        verbose (bool): Whether detailed logging is enabled for the caller.
        always_print (bool): Log regardless of the verbose flag (warnings, errors).
    """
    if not (verbose or always_print):
        return
    _ensure_handler()
    if always_print:
        _logger.warning(message)
    else:
        _logger.info(message)
