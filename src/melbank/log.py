import logging
from typing import Optional

LOGGING_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def setup_logging(
        log_file: Optional[str] = None,
        console_level: int = logging.INFO
) -> Optional[logging.FileHandler]:
    # root logger prints console_level and above
    logging.basicConfig(level=console_level, format=LOGGING_FORMAT, encoding='utf-8')
    # basicConfig does nothing when the root logger already has handlers
    logging.getLogger().setLevel(console_level)

    if log_file is None:
        return None

    handler = logging.FileHandler(log_file, encoding='utf-8')
    handler.setFormatter(logging.Formatter(LOGGING_FORMAT))
    handler.setLevel(logging.INFO)  # omit DEBUG level

    logging.getLogger().addHandler(handler)

    return handler


def close_logging(
        handler: Optional[logging.FileHandler]
) -> None:
    if handler is None:
        return
    logging.getLogger().removeHandler(handler)
    handler.close()
