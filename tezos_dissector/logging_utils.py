"""
logging_utils.py - Root logger setup for the command line

Console output goes to stderr so decoded trees on stdout stay clean. An
optional log file receives everything down to DEBUG.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union


def setup_logging(*, console_level: Union[int, str] = logging.WARNING,
                  file_path: Optional[Union[str, Path]] = None) -> None:
    """Replace the root handlers: console on stderr, optional log file."""
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    root.handlers.clear()
    formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(name)s - %(message)s')

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    if file_path:
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, mode='w', encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
