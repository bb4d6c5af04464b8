"""
Logging setup shared by the GUI and the command line.
"""

import logging
import sys


def setup_logging(level: int = logging.INFO):
    """Configure logging for the application."""
    formatter = logging.Formatter(
        fmt='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%H:%M:%S'
    )

    # Console handler (for terminal output)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)

    # Set specific levels for components
    logging.getLogger('posestudio').setLevel(level)
    logging.getLogger('posestudio.models').setLevel(level)
    logging.getLogger('posestudio.core').setLevel(level)
