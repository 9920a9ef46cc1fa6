"""
Configuration settings for the talk relay server and terminal client.
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()

# Web server
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8080"))
PUBLIC_DIR = Path(os.getenv("PUBLIC_DIR", Path(__file__).parent / "public"))

# Terminal client
RELAY_URL = os.getenv("RELAY_URL", f"ws://127.0.0.1:{PORT}/ws")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOGGER_NAME = "talk_relay"


def setup_logging(level: str = LOG_LEVEL) -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    # Remove existing handlers so repeated setup does not duplicate output
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    logger.addHandler(console_handler)
    return logger
