import logging
import os

from dotenv import load_dotenv

load_dotenv()

SEED_PATH = os.getenv("FINTRACK_SEED_PATH", "data/seed.json")
LOG_LEVEL = os.getenv("FINTRACK_LOG_LEVEL", "INFO").upper()
CURRENCY = os.getenv("FINTRACK_CURRENCY", "USD")
DEFAULT_USER_ID = os.getenv("FINTRACK_USER_ID", "u1")


def configure_logging(level: str = LOG_LEVEL) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
