# aiplacement/utils/logger.py
import logging
import sys
from aiplacement.utils.config import settings

logger = logging.getLogger("aiplacement")

# Unknown level names fall back to INFO.
logger.setLevel(getattr(logging, settings.log_level, logging.INFO))

# Uvicorn's reloader imports this module more than once.
if logger.hasHandlers():
    logger.handlers.clear()

handler = logging.StreamHandler(sys.stdout)
handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
logger.addHandler(handler)
logger.propagate = False

# Provider SDKs log every HTTP request at INFO.
for noisy in ("httpx", "urllib3", "langchain_google_genai"):
    logging.getLogger(noisy).setLevel(max(logging.WARNING, logger.level))
