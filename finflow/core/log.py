import logging

from finflow.config import settings

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(level: str | None = None):
    logging.basicConfig(
        format=LOG_FORMAT,
        level=getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO)
    )
