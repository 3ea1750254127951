import os
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

FORMAT_STRING = '{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}'


def setup_logging(log_level: str = 'INFO', log_dir: Optional[Path] = None):
    # diagnose prints local variables of tracebacks, which include credentials
    logger.remove()
    logger.add(sys.stderr, format=FORMAT_STRING, level=log_level, diagnose=False)
    if not log_dir:
        return
    log_dir = Path(log_dir)
    if not os.path.isdir(log_dir):
        os.makedirs(log_dir, exist_ok=True)
    logger.add(log_dir / 'db-backup.log',
               format=FORMAT_STRING,
               rotation='00:00',
               retention='14 days',
               level=log_level,
               backtrace=True,
               diagnose=False)
