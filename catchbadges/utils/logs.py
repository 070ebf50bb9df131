import logging
import os
import sys


def setup_logging(level: int | None = None):
    '''Configure the root logger. LOG_LEVEL wins over the argument.'''
    env_level = os.getenv('LOG_LEVEL')
    if env_level:
        level = logging.getLevelName(env_level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(
        level=level if level is not None else logging.INFO,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    # psycopg pool chatter is not useful at info
    logging.getLogger('psycopg.pool').setLevel(logging.WARNING)
