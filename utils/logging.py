import logging
import os
import sys
from datetime import datetime

LOG_DIR = os.environ.get('ENCOUNTERS_LOG_DIR', os.path.join(os.path.dirname(__file__), '..', 'logs'))
LOG_LEVEL = os.environ.get('ENCOUNTERS_LOG_LEVEL', 'INFO').upper()
os.makedirs(LOG_DIR, exist_ok=True)
LOG_FILE = os.path.join(LOG_DIR, f'encounters_{datetime.now().strftime("%Y%m%d")}.log')

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format='%(asctime)s %(levelname)s %(name)s %(message)s',
    handlers=[
        logging.FileHandler(LOG_FILE),
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger('named_encounters')

def log_exception(exc, extra_info=None):
    """Log an exception with its traceback and optional context."""
    logger.error('%s: %s', exc.__class__.__name__, exc, exc_info=exc)
    if extra_info:
        logger.error('Context: %s', extra_info)

def log_generation(encounter, total_xp_budget, category=None):
    """One summary line per generation request, success or failure."""
    if 'error' in encounter:
        logger.info(
            'Generation failed (%s, budget %s): %s',
            category or 'random', total_xp_budget, encounter['error']
        )
    else:
        logger.info(
            'Generated %s encounter %s: %d creatures, %s/%s XP, %s',
            encounter['category'], encounter['id'], encounter['quantity'],
            encounter['total_xp_used'], total_xp_budget, encounter['terrain']
        )
