"""Run one missed-workout sweep.

For deployments that schedule the sweep with cron instead of the in-process
scheduler (set MISSED_SWEEP_ENABLED=false on the API):

    */15 * * * * python scripts/mark_missed_workouts.py
"""

import sys
from pathlib import Path

# Add project root to path
_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from loguru import logger

from app.config.settings import settings
from app.core.logger import setup_logger
from app.db.session import get_session
from app.schedules.sweeper import sweep

if __name__ == "__main__":
    setup_logger(level=settings.log_level)
    try:
        with get_session() as session:
            count = sweep(session)
        print(f"✅ Marked {count} workouts as missed")
    except Exception as e:
        logger.exception(f"Missed-workout sweep failed: {e}")
        sys.exit(1)
