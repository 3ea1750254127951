"""
Triggers backup runs on startup and/or on a cron schedule.
"""
import threading
from datetime import datetime
from typing import Callable, Optional

from croniter import croniter
from loguru import logger

from db_backup.utils.errors import ConfigError


class CronScheduler:
    """
    Calls a task each time a cron expression is due.
    The task runs in the thread that called run_forever.
    """

    def __init__(self, expression: str, task: Callable[[], object],
                 now: Callable[[], datetime] = datetime.now):
        """
        :param expression: minute hour day-of-month month day-of-week
        :param task: called at every tick
        :param now: clock, local time
        :raises ConfigError: invalid expression
        """
        if not croniter.is_valid(expression):
            raise ConfigError(f'Invalid cron expression: {expression}')
        self.expression = expression
        self._task = task
        self._now = now
        self._stop = threading.Event()
        self.last_fire: Optional[datetime] = None

    def next_fire(self, after: Optional[datetime] = None) -> datetime:
        """
        Next time the expression is due.
        :param after: start point, now by default
        """
        return croniter(self.expression, after or self._now()).get_next(datetime)

    def stop(self):
        self._stop.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def run_forever(self):
        """
        Block and run the task at every tick until stop() is called.
        Ticks missed while the task was running are not caught up.
        """
        logger.info(f'Backups configured on cron schedule: {self.expression}')
        while not self._stop.is_set():
            now = self._now()
            # the clock may still read slightly before the last tick after waking up
            fire_at = self.next_fire(max(now, self.last_fire) if self.last_fire else now)
            delay = max((fire_at - self._now()).total_seconds(), 0)
            logger.debug(f'Next backup run at {fire_at} (in {delay:.0f}s)')
            if self._stop.wait(delay):
                break
            self.last_fire = fire_at
            self._task()
        logger.info('Scheduler stopped')


def start(task: Callable[[], object], run_on_startup: bool = False,
          cron: Optional[str] = None) -> Optional[CronScheduler]:
    """
    Run the task once if run_on_startup is set, then block on the cron schedule if given.
    Neither set is valid and does nothing.
    :param task: the backup run
    :param run_on_startup: run once immediately
    :param cron: cron expression or None
    :return: the scheduler after it was stopped, None without a schedule
    """
    scheduler = CronScheduler(cron, task) if cron else None
    if run_on_startup:
        logger.info('run_on_startup enabled, backing up now...')
        task()
    if not scheduler:
        if not run_on_startup:
            logger.warning('Neither RUN_ON_STARTUP nor CRON is set. Nothing to do.')
        return None
    scheduler.run_forever()
    return scheduler
