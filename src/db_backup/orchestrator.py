"""
Backs up a list of databases one after another.
A failing database is logged and does not stop the others.
"""
import threading
from datetime import datetime
from functools import reduce
from typing import Optional, Sequence

from loguru import logger

from db_backup.backends.base import Backend
from db_backup.backends.s3 import S3Backend
from db_backup.database.dump import ArchiveBuilder
from db_backup.database.strategies import select_plan
from db_backup.database.uri import parse
from db_backup.utils.config import AppConfig
from db_backup.utils.converters import mask_uri
from db_backup.utils.datatypes import (ConnectionDescriptor, RunSummary,
                                       TargetResult, TargetStatus)
from db_backup.utils.errors import UnknownDialectError


class Orchestrator:
    """
    Runs the backup pipeline (parse, plan, dump, compress, upload, cleanup) per target.
    """

    def __init__(self, builder: ArchiveBuilder, backend: Backend):
        """
        :param builder: creates archives in the scratch dir
        :param backend: storage for the archives
        """
        self.builder = builder
        self.backend = backend
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: AppConfig) -> 'Orchestrator':
        return cls(ArchiveBuilder(config.scratch_dir), S3Backend(config.s3))

    @property
    def running(self) -> bool:
        return self._lock.locked()

    def run_all(self, targets: Sequence[str]) -> Optional[RunSummary]:
        """
        Back up all targets in the given order.
        Only one pass runs at a time. A call during a running pass is dropped.
        :param targets: connection URIs
        :return: summary or None if another pass is still running
        """
        if not self._lock.acquire(blocking=False):
            logger.warning('A backup run is still in progress. Skipping this run.')
            return None
        try:
            if len(targets) == 0:
                logger.info('No databases defined.')
                return RunSummary(finished=datetime.now())

            total = len(targets)
            summary = reduce(
                lambda s, x: s.add(self.run_target(x[0], total, x[1])),
                enumerate(targets, start=1),
                RunSummary()
            )
            summary.finished = datetime.now()
            log = logger.info if not summary.failed else logger.error
            log(f'Backup run finished: {summary}')
            return summary
        finally:
            self._lock.release()

    def run_target(self, index: int, total: int, target: str) -> TargetResult:
        """
        Run the pipeline for one target. Never raises.
        :param index: 1-based position of the target
        :param total: number of targets in this run
        :param target: connection URI
        :return: result of the target
        """
        descriptor: Optional[ConnectionDescriptor] = None
        prefix = f'[{index}/{total}]'
        try:
            descriptor = parse(target)
            logger.debug(f'{prefix} Parsed {mask_uri(target)}: {descriptor!r}')
            archive = self.builder.allocate(descriptor)
            plan = select_plan(descriptor, archive.dump_path)
            if plan is None:
                raise UnknownDialectError(f'Unknown database type: {descriptor.scheme}')

            logger.info(f'{prefix} {descriptor.scheme}/{descriptor.database} '
                        'Backup in progress...')
            try:
                data = self.builder.build(descriptor, plan, archive)
                self.backend.upload(archive.name, data)
            finally:
                self.builder.cleanup(archive)
        except UnknownDialectError as e:
            logger.warning(f'{prefix} Skipping {descriptor}: {e}')
            return TargetResult(index, target, TargetStatus.SKIPPED, descriptor, error=e)
        except Exception as e:
            if descriptor:
                context = (f'the database {descriptor.scheme} {descriptor.database}, '
                           f'host: {descriptor.host}')
            else:
                context = f'the database URI "{mask_uri(target)}"'
            logger.exception(f'{prefix} An error occurred while processing {context}: {e}')
            return TargetResult(index, target, TargetStatus.FAILED, descriptor, error=e)

        logger.success(f'{prefix} Successfully uploaded db backup for database '
                       f'{descriptor.scheme} {descriptor.database} {descriptor.host}.')
        return TargetResult(index, target, TargetStatus.SUCCESS, descriptor,
                            key=archive.name, size=len(data))
