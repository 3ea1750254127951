"""
Contains classes describing a backup target and the outcome of a run.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional

from .converters import archive_file_name


class Dialect(Enum):
    """
    Database kinds with a dump plan.
    """
    POSTGRESQL = 'postgresql'
    MONGODB = 'mongodb'
    MYSQL = 'mysql'
    UNKNOWN = 'unknown'


class TargetStatus(Enum):
    SUCCESS = 'success'
    FAILED = 'failed'
    SKIPPED = 'skipped'


@dataclass(frozen=True)
class ConnectionDescriptor:
    """
    Parsed connection URI of one target.
    scheme is the raw URI scheme and is used in logs,
    dialect is the normalized kind used for plan selection.
    """
    uri: str = field(repr=False)
    scheme: str
    dialect: Dialect
    host: str
    port: str
    username: str
    password: str = field(repr=False)
    database: str

    @property
    def kind(self) -> str:
        """
        Dialect name, the raw scheme for unknown dialects.
        postgres:// -> postgresql, mongodb+srv:// -> mongodb
        """
        return self.scheme if self.dialect == Dialect.UNKNOWN else self.dialect.value

    def __str__(self):
        return f'{self.scheme}/{self.database}@{self.host}'


@dataclass(frozen=True)
class DumpPlan:
    """
    Commands to dump a database.
    If stdout_to_file is set, stdout of dump_command is written to the dump file,
    otherwise the tool writes the file itself.
    """
    dump_command: List[str]
    version_command: List[str]
    stdout_to_file: bool = False
    secrets: List[str] = field(default_factory=list, repr=False)


@dataclass
class ArchiveFile:
    """
    Temporary files of one pipeline run.
    """
    directory: Path
    name: str

    @classmethod
    def for_target(cls, directory: Path, descriptor: ConnectionDescriptor,
                   timestamp: Optional[datetime] = None) -> 'ArchiveFile':
        """
        Allocate the archive path for a target.
        :param directory: scratch dir
        :param descriptor: parsed target
        :param timestamp: run time, now by default
        :return: archive file
        """
        timestamp = timestamp if timestamp else datetime.now()
        name = archive_file_name(descriptor.kind, timestamp, descriptor.database,
                                 descriptor.host)
        return cls(directory=Path(directory), name=name)

    @property
    def path(self) -> Path:
        return self.directory / self.name

    @property
    def dump_path(self) -> Path:
        return self.directory / f'{self.name}.dump'


@dataclass
class TargetResult:
    """
    Outcome of the pipeline for one target.
    """
    index: int
    target: str
    status: TargetStatus
    descriptor: Optional[ConnectionDescriptor] = None
    key: Optional[str] = None
    size: int = 0
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.status == TargetStatus.SUCCESS


@dataclass
class RunSummary:
    """
    Results of one orchestrator pass.
    """
    started: datetime = field(default_factory=datetime.now)
    finished: Optional[datetime] = None
    results: List[TargetResult] = field(default_factory=list)

    def add(self, result: TargetResult) -> 'RunSummary':
        self.results.append(result)
        return self

    def _with_status(self, status: TargetStatus) -> List[TargetResult]:
        return [x for x in self.results if x.status == status]

    @property
    def succeeded(self) -> List[TargetResult]:
        return self._with_status(TargetStatus.SUCCESS)

    @property
    def failed(self) -> List[TargetResult]:
        return self._with_status(TargetStatus.FAILED)

    @property
    def skipped(self) -> List[TargetResult]:
        return self._with_status(TargetStatus.SKIPPED)

    def __str__(self):
        return (f'{len(self.results)} target(s): {len(self.succeeded)} succeeded, '
                f'{len(self.failed)} failed, {len(self.skipped)} skipped')
