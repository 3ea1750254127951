import sys
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import pytest
from loguru import logger

from db_backup.backends.base import Backend
from db_backup.database.dump import ArchiveBuilder
from db_backup.orchestrator import Orchestrator
from db_backup.utils.errors import ExternalToolError, UploadError
from db_backup.utils.process import mask_command

REQUIRED_ENV = {
    'AWS_ACCESS_KEY_ID': 'AKIATEST',
    'AWS_SECRET_ACCESS_KEY': 'secret-key',
    'AWS_S3_REGION': 'eu-central-1',
    'AWS_S3_BUCKET': 'backups',
}
OPTIONAL_ENV = ('DATABASES', 'RUN_ON_STARTUP', 'CRON', 'AWS_S3_ENDPOINT', 'SCRATCH_DIR',
                'LOG_LEVEL', 'LOG_DIR')


class FakeRunner:
    """
    Replaces the external tools. Dump commands write a small dump file,
    tar writes the archive.
    """

    def __init__(self, fail: Iterable[str] = (), fail_version: bool = False):
        self.fail = set(fail)
        self.fail_version = fail_version
        self.commands: List[List[str]] = []

    def __call__(self, command: List[str], stdout_file: Optional[Path] = None,
                 secrets: Iterable[str] = ()) -> str:
        self.commands.append(list(command))
        binary = command[0]
        if '--version' in command:
            if self.fail_version:
                raise ExternalToolError(mask_command(command, secrets), stderr='not found')
            return f'{binary} 1.0\n'
        if binary in self.fail:
            raise ExternalToolError(mask_command(command, secrets), 2, 'access denied')
        if binary == 'tar':
            archive = Path(command[2])
            dump = Path(command[4]) / command[5]
            archive.write_bytes(b'tar.gz:' + dump.read_bytes())
            return ''
        if stdout_file:
            Path(stdout_file).write_bytes(b'-- sql dump')
        elif '-f' in command:
            Path(command[command.index('-f') + 1]).write_bytes(b'PGDMP')
        else:
            archive_arg = next(x for x in command if x.startswith('--archive='))
            Path(archive_arg.split('=', 1)[1]).write_bytes(b'mongo archive')
        return ''

    @property
    def binaries(self) -> List[str]:
        return [x[0] for x in self.commands]


class MemoryBackend(Backend):
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.objects: Dict[str, bytes] = {}

    def upload(self, key: str, data: bytes) -> None:
        if self.fail:
            raise UploadError(f'Upload of {key} failed: AccessDenied')
        self.objects[key] = data

    def get_existing_backups(self) -> List[str]:
        return sorted(self.objects)


@pytest.fixture(autouse=True)
def reset_logger():
    yield
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def log_messages():
    records = []
    handler_id = logger.add(lambda m: records.append(m.record), level='DEBUG')
    yield records
    logger.remove(handler_id)


@pytest.fixture
def scratch_dir(tmp_path) -> Path:
    path = tmp_path / 'scratch'
    path.mkdir()
    return path


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def backend() -> MemoryBackend:
    return MemoryBackend()


@pytest.fixture
def orchestrator(scratch_dir, runner, backend) -> Orchestrator:
    return Orchestrator(ArchiveBuilder(scratch_dir, runner=runner), backend)


@pytest.fixture
def env(monkeypatch, tmp_path):
    """
    Minimal valid environment. Returns the config folder.
    """
    monkeypatch.chdir(tmp_path)
    for key in OPTIONAL_ENV:
        monkeypatch.delenv(key, raising=False)
    for key, value in REQUIRED_ENV.items():
        monkeypatch.setenv(key, value)
    return tmp_path
