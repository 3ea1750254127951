"""
Dump a database with its native tool and pack the dump into a tar.gz archive.
"""
import os
from pathlib import Path
from typing import List, Optional

from loguru import logger

from db_backup.utils.datatypes import ArchiveFile, ConnectionDescriptor, DumpPlan
from db_backup.utils.errors import CleanupWarning, ExternalToolError
from db_backup.utils.process import Runner, run_command


class ArchiveBuilder:
    """
    Creates the archive of one target in the scratch dir.
    Every step blocks until the external tool exits.
    """

    def __init__(self, scratch_dir: Path, runner: Runner = run_command):
        """
        :param scratch_dir: directory for dumps and archives
        :param runner: executes commands, see utils.process.run_command
        """
        self.scratch_dir = Path(scratch_dir)
        self._run = runner

    def allocate(self, descriptor: ConnectionDescriptor) -> ArchiveFile:
        """
        Reserve the archive path of a target for the current second.
        """
        return ArchiveFile.for_target(self.scratch_dir, descriptor)

    def probe_version(self, descriptor: ConnectionDescriptor, plan: DumpPlan) -> Optional[str]:
        """
        Log the version of the client tools. Failures are only logged.
        :return: version string or None
        """
        try:
            version = self._run(plan.version_command, None, ()).strip()
        except ExternalToolError as e:
            logger.warning(f'Failed to get {descriptor.scheme} client version: {e}')
            return None
        logger.info(f'Using {descriptor.scheme} client version: {version}')
        return version

    def dump(self, archive: ArchiveFile, plan: DumpPlan):
        logger.info(f'Dumping database to {archive.dump_path}...')
        self._run(plan.dump_command,
                  archive.dump_path if plan.stdout_to_file else None,
                  plan.secrets)
        logger.info('Dump completed')

    def compress(self, archive: ArchiveFile):
        logger.info(f'Compressing dump into {archive.path}...')
        # -C: store the dump without the scratch dir prefix
        # absolute paths: tar reads 'name:...' without a '/' as host:file
        self._run(['tar', '-czf', str(archive.path.absolute()),
                   '-C', str(archive.directory.absolute()),
                   archive.dump_path.name], None, ())
        logger.info('Compression completed')

    def build(self, descriptor: ConnectionDescriptor, plan: DumpPlan,
              archive: ArchiveFile) -> bytes:
        """
        Version probe, dump, compress and read the archive.
        :param descriptor: parsed target
        :param plan: plan for the dialect of the target
        :param archive: allocated archive paths
        :return: content of the archive
        :raises ExternalToolError: dump or compression failed
        :raises OSError: the archive could not be read
        """
        self.scratch_dir.mkdir(parents=True, exist_ok=True)
        self.probe_version(descriptor, plan)
        self.dump(archive, plan)
        self.compress(archive)
        data = archive.path.read_bytes()
        logger.info(f'Archive {archive.name} read, size: {len(data)} bytes')
        return data

    def cleanup(self, archive: ArchiveFile) -> List[CleanupWarning]:
        """
        Remove the dump and the archive. Missing files are ignored.
        :return: one warning per file that could not be deleted
        """
        problems = []
        for path in (archive.path, archive.dump_path):
            try:
                os.remove(path)
            except FileNotFoundError:
                continue
            except OSError as e:
                problem = CleanupWarning(f'Could not delete temporary file {path}: {e}')
                logger.warning(str(problem))
                problems.append(problem)
        if not problems:
            logger.info('Cleanup completed')
        return problems
