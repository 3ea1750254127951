"""
Exceptions raised by the backup pipeline.
"""
from typing import List, Optional


class ConfigError(Exception):
    """
    Invalid or missing settings. Fatal, the process does not start.
    """


class BackupError(Exception):
    """
    Base class for failures scoped to a single backup target.
    """


class InvalidTargetError(BackupError):
    """
    The target URI is empty or cannot be parsed.
    """


class UnsupportedSchemeError(BackupError):
    """
    The target is not a scheme://... connection string.
    """


class UnknownDialectError(BackupError):
    """
    No dump plan exists for the dialect of the target.
    """


class ExternalToolError(BackupError):
    """
    A dump/compress command failed or could not be started.
    """

    def __init__(self, command: List[str], returncode: Optional[int] = None,
                 stderr: str = ''):
        """
        :param command: masked argument list of the failed command
        :param returncode: exit code or None if the binary could not be started
        :param stderr: captured stderr of the command
        """
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        if returncode is None:
            msg = f'Could not execute {command[0]}: {stderr}'
        else:
            msg = f'{" ".join(command)} exited with code {returncode}'
            if stderr:
                msg += f': {stderr}'
        super().__init__(msg)


class UploadError(BackupError):
    """
    The storage backend rejected the archive or could not be reached.
    """


class CleanupWarning(Warning):
    """
    A temporary file could not be removed. Only logged.
    """
