"""
Run external tools without a shell.
"""
import subprocess
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from loguru import logger

from db_backup.utils.errors import ExternalToolError

# (command, stdout file, secrets) -> stdout
Runner = Callable[[List[str], Optional[Path], Iterable[str]], str]


def mask_command(command: List[str], secrets: Iterable[str] = ()) -> List[str]:
    """
    Replace every occurrence of a secret in the arguments with ***.
    :param command: argument list
    :param secrets: strings to hide
    :return: masked copy of the argument list
    """
    masked = list(command)
    for secret in secrets:
        if not secret:
            continue
        masked = [x.replace(secret, '***') for x in masked]
    return masked


def run_command(command: List[str], stdout_file: Optional[Path] = None,
                secrets: Iterable[str] = ()) -> str:
    """
    Execute a command and wait for it.
    :param command: argument list, command[0] is the binary
    :param stdout_file: redirect stdout to this file instead of capturing it
    :param secrets: values masked in logs and errors
    :return: captured stdout ('' if redirected)
    :raises ExternalToolError: non-zero exit or missing binary
    """
    secrets = list(secrets)
    masked = mask_command(command, secrets)
    logger.debug(f'$ {" ".join(masked)}')
    try:
        if stdout_file:
            with open(stdout_file, 'wb') as f:
                result = subprocess.run(command, stdout=f, stderr=subprocess.PIPE,
                                        check=False)
            stdout = ''
        else:
            result = subprocess.run(command, stdout=subprocess.PIPE,
                                    stderr=subprocess.PIPE, check=False)
            stdout = result.stdout.decode(errors='replace')
    except OSError as e:
        raise ExternalToolError(masked, stderr=str(e)) from e

    if result.returncode != 0:
        stderr = result.stderr.decode(errors='replace').strip()
        raise ExternalToolError(masked, result.returncode,
                                mask_command([stderr], secrets)[0])
    return stdout
