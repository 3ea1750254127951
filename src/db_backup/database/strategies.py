"""
Dump commands per dialect.
"""
from pathlib import Path
from typing import List, Optional
from urllib.parse import urlsplit

from db_backup.utils.datatypes import ConnectionDescriptor, Dialect, DumpPlan

VERSION_COMMANDS = {
    Dialect.POSTGRESQL: ['psql', '--version'],
    Dialect.MONGODB: ['mongodump', '--version'],
    Dialect.MYSQL: ['mysql', '--version'],
}


def _mysql_command(descriptor: ConnectionDescriptor) -> List[str]:
    command = ['mysqldump', '--skip-ssl']
    if descriptor.username:
        command += ['-u', descriptor.username]
    if descriptor.password:
        # one argument, no shell involved -> no quoting required
        command.append(f'--password={descriptor.password}')
    command += ['-h', descriptor.host]
    if descriptor.port:
        command += ['-P', descriptor.port]
    command.append(descriptor.database)
    return command


def _secrets(descriptor: ConnectionDescriptor) -> List[str]:
    # the uri contains the percent-encoded form of the password
    raw = urlsplit(descriptor.uri).password
    return [x for x in dict.fromkeys((descriptor.password, raw)) if x]


def select_plan(descriptor: ConnectionDescriptor, dump_path: Path) -> Optional[DumpPlan]:
    """
    Get the dump plan for the dialect of the target.
    :param descriptor: parsed target
    :param dump_path: file the dump is written to
    :return: plan or None for dialects without a dump tool
    """
    match descriptor.dialect:
        case Dialect.POSTGRESQL:
            # custom format, compressed and restorable with pg_restore
            dump_command = ['pg_dump', descriptor.uri, '-F', 'c', '-f', str(dump_path)]
            stdout_to_file = False
        case Dialect.MONGODB:
            dump_command = ['mongodump', f'--uri={descriptor.uri}',
                            f'--archive={dump_path}']
            stdout_to_file = False
        case Dialect.MYSQL:
            dump_command = _mysql_command(descriptor)
            stdout_to_file = True
        case _:
            return None
    return DumpPlan(
        dump_command=dump_command,
        version_command=list(VERSION_COMMANDS[descriptor.dialect]),
        stdout_to_file=stdout_to_file,
        secrets=_secrets(descriptor),
    )
