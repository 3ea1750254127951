"""
helpers for converting values from one format to a different one
"""
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlsplit, urlunsplit

TIMESTAMP_FORMAT = '%Y-%m-%d_%H:%M:%S'
FILE_SUFFIX = '.tar.gz'

_FILE_NAME_RE = re.compile(
    r'^backup-(?P<dialect>[^-]+)-(?P<timestamp>\d{4}-\d{2}-\d{2}_\d{2}:\d{2}:\d{2})-'
    r'(?P<database>.*)-(?P<host>[^-]*)\.tar\.gz$'
)


def parse_timestamp(timestamp: str) -> datetime:
    """
    Convert the given timestamp string to a datetime object.
    Format: TIMESTAMP_FORMAT
    :param timestamp: timestamp to parse
    :return: parsed timestamp
    """
    return datetime.strptime(timestamp, TIMESTAMP_FORMAT)


def format_timestamp(timestamp: datetime) -> str:
    """
    Convert the given datetime object to the correct string.
    :param timestamp: datetime object
    :return: formatted time
    """
    return timestamp.strftime(TIMESTAMP_FORMAT)


def archive_file_name(dialect: str, timestamp: datetime, database: str, host: str) -> str:
    """
    Name of the archive and of the object key in the bucket.
    backup-{dialect}-{timestamp}-{database}-{host}.tar.gz
    """
    return f'backup-{dialect}-{format_timestamp(timestamp)}-{database}-{host}{FILE_SUFFIX}'


def parse_file_name(file_path: str or Path) -> dict:
    """
    Parse the given archive name.
    backup-dialect-timestamp-database-host.tar.gz
    Host names containing '-' can not be told apart from the database name,
    the split is done at the last '-'.
    :param file_path:
    :return: Dictionary with keys: dialect, timestamp, database, host, path
    """
    match = _FILE_NAME_RE.match(Path(file_path).name)
    if not match:
        raise ValueError(f'Invalid file name: {file_path}')
    return {
        'dialect': match.group('dialect'),
        'timestamp': parse_timestamp(match.group('timestamp')),
        'database': match.group('database'),
        'host': match.group('host'),
        'path': Path(file_path),
    }


def to_bool(value: Any) -> bool:
    """
    Interpret boolean-like config values. dynaconf already casts 'true'/'false'.
    """
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in ('true', '1', 'yes', 'on')


def mask_uri(uri: Optional[str]) -> str:
    """
    Replace the password of a connection URI with ***.
    :param uri: connection string
    :return: string safe for logging
    """
    if not uri:
        return ''
    try:
        parts = urlsplit(uri)
        if parts.password is None:
            return uri
        netloc = parts.netloc.rsplit('@', 1)
        userinfo = netloc[0].split(':', 1)[0]
        return urlunsplit(parts._replace(netloc=f'{userinfo}:***@{netloc[1]}'))
    except ValueError:
        # unparsable, hide everything after the scheme
        return uri.split('://', 1)[0] + '://***'
