"""
config handling for dynaconf
"""
import tempfile
from dataclasses import dataclass, field
from importlib.resources import files
from pathlib import Path
from typing import Any, Optional, Tuple

from croniter import croniter
from dynaconf import Dynaconf, ValidationError, Validator

from db_backup.utils.converters import to_bool
from db_backup.utils.errors import ConfigError

REQUIRED_KEYS = ('AWS_ACCESS_KEY_ID', 'AWS_SECRET_ACCESS_KEY', 'AWS_S3_REGION', 'AWS_S3_BUCKET')


@dataclass(frozen=True)
class S3Settings:
    access_key_id: str
    secret_access_key: str = field(repr=False)
    region: str
    bucket: str
    endpoint: Optional[str] = None


@dataclass(frozen=True)
class AppConfig:
    """
    Settings of one process. Built once at startup and passed around.
    """
    s3: S3Settings
    databases: Tuple[str, ...] = ()
    run_on_startup: bool = False
    cron: Optional[str] = None
    scratch_dir: Path = Path(tempfile.gettempdir())
    log_level: str = 'INFO'
    log_dir: Optional[Path] = None


def parse_config(config_folder: Optional[Path] = None) -> Dynaconf:
    """
    Load the packaged defaults, config.toml/.env of the config folder and the environment.
    Environment variables are read without a prefix (AWS_S3_BUCKET, DATABASES, ...).
    :param config_folder: folder containing config.toml, cwd by default
    :return: validated settings
    :raises ConfigError: required keys are missing
    """
    default_config = files('db_backup.data').joinpath('default.toml')
    try:
        settings = Dynaconf(
            envvar_prefix=False,
            settings_files=[str(default_config), 'config.toml'],
            root_path=str(config_folder) if config_folder else None,
            load_dotenv=True,
            merge_enabled=True,
            validators=[
                Validator(*REQUIRED_KEYS, must_exist=True, ne=''),
            ]
        )
        settings.validators.validate()
    except ValidationError as e:
        raise ConfigError(str(e)) from e
    return settings


def split_databases(value: Any) -> Tuple[str, ...]:
    """
    DATABASES is a comma separated string or a list in toml.
    Empty entries are dropped.
    """
    if not value:
        return ()
    items = value if isinstance(value, (list, tuple)) else str(value).split(',')
    return tuple(x for x in (str(i).strip() for i in items) if x)


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def build_config(settings: Dynaconf) -> AppConfig:
    """
    Freeze the dynaconf settings into an AppConfig.
    :param settings: loaded settings
    :return: immutable config
    :raises ConfigError: invalid cron expression
    """
    cron = _optional_str(settings('CRON', default=None))
    if cron and not croniter.is_valid(cron):
        raise ConfigError(f'Invalid cron expression: {cron}')

    scratch_dir = _optional_str(settings('SCRATCH_DIR', default=None))
    log_dir = _optional_str(settings('LOG_DIR', default=None))
    return AppConfig(
        s3=S3Settings(
            access_key_id=str(settings('AWS_ACCESS_KEY_ID')),
            secret_access_key=str(settings('AWS_SECRET_ACCESS_KEY')),
            region=str(settings('AWS_S3_REGION')),
            bucket=str(settings('AWS_S3_BUCKET')),
            endpoint=_optional_str(settings('AWS_S3_ENDPOINT', default=None)),
        ),
        databases=split_databases(settings('DATABASES', default='')),
        run_on_startup=to_bool(settings('RUN_ON_STARTUP', default=False)),
        cron=cron,
        scratch_dir=Path(scratch_dir) if scratch_dir else Path(tempfile.gettempdir()),
        log_level=str(settings('LOG_LEVEL', default='INFO')).upper(),
        log_dir=Path(log_dir) if log_dir else None,
    )


def load_config(config_folder: Optional[Path] = None) -> AppConfig:
    """
    parse_config + build_config
    """
    return build_config(parse_config(config_folder))
