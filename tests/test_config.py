import tempfile
from pathlib import Path

import pytest

from db_backup.utils.config import load_config, split_databases
from db_backup.utils.errors import ConfigError


def test_defaults(env):
    config = load_config(env)
    assert config.s3.access_key_id == 'AKIATEST'
    assert config.s3.secret_access_key == 'secret-key'
    assert config.s3.region == 'eu-central-1'
    assert config.s3.bucket == 'backups'
    assert config.s3.endpoint is None
    assert config.databases == ()
    assert config.run_on_startup is False
    assert config.cron is None
    assert config.scratch_dir == Path(tempfile.gettempdir())
    assert config.log_level == 'INFO'
    assert config.log_dir is None


@pytest.mark.parametrize('missing', [
    'AWS_ACCESS_KEY_ID', 'AWS_SECRET_ACCESS_KEY', 'AWS_S3_REGION', 'AWS_S3_BUCKET'])
def test_missing_required_setting(env, monkeypatch, missing):
    monkeypatch.delenv(missing)
    with pytest.raises(ConfigError):
        load_config(env)


def test_environment(env, monkeypatch):
    monkeypatch.setenv('DATABASES', 'mysql://u:p@db:3306/app, postgresql://u:p@pg/shop,')
    monkeypatch.setenv('RUN_ON_STARTUP', 'true')
    monkeypatch.setenv('CRON', '0 3 * * *')
    monkeypatch.setenv('AWS_S3_ENDPOINT', 'https://minio.local:9000')
    monkeypatch.setenv('SCRATCH_DIR', str(env / 'scratch'))

    config = load_config(env)

    assert config.databases == ('mysql://u:p@db:3306/app', 'postgresql://u:p@pg/shop')
    assert config.run_on_startup is True
    assert config.cron == '0 3 * * *'
    assert config.s3.endpoint == 'https://minio.local:9000'
    assert config.scratch_dir == env / 'scratch'


def test_run_on_startup_false(env, monkeypatch):
    monkeypatch.setenv('RUN_ON_STARTUP', 'false')
    assert load_config(env).run_on_startup is False


def test_invalid_cron(env, monkeypatch):
    monkeypatch.setenv('CRON', '61 * * *')
    with pytest.raises(ConfigError):
        load_config(env)


def test_config_toml(env):
    (env / 'config.toml').write_text(
        'DATABASES = ["mysql://u:p@db/app"]\n'
        'CRON = "*/15 * * * *"\n'
        'LOG_LEVEL = "debug"\n'
    )
    config = load_config(env)
    assert config.databases == ('mysql://u:p@db/app',)
    assert config.cron == '*/15 * * * *'
    assert config.log_level == 'DEBUG'


def test_config_is_immutable(env):
    config = load_config(env)
    with pytest.raises(AttributeError):
        config.databases = ('mysql://u:p@db/app',)


def test_secret_not_in_repr(env):
    assert 'secret-key' not in repr(load_config(env))


@pytest.mark.parametrize('value, expected', [
    (None, ()),
    ('', ()),
    ('a', ('a',)),
    (' a , b ,,', ('a', 'b')),
    (['a', ' b'], ('a', 'b')),
])
def test_split_databases(value, expected):
    assert split_databases(value) == expected
