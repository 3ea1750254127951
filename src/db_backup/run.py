"""
Backs up PostgreSQL, MongoDB and MySQL databases to S3 with their native dump tools.
"""
import sys
from collections import defaultdict
from pathlib import Path
from typing import Optional

import click
from loguru import logger

from db_backup import scheduler
from db_backup.orchestrator import Orchestrator
from db_backup.utils.config import AppConfig, load_config
from db_backup.utils.converters import parse_file_name
from db_backup.utils.logging import setup_logging


class CtxArgs:
    """
    Cache object for arguments between click group and commands.
    """

    def __init__(self, config_folder: Optional[Path], config: AppConfig,
                 orchestrator: Orchestrator):
        self.config_folder = Path(config_folder) if config_folder else None
        self.config = config
        self.orchestrator = orchestrator


@click.group()
@click.option(
    '-c',
    '--config-folder',
    help='Folder containing config.toml and/or .env. The working directory by default.'
         ' Environment variables override both.',
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
)
@click.pass_context
@click.version_option(package_name='db_backup')
def main(ctx, config_folder):
    """
    Back up databases to S3 on a schedule or on demand.
    """
    setup_logging()
    try:
        config = load_config(config_folder)
        setup_logging(config.log_level, config.log_dir)
        orchestrator = Orchestrator.from_config(config)
    except Exception as e:
        logger.exception(f'Error during config parsing! {e}')
        sys.exit(1)
    ctx.obj = CtxArgs(config_folder, config, orchestrator)


@main.command('start')
@click.pass_context
def start_command(ctx):
    """
    Run as a service.
    Backs up once if RUN_ON_STARTUP is set and then on every tick of CRON.
    """
    args: CtxArgs = ctx.obj
    logger.info(f'{len(args.config.databases)} database(s) configured.')
    try:
        scheduler.start(
            lambda: args.orchestrator.run_all(args.config.databases),
            run_on_startup=args.config.run_on_startup,
            cron=args.config.cron,
        )
    except KeyboardInterrupt:
        logger.info('Interrupted, exiting.')


@main.command('backup')
@click.pass_context
def backup_command(ctx):
    """
    Back up all databases now and exit.
    The exit code is 1 if at least one database failed.
    """
    args: CtxArgs = ctx.obj
    summary = args.orchestrator.run_all(args.config.databases)
    if summary is None or summary.failed:
        sys.exit(1)


@main.command('list')
@click.pass_context
def list_command(ctx):
    """
    List the archives in the bucket grouped by database.
    """
    args: CtxArgs = ctx.obj
    try:
        keys = args.orchestrator.backend.get_existing_backups()
    except Exception as e:
        logger.error(f'Could not list the bucket {args.config.s3.bucket}: {e}')
        sys.exit(1)

    groups = defaultdict(list)
    for key in keys:
        try:
            data = parse_file_name(key)
        except ValueError:
            logger.warning(f'Invalid file name in bucket: {key}')
            continue
        groups[(data['dialect'], data['database'], data['host'])].append(data)

    if len(groups) == 0:
        click.secho('None! You have to create a backup first...', fg='red',
                    file=sys.stderr)
        sys.exit(1)

    output = click.style(f'Listing backups in {args.config.s3.bucket}:\n', fg='green',
                         bold=True)
    for (dialect, database, host), backups in sorted(groups.items()):
        output += click.style(f'{dialect}/{database} @ {host}\n', fg='cyan')
        for backup in sorted(backups, key=lambda x: x['timestamp']):
            output += click.style(
                f'\t{backup["path"]} @ {backup["timestamp"]:%Y-%m-%d %H:%M:%S}\n',
                fg='yellow'
            )
    click.echo(output)


if __name__ == '__main__':
    main()
