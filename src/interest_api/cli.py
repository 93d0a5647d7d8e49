# cli.py
import functools
import json
import logging

import click

from interest_api.config import configure_logging
from interest_api.config.settings import get_settings
from interest_api.dependencies import build_services
from interest_api.operations import (
    IdentityConflictError,
    OperationKind,
    RecordOperationError,
)

logger = logging.getLogger(__name__)


def parse_data(ctx, param, value):
    """Click callback turning the DATA argument into a dict"""
    if value is None:
        return {}
    try:
        data = json.loads(value)
    except ValueError as e:
        raise click.BadParameter(f"not valid JSON: {e}") from None
    if not isinstance(data, dict):
        raise click.BadParameter("must be a JSON object")
    return data


def report_operation_errors(func):
    """Print record operation errors as `<ErrorClass>: <message>` and exit 1"""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except RecordOperationError as e:
            click.echo(f"{type(e).__name__}: {e.message}", err=True)
            raise SystemExit(1) from None
    return wrapper


def echo_operation(operation):
    click.echo(json.dumps({
        "table": operation.table,
        "remote_id": operation.remote_id,
        "uid": operation.uid,
        "state": operation.state.value,
    }))


@click.group()
@click.option("--log-level", default=None, help="Override the configured logging level")
@click.pass_context
def cli(ctx, log_level):
    """Manage records addressed by remote ids"""
    settings = get_settings()
    configure_logging(log_level or settings.log_level)
    ctx.obj = settings


@cli.command()
@click.argument("table")
@click.argument("remote_id")
@click.argument("data", callback=parse_data)
@click.option("--update", "-u", is_flag=True, help="Update the record if the remote id already exists")
@click.pass_obj
@report_operation_errors
def create(settings, table, remote_id, data, update):
    """Create a record. DATA is a JSON object."""
    services = build_services(settings)
    try:
        operation = services.create_operation(OperationKind.CREATE, table, remote_id, data)()
    except IdentityConflictError:
        if not update or not services.mapping_repository.exists(table, remote_id):
            raise
        logger.info(f"Remote id {remote_id} exists, updating instead")
        operation = services.create_operation(OperationKind.UPDATE, table, remote_id, data)()
    echo_operation(operation)


@cli.command()
@click.argument("table")
@click.argument("remote_id")
@click.argument("data", callback=parse_data)
@click.pass_obj
@report_operation_errors
def update(settings, table, remote_id, data):
    """Update a record. DATA is a JSON object."""
    services = build_services(settings)
    operation = services.create_operation(OperationKind.UPDATE, table, remote_id, data)()
    echo_operation(operation)


@cli.command()
@click.argument("table")
@click.argument("remote_id")
@click.pass_obj
@report_operation_errors
def delete(settings, table, remote_id):
    """Delete a record"""
    services = build_services(settings)
    operation = services.create_operation(OperationKind.DELETE, table, remote_id)()
    echo_operation(operation)


@cli.command()
@click.pass_obj
def show_config(settings):
    """Show current configuration"""
    click.echo("Current Configuration:")
    click.echo(f"  App Name: {settings.app_name}")
    click.echo(f"  Database: {settings.db_path}")
    click.echo(f"  Storage Directory: {settings.storage_dir}")
    click.echo(f"  File Table: {settings.file_table}")
    click.echo(f"  Upload Folder: {settings.file_upload_folder_path}")
    click.echo(f"  Hashed Subfolders: {settings.hashed_subfolders}")
    click.echo(f"  HTTP Timeout: {settings.http_timeout}")
    click.echo(f"  Skip Repeated Operations: {settings.skip_repeated_operations}")
    click.echo(f"  Log Level: {settings.log_level}")


@cli.command()
@click.option("--host", default="0.0.0.0", help="Interface to bind")
@click.option("--port", default=8000, type=int, help="Port to listen on")
@click.pass_obj
def serve(settings, host, port):
    """Run the HTTP API"""
    import uvicorn
    from interest_api.main import create_app

    uvicorn.run(create_app(settings), host=host, port=port)


if __name__ == "__main__":
    cli()
