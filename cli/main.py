# ccbootstrap/cli/main.py
import click

from cli.commands import delegated
from cli.commands import local
from cli.commands import parameters
from cli.commands import revoke


@click.group()
@click.version_option(package_name="ccbootstrap")
def cli():
    """Preflight and parameter bootstrap for the Azure onboarding deployment."""


cli.add_command(cmd=local.run, name="local")
cli.add_command(cmd=delegated.run, name="delegated")
cli.add_command(cmd=parameters.run, name="parameters")
cli.add_command(cmd=revoke.run, name="revoke")
