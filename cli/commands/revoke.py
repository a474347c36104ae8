import click

from ccazure.roles import RoleAssignments
from ccazure.run import AzureCLI
from cli.commands.common import bootstrap_context, emit


@click.command()
@click.argument("assignment_id")
@click.option("--scope-id", required=True, help="Management group (or tenant) id the grant was made on.")
@click.option("--config", "config_path", type=click.Path(), default=None,
              help="Settings file (TOML, JSON or YAML).")
def run(assignment_id, scope_id, config_path):
    """Revokes a temporary role assignment made by a self-grant."""
    config, config_error, _ = bootstrap_context(config_path, None)
    if config_error:
        raise click.ClickException(config_error)

    scope = RoleAssignments.management_group_scope(scope_id)
    if not RoleAssignments.belongs_to(assignment_id, scope):
        raise click.ClickException(
            f"'{assignment_id}' is not a role assignment on management group '{scope_id}'; refusing to delete it."
        )

    revoked = RoleAssignments.delete(AzureCLI(timeout=config.command_timeout), assignment_id)
    emit({"assignment_id": assignment_id, "revoked": "true" if revoked else "false"})
    if not revoked:
        raise click.exceptions.Exit(1)
