from pathlib import Path

import click

from ccazure.assemble import ResourceNames, TemplateInspector, assemble_output
from ccazure.preflight import LocalPreflight
from ccazure.result import PreflightResult
from ccazure.run import AzureCLI
from cli.commands.common import bootstrap_context, emit, flag, with_common_options
from context.grant_store import FileGrantStore


@click.command()
@click.argument("target_id", required=False, default="")
@click.argument("subscription_id", required=False, default="")
@click.argument("preflight_enabled", required=False, default="true")
@click.argument("self_grant", required=False, default="false")
@click.option("--state-file", type=click.Path(path_type=Path), default=None,
              help="Temporary grant record (default: ./.preflight_temp_grant).")
@with_common_options
def run(target_id, subscription_id, preflight_enabled, self_grant, state_file,
        parameters_path, config_path, template_path):
    """Checks permissions with direct Azure CLI queries and prints the result JSON."""
    config, config_error, params = bootstrap_context(config_path, parameters_path)

    if config_error:
        result = PreflightResult(ok=False, error=config_error)
    else:
        checker = LocalPreflight(
            AzureCLI(timeout=config.command_timeout),
            FileGrantStore(state_file or config.grant_state_file),
            config,
        )
        result = checker.run(
            target_id,
            subscription_id,
            enabled=flag(preflight_enabled, True),
            self_grant=flag(self_grant, False),
        )

    emit(assemble_output(
        params,
        result,
        "local",
        names=ResourceNames.from_suffix(params.get("resource_suffix")),
        declared=TemplateInspector.declared_parameters(template_path),
    ))
