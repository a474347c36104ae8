import click

from ccazure.assemble import ResourceNames, TemplateInspector, assemble_output
from ccazure.delegated import DelegatedPreflight
from ccazure.result import PreflightResult
from cli.commands.common import bootstrap_context, emit, flag, with_common_options


@click.command()
@click.argument("target_id", required=False, default="")
@click.argument("subscription_id", required=False, default="")
@click.argument("preflight_enabled", required=False, default="true")
@click.argument("onboarding_type", required=False, default="mg")
@with_common_options
def run(target_id, subscription_id, preflight_enabled, onboarding_type,
        parameters_path, config_path, template_path):
    """Runs the pinned external preflight tool and prints the result JSON."""
    config, config_error, params = bootstrap_context(config_path, parameters_path)

    if config_error:
        result = PreflightResult(ok=False, error=config_error)
    else:
        result = DelegatedPreflight(config).run(
            target_id,
            subscription_id,
            enabled=flag(preflight_enabled, True),
            onboarding_type=onboarding_type,
            template_version=params.get("template_version"),
        )

    emit(assemble_output(
        params,
        result,
        "delegated",
        names=ResourceNames.from_suffix(params.get("resource_suffix")),
        declared=TemplateInspector.declared_parameters(template_path),
    ))
