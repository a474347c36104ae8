import json
from pathlib import Path

import click

from ccazure.assemble import ResourceNames, TemplateInspector, build_deployment_parameters
from cli.commands.common import bootstrap_context


@click.command()
@click.option("--template", "template_path", type=click.Path(exists=True, dir_okay=False, path_type=Path),
              required=True, help="ARM JSON or Bicep template to inspect.")
@click.option("--out", "out_path", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Write the parameters document here instead of stdout.")
@click.option("--parameters", "parameters_path", type=click.Path(path_type=Path), default=None,
              help="Parameter file (default: ./parameters.sh).")
@click.option("--config", "config_path", type=click.Path(path_type=Path), default=None,
              help="Settings file (TOML, JSON or YAML).")
def run(template_path, out_path, parameters_path, config_path):
    """Renders ARM deployment parameters for the given template."""
    config, config_error, params = bootstrap_context(config_path, parameters_path)
    if config_error:
        raise click.ClickException(config_error)

    declared = TemplateInspector.declared_parameters(template_path)
    names = ResourceNames.from_suffix(params.get("resource_suffix"))
    document = json.dumps(build_deployment_parameters(params, names, declared), indent=2)

    if out_path:
        out_path.write_text(document + "\n", encoding="utf-8")
        click.echo(f"Wrote {out_path}", err=True)
    else:
        click.echo(document)
