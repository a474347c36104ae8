import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import FrozenSet, Iterable, Optional

from ccazure.result import PreflightResult
from context.params import ParameterSet
from util.sanitization import purge, standard, strip_ansi

logger = logging.getLogger(__name__)

OUTPUT_FIELDS = (
    "tenant_id",
    "customer_object_id",
    "tags",
    "outpost_client_id",
    "resource_suffix",
    "upload_output_url",
    "template_id",
    "template_version",
    "connector_id",
    "audit_storage_allowed_ips",
    "audience",
    "collector_sa_unique_id",
)

VARIANTS = ("local", "delegated")

DEPLOYMENT_PARAMETERS_SCHEMA = (
    "https://schema.management.azure.com/schemas/2019-04-01/deploymentParameters.json#"
)

# ARM parameter name -> parameter-set key; always rendered.
REQUIRED_PARAMETERS = {
    "outpostClientId": "outpost_client_id",
    "resourceSuffix": "resource_suffix",
    "uploadOutputUrl": "upload_output_url",
    "tags": "tags",
}

# Rendered only when the template declares them.
OPTIONAL_PARAMETERS = {
    "tenantId": "tenant_id",
    "customerObjectId": "customer_object_id",
    "templateId": "template_id",
    "templateVersion": "template_version",
    "connectorId": "connector_id",
    "auditStorageAllowedIps": "audit_storage_allowed_ips",
    "audience": "audience",
    "collectorSaUniqueId": "collector_sa_unique_id",
}

# Output key -> ARM parameter name, for the computed names.
NAME_PARAMETERS = {
    "resource_group_name": "resourceGroupName",
    "storage_account_name": "storageAccountName",
    "managed_identity_name": "managedIdentityName",
    "deployment_name": "deploymentName",
}

_BICEP_PARAM = re.compile(r"^\s*param\s+([A-Za-z_][A-Za-z0-9_]*)\b", re.MULTILINE)


@dataclass(frozen=True)
class ResourceNames:
    suffix: str
    resource_group_name: str
    storage_account_name: str
    managed_identity_name: str
    deployment_name: str

    @classmethod
    def from_suffix(cls, suffix: str, prefix: str = "cortex") -> "ResourceNames":
        """Derives every resource name from the resource suffix; same suffix, same names."""
        s = re.sub(r"[^a-z0-9-]", "", (suffix or "").strip().lower())
        tail = f"-{s}" if s else ""
        storage = purge(f"{prefix}sa{s}")
        return cls(
            suffix=s,
            resource_group_name=f"{prefix}-rg{tail}"[:90],
            storage_account_name=storage.ljust(3, "0"),
            managed_identity_name=standard(f"{prefix}-id{tail}"),
            deployment_name=f"{prefix}-deployment{tail}"[:64],
        )

    def as_dict(self) -> dict:
        return {key: getattr(self, key) for key in NAME_PARAMETERS}


class TemplateInspector:
    """
    Reads the parameter names a deployment template accepts.
    """

    @staticmethod
    def declared_parameters(path: Optional[Path | str]) -> FrozenSet[str]:
        """
        Parameter names of an ARM JSON template (`parameters` object) or a Bicep
        file (`param <name>` lines). An unreadable template declares nothing.
        """
        if not path:
            return frozenset()
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("[TemplateInspector] Could not read template %s: %s", path, e)
            return frozenset()

        if path.suffix.lower() == ".bicep":
            return frozenset(_BICEP_PARAM.findall(text))

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.warning("[TemplateInspector] Template %s is not valid JSON: %s", path, e)
            return frozenset()
        parameters = data.get("parameters") if isinstance(data, dict) else None
        if not isinstance(parameters, dict):
            return frozenset()
        return frozenset(parameters)


def _bool(value: bool) -> str:
    return "true" if value else "false"


def assemble_output(
    params: ParameterSet,
    result: PreflightResult,
    variant: str = "local",
    names: Optional[ResourceNames] = None,
    declared: Iterable[str] = (),
) -> dict:
    """
    Builds the flat, string-valued record printed for the provisioner.

    Args:
        params: Loaded parameters.
        result: Preflight outcome.
        variant: "local" or "delegated"; selects the variant-specific keys.
        names: Computed resource names; each is added only if `declared`
            holds its template parameter name.
        declared: Parameter names the target template accepts.

    Returns:
        dict[str, str]
    """
    if variant not in VARIANTS:
        raise ValueError(f"Unknown output variant: {variant!r}")

    out = {}
    for key in OUTPUT_FIELDS:
        out[key] = params.json(key) if key in params.json_fields else params.get(key)

    out["preflight_ok"] = _bool(result.ok)
    out["preflight_error"] = strip_ansi(result.error or "")

    if variant == "local":
        out["granted_mg_admin"] = _bool(result.granted_temp_role)
        out["cleanup_cmd"] = result.cleanup_command or ""
    else:
        out["preflight_output"] = result.output or ""
        out["grant_cmd"] = result.grant_command or ""
    out["login_message"] = result.login_message or ""

    if names is not None:
        declared = set(declared)
        for key, value in names.as_dict().items():
            if NAME_PARAMETERS[key] in declared:
                out[key] = value

    return out


def _json_value(text: str):
    if not text:
        return {}
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        logger.warning("[Assembler] Value is not valid JSON, passing it as a string: %r", text)
        return text


def build_deployment_parameters(
    params: ParameterSet,
    names: ResourceNames,
    declared: Iterable[str],
) -> dict:
    """
    Renders an ARM deployment-parameters document. Required parameters are
    always present; optional ones and computed names only when the template
    declares them and the value is non-empty.
    """
    declared = set(declared)
    values = {}

    def value_of(key: str):
        if key in params.json_fields:
            return _json_value(params.json(key))
        return params.get(key)

    for arm_name, key in REQUIRED_PARAMETERS.items():
        values[arm_name] = value_of(key)

    for arm_name, key in OPTIONAL_PARAMETERS.items():
        if arm_name in declared:
            value = value_of(key)
            if value not in ("", {}):
                values[arm_name] = value

    for key, arm_name in NAME_PARAMETERS.items():
        if arm_name in declared:
            values[arm_name] = getattr(names, key)

    return {
        "$schema": DEPLOYMENT_PARAMETERS_SCHEMA,
        "contentVersion": "1.0.0.0",
        "parameters": {name: {"value": value} for name, value in values.items()},
    }
