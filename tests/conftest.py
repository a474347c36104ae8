import json
import subprocess

import pytest

from ccazure.run import AzureCLI
from context.grant_store import MemoryGrantStore
from context.logger import Logger

MG_ID = "mg-onboard"
SUB_ID = "00000000-0000-0000-0000-0000000000aa"
USER_OID = "11111111-1111-1111-1111-111111111111"
MG_SCOPE = f"/providers/Microsoft.Management/managementGroups/{MG_ID}"
ASSIGNMENT_ID = f"{MG_SCOPE}/providers/Microsoft.Authorization/roleAssignments/22222222-2222-2222-2222-222222222222"


class FakeAzRunner:
    """
    Stands in for CMD.run when driving AzureCLI.

    Responses are matched on the arguments after "az" (the trailing
    "--output json" is ignored). The first registered response whose tokens
    prefix the command, and whose `contains` text appears in it, wins.
    Unmatched commands fail like an Azure CLI error.
    """

    def __init__(self):
        self.responses = []
        self.calls = []

    def on(self, *tokens, data=None, stdout=None, returncode=0, stderr="", contains=None):
        if stdout is None:
            stdout = json.dumps(data) if data is not None else ""
        self.responses.append((list(tokens), contains, returncode, stdout, stderr))
        return self

    def __call__(self, cmd, **kwargs):
        args = list(cmd[1:])
        if args[-2:] == ["--output", "json"]:
            args = args[:-2]
        self.calls.append(args)
        joined = " ".join(args)
        for tokens, contains, returncode, stdout, stderr in self.responses:
            if args[:len(tokens)] == tokens and (contains is None or contains in joined):
                return subprocess.CompletedProcess(cmd, returncode, stdout, stderr)
        return subprocess.CompletedProcess(cmd, 1, "", f"ERROR: no scripted response for: az {joined}")

    def count(self, *tokens) -> int:
        return sum(1 for args in self.calls if args[:len(tokens)] == list(tokens))


@pytest.fixture(autouse=True)
def reset_logger():
    """
    Drops loguru sinks and intercept handlers between tests.
    """
    yield
    Logger.reset()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("CCBOOTSTRAP_CONFIG", raising=False)
    monkeypatch.delenv("CCBOOTSTRAP_LOG_LEVEL", raising=False)


@pytest.fixture
def fake_runner():
    """
    Returns an empty FakeAzRunner.

    Example:
        def test_login(fake_runner):
            fake_runner.on("account", "show", data={"id": "sub"})
    """
    return FakeAzRunner()


@pytest.fixture
def az(fake_runner):
    return AzureCLI(runner=fake_runner)


@pytest.fixture
def store():
    return MemoryGrantStore()


@pytest.fixture
def signed_in_user(fake_runner):
    """
    Scripts a logged-in user whose object id resolves.
    """
    fake_runner.on("account", "show", data={
        "id": SUB_ID,
        "tenantId": "tenant-1",
        "user": {"name": "ops@contoso.com", "type": "user"},
    })
    fake_runner.on("ad", "signed-in-user", "show", data=USER_OID)
    return fake_runner


@pytest.fixture
def fully_permitted(signed_in_user):
    """
    Scripts a user holding Owner on the management group and subscription
    and Global Administrator in the directory.
    """
    signed_in_user.on("role", "assignment", "list", contains=MG_SCOPE, data=["Owner"])
    signed_in_user.on("role", "assignment", "list", contains=f"/subscriptions/{SUB_ID}", data=["Contributor"])
    signed_in_user.on("rest", data=["Global Administrator"])
    return signed_in_user


@pytest.fixture
def parameters_file(tmp_path):
    """
    Writes a typical parameters.sh and returns its path.
    """
    path = tmp_path / "parameters.sh"
    path.write_text(
        "#!/bin/bash\n"
        "tenant_id=\"tenant-1\"\n"
        "customer_object_id='obj-9'\n"
        "tags=\"{'env': 'prod', 'owner': 'secops'}\"\n"
        "outpost_client_id=client-42\n"
        "export resource_suffix=\"ab12\"\n"
        "template_version=\"{'BASE-arm_org_base': '1.0.0', 'AUDIT_LOGS-arm_organization_audit': '1.0.0'}\"\n"
        "upload_output_url=\"https://upload.example.com/out?sig=abc\"\n",
        encoding="utf-8",
    )
    return path
