import subprocess

import pytest

from ccazure.run import AzureCLI


def test_json_output_is_requested_and_parsed(az, fake_runner):
    fake_runner.on("account", "show", data={"id": "sub-1"})
    result = az.run(["az", "account", "show"])

    assert result.ok is True
    assert result.data == {"id": "sub-1"}
    assert fake_runner.calls == [["account", "show"]]


def test_expect_json_false_leaves_output_alone():
    seen = []

    def runner(cmd, **kwargs):
        seen.append((cmd, kwargs))
        return subprocess.CompletedProcess(cmd, 0, "deleted", "")

    result = AzureCLI(runner=runner, timeout=7).run(["az", "role", "assignment", "delete"], expect_json=False)

    cmd, kwargs = seen[0]
    assert "--output" not in cmd
    assert kwargs["check"] is False
    assert kwargs["timeout"] == 7
    assert result.ok is True
    assert result.data is None
    assert result.stdout == "deleted"


def test_nonzero_exit_is_a_failed_result(az, fake_runner):
    fake_runner.on("group", "list", returncode=2, stderr="AuthorizationFailed")
    result = az.run(["az", "group", "list"])
    assert result.ok is False
    assert result.returncode == 2
    assert "AuthorizationFailed" in result.stderr


def test_invalid_json_is_a_failed_result(az, fake_runner):
    fake_runner.on("account", "show", stdout="WARNING: not json")
    assert az.run(["az", "account", "show"]).ok is False


def test_empty_stdout_is_ok_without_data(az, fake_runner):
    fake_runner.on("role", "assignment", "delete", stdout="")
    result = az.run(["az", "role", "assignment", "delete"])
    assert result.ok is True
    assert result.data is None


@pytest.mark.parametrize("error", [
    FileNotFoundError("az"),
    subprocess.TimeoutExpired(["az"], 5),
])
def test_runner_exceptions_do_not_escape(error):
    def runner(cmd, **kwargs):
        raise error

    result = AzureCLI(runner=runner, timeout=5).run(["az", "account", "show"])
    assert result.ok is False
    assert result.stderr


def test_query_default(az, fake_runner):
    fake_runner.on("ad", "signed-in-user", "show", data="oid-1")
    assert az.query(["az", "ad", "signed-in-user", "show"]) == "oid-1"
    assert az.query(["az", "ad", "sp", "show"], default=[]) == []
