"""
Tests for the command-line interface.
"""

import json

import pytest
from click.testing import CliRunner

from cloudsweep import __version__
from cloudsweep import main as cli_module
from cloudsweep.main import cli, resolve_output_format, split_values


@pytest.fixture(autouse=True)
def keep_test_logging(monkeypatch):
    """Leave pytest's log handlers in place."""
    monkeypatch.setattr(cli_module, "setup_logging", lambda **kwargs: None)


@pytest.fixture
def runner():
    return CliRunner()


class TestHelpers:
    """Tests for option helpers."""

    def test_split_values(self):
        """Test that repeated and comma-separated values are flattened."""
        assert split_values(None, None, ("a,b", " c ", "")) == ["a", "b", "c"]

    def test_output_format_follows_extension(self):
        """Test that a table request writing to .json becomes JSON."""
        assert resolve_output_format("table", "out/found.json") == "json"
        assert resolve_output_format("table", "found.CSV") == "csv"
        assert resolve_output_format("table", "found.txt") == "table"

    def test_explicit_format_wins(self):
        """Test that an explicit format is kept whatever the extension."""
        assert resolve_output_format("csv", "found.json") == "csv"


class TestCommands:
    """Tests for the click commands."""

    def test_version(self, runner):
        """Test the version option."""
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_list_resource_types(self, runner):
        """Test that resource types are printed without touching AWS."""
        result = runner.invoke(cli, ["inspect-aws", "--list-resource-types"])

        assert result.exit_code == 0
        assert "ec2-keypairs" in result.output
        assert "cloudwatch-dashboard" in result.output

    def test_list_gcp_resource_types(self, runner):
        """Test that GCP types are listed without a project."""
        result = runner.invoke(cli, ["inspect-gcp", "--list-resource-types"])

        assert result.exit_code == 0
        assert "gcs-bucket" in result.output

    def test_invalid_duration(self, runner):
        """Test that a malformed duration is a usage error."""
        result = runner.invoke(cli, ["inspect-aws", "--older-than", "soon"])

        assert result.exit_code == 2

    def test_gcp_requires_project(self, runner):
        """Test that the GCP commands need --project-id."""
        result = runner.invoke(cli, ["inspect-gcp"])

        assert result.exit_code == 2
        assert "--project-id" in result.output

    def test_unknown_resource_type(self, runner, mock_aws_environment):
        """Test that an unknown resource type exits with an error."""
        result = runner.invoke(cli, ["inspect-aws", "--resource-type", "mainframe"])

        assert result.exit_code == 1
        assert "mainframe" in result.output


class TestInspectAws:
    """End-to-end inspection against mocked AWS."""

    def test_inspect_writes_json(self, runner, ec2_client, tmp_path):
        """Test that found key pairs land in the JSON document."""
        ec2_client.create_key_pair(KeyName="ci-key")
        output_file = tmp_path / "found.json"

        result = runner.invoke(
            cli,
            [
                "inspect-aws",
                "--region",
                "us-east-1",
                "--resource-type",
                "ec2-keypairs",
                "--output-file",
                str(output_file),
            ],
        )

        assert result.exit_code == 0, result.output
        document = json.loads(output_file.read_text())
        assert document["command"] == "inspect-aws"
        assert [r["identifier"] for r in document["resources"]] == ["ci-key"]
        assert document["resources"][0]["region"] == "us-east-1"

    def test_dry_run_deletes_nothing(self, runner, ec2_client):
        """Test that a dry run lists key pairs but keeps them."""
        ec2_client.create_key_pair(KeyName="ci-key")

        result = runner.invoke(
            cli,
            ["aws", "--region", "us-east-1", "--resource-type", "ec2-keypairs", "--dry-run"],
        )

        assert result.exit_code == 0, result.output
        assert "ci-key" in result.output
        names = [k["KeyName"] for k in ec2_client.describe_key_pairs()["KeyPairs"]]
        assert names == ["ci-key"]
