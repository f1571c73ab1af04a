"""
Tests for the AWS Client module.
"""

import pytest

from cloudsweep.core.aws_client import DEFAULT_REGION, AWSClient
from cloudsweep.core.exceptions import CredentialsError, ServiceError


class TestAWSClient:
    """Tests for AWSClient class."""

    def test_client_initialization(self, mock_aws_environment):
        """Test basic client initialization."""
        client = AWSClient()
        assert client.region == DEFAULT_REGION
        assert client.profile is None

    def test_client_with_profile(self, mock_aws_environment):
        """Test client initialization keeps the profile name."""
        client = AWSClient(region="us-west-2", profile="test-profile")
        assert client.region == "us-west-2"
        assert client.profile == "test-profile"

    @pytest.mark.parametrize("service", ["ec2", "s3", "sqs", "cloudwatch", "sts"])
    def test_get_supported_client(self, mock_aws_environment, service):
        """Test getting a client for every supported service."""
        client = AWSClient(region="us-east-1")
        assert client.get_client(service) is not None

    def test_clients_are_cached(self, mock_aws_environment):
        """Test the same client object is returned on repeat calls."""
        client = AWSClient(region="us-east-1")
        assert client.get_client("ec2") is client.get_client("ec2")

    def test_unsupported_service(self, mock_aws_environment):
        """Test an unknown service raises ServiceError."""
        client = AWSClient(region="us-east-1")
        with pytest.raises(ServiceError) as exc_info:
            client.get_client("rds")
        assert exc_info.value.service == "rds"

    def test_validate_credentials(self, mock_aws_environment):
        """Test credential validation."""
        client = AWSClient(region="us-east-1")
        assert client.validate_credentials() is True

    def test_get_account_id(self, mock_aws_environment):
        """Test getting account ID."""
        client = AWSClient(region="us-east-1")
        account_id = client.get_account_id()
        assert len(account_id) == 12

    def test_with_region(self, mock_aws_environment):
        """Test creating client for different region."""
        client = AWSClient(region="us-east-1", profile="test", max_retries=5)
        new_client = client.with_region("eu-west-1")

        assert new_client.region == "eu-west-1"
        assert new_client.profile == "test"
        assert new_client.max_retries == 5
        assert client.region == "us-east-1"

    def test_retry_config(self, mock_aws_environment):
        """Test that retry configuration is applied."""
        client = AWSClient(region="us-east-1", max_retries=5, timeout=60)
        assert client.max_retries == 5
        assert client.timeout == 60

    def test_context_manager_clears_clients(self, mock_aws_environment):
        """Test leaving the context drops cached clients."""
        with AWSClient(region="us-east-1") as client:
            client.get_client("ec2")
            assert client._clients
        assert client._clients == {}


class TestAWSClientErrors:
    """Tests for AWSClient error handling."""

    def test_invalid_profile_error(self, aws_credentials, tmp_path, monkeypatch):
        """Test an unknown profile raises CredentialsError."""
        monkeypatch.setenv("AWS_CONFIG_FILE", str(tmp_path / "config"))
        monkeypatch.setenv("AWS_SHARED_CREDENTIALS_FILE", str(tmp_path / "credentials"))
        client = AWSClient(region="us-east-1", profile="nonexistent-profile-xyz")
        with pytest.raises(CredentialsError) as exc_info:
            client.get_client("ec2")
        assert exc_info.value.details["profile"] == "nonexistent-profile-xyz"
