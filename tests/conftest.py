"""
Pytest configuration and shared fixtures for testing.
"""

import os

import boto3
import pytest
from moto import mock_aws

from cloudsweep.core.aws_client import AWSClient
from cloudsweep.core.context import RunContext
from cloudsweep.core.filters import Config
from cloudsweep.core.query import Scope
from cloudsweep.reporting.collector import Collector
from cloudsweep.reporting.renderers.base import Renderer


class RecordingRenderer(Renderer):
    """Renderer that keeps every event it receives."""

    def __init__(self):
        self.events = []

    def on_event(self, event):
        self.events.append(event)
        super().on_event(event)

    def of_type(self, event_type):
        return [e for e in self.events if isinstance(e, event_type)]

    def names(self):
        return [type(e).__name__ for e in self.events]


@pytest.fixture
def aws_credentials(monkeypatch):
    """Mock AWS credentials for moto."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.delenv("AWS_PROFILE", raising=False)


@pytest.fixture
def mock_aws_environment(aws_credentials):
    """Create a mocked AWS environment."""
    with mock_aws():
        yield


@pytest.fixture
def aws_client(mock_aws_environment):
    """Create an AWSClient instance for testing."""
    return AWSClient(region="us-east-1")


@pytest.fixture
def ec2_client(mock_aws_environment):
    """Create a boto3 EC2 client for setting up test resources."""
    return boto3.client("ec2", region_name="us-east-1")


@pytest.fixture
def s3_client(mock_aws_environment):
    """Create a boto3 S3 client for setting up test resources."""
    return boto3.client("s3", region_name="us-east-1")


@pytest.fixture
def sqs_client(mock_aws_environment):
    """Create a boto3 SQS client for setting up test resources."""
    return boto3.client("sqs", region_name="us-east-1")


@pytest.fixture
def cloudwatch_client(mock_aws_environment):
    """Create a boto3 CloudWatch client for setting up test resources."""
    return boto3.client("cloudwatch", region_name="us-east-1")


@pytest.fixture
def vpc(ec2_client):
    """Create a VPC for testing."""
    response = ec2_client.create_vpc(CidrBlock="10.0.0.0/16")
    return response["Vpc"]["VpcId"]


@pytest.fixture
def subnet(ec2_client, vpc):
    """Create a subnet for testing."""
    response = ec2_client.create_subnet(
        VpcId=vpc,
        CidrBlock="10.0.1.0/24",
        AvailabilityZone="us-east-1a",
    )
    return response["Subnet"]["SubnetId"]


@pytest.fixture
def security_group(ec2_client, vpc):
    """Create a security group for testing."""
    response = ec2_client.create_security_group(
        GroupName="test-sg",
        Description="Test security group",
        VpcId=vpc,
    )
    return response["GroupId"]


@pytest.fixture
def region_scope():
    return Scope(region="us-east-1")


@pytest.fixture
def ctx():
    """Run context without a deadline."""
    return RunContext()


@pytest.fixture
def empty_config():
    return Config()


@pytest.fixture
def recorder():
    return RecordingRenderer()


@pytest.fixture
def collector(recorder):
    """Collector wired to a recording renderer."""
    return Collector([recorder])
