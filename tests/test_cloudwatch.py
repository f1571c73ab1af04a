"""
Tests for the CloudWatch dashboard plug-in.
"""

import json

from cloudsweep.core.context import RunContext
from cloudsweep.core.filters import Config
from cloudsweep.core.query import Scope
from cloudsweep.resources.cloudwatch import cloudwatch_dashboards, list_dashboards

REGION = Scope(region="us-east-1")
BODY = json.dumps({"widgets": []})


class TestDashboards:
    """Tests for CloudWatch dashboards."""

    def test_list_dashboards(self, cloudwatch_client, ctx):
        """Test that dashboards are filtered by name."""
        cloudwatch_client.put_dashboard(DashboardName="ci-overview", DashboardBody=BODY)
        cloudwatch_client.put_dashboard(DashboardName="prod-overview", DashboardBody=BODY)
        config = Config.from_dict(
            {"cloudwatch-dashboard": {"include": {"names_regex": ["^ci-"]}}}
        )

        names = list_dashboards(ctx, cloudwatch_client, REGION, config.get("cloudwatch-dashboard"))

        assert names == ["ci-overview"]

    def test_nuke_deletes_in_one_call(self, aws_client, cloudwatch_client):
        """Test that the batch is deleted together."""
        cloudwatch_client.put_dashboard(DashboardName="ci-one", DashboardBody=BODY)
        cloudwatch_client.put_dashboard(DashboardName="ci-two", DashboardBody=BODY)
        resource = cloudwatch_dashboards()
        resource.init(aws_client, REGION)

        batch = resource.nuke(RunContext(), ["ci-one", "ci-two"])

        assert batch.succeeded == ["ci-one", "ci-two"]
        assert cloudwatch_client.list_dashboards()["DashboardEntries"] == []
