"""Tests for service file loading and writing."""

import io

import pytest
import yaml

from serverlessvpc.errors import ConfigurationError
from serverlessvpc.service_file import (
    CfnTag,
    dump_service,
    find_service_file,
    load_service_file,
    write_service_file,
)

SERVICE_YML = """
service: orders
provider:
  name: aws
  region: ${opt:region, 'us-east-1'}
custom:
  vpc:
    vpcName: ${opt:stage}-vpc
    subnetNames:
      - ${self:service}-private-a
    securityGroupNames:
      - lambda
functions:
  create:
    handler: handler.create
"""


class TestLoadServiceFile:
    """Tests for load_service_file()."""

    def test_loads_and_resolves(self, tmp_path):
        """Test YAML is parsed and variables are resolved."""
        path = tmp_path / "serverless.yml"
        path.write_text(SERVICE_YML)

        service = load_service_file(path, options={"stage": "prod"})

        assert service["provider"]["region"] == "us-east-1"
        assert service["custom"]["vpc"]["vpcName"] == "prod-vpc"
        assert service["custom"]["vpc"]["subnetNames"] == ["orders-private-a"]
        assert service["functions"]["create"] == {"handler": "handler.create"}

    def test_loads_json(self, tmp_path):
        """Test JSON service files are accepted."""
        path = tmp_path / "serverless.json"
        path.write_text('{"custom": {"vpc": {"vpcName": "prod"}}, "functions": {}}')
        assert load_service_file(path)["custom"]["vpc"]["vpcName"] == "prod"

    def test_missing_file(self, tmp_path):
        """Test a missing file is a ConfigurationError."""
        with pytest.raises(ConfigurationError, match="Could not read"):
            load_service_file(tmp_path / "nope.yml")

    def test_invalid_yaml(self, tmp_path):
        """Test broken YAML is a ConfigurationError."""
        path = tmp_path / "serverless.yml"
        path.write_text("custom: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Could not parse"):
            load_service_file(path)

    def test_top_level_must_be_mapping(self, tmp_path):
        """Test a list document is rejected."""
        path = tmp_path / "serverless.yml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_service_file(path)


class TestFindServiceFile:
    """Tests for find_service_file()."""

    def test_prefers_yml(self, tmp_path):
        """Test serverless.yml wins over the other names."""
        (tmp_path / "serverless.json").write_text("{}")
        (tmp_path / "serverless.yml").write_text("service: x\n")
        assert find_service_file(tmp_path) == tmp_path / "serverless.yml"

    def test_none_found(self, tmp_path):
        """Test None when no service file exists."""
        assert find_service_file(tmp_path) is None


class TestDumpService:
    """Tests for dump_service() / write_service_file()."""

    def test_keeps_key_order(self):
        """Test keys are written in their original order."""
        text = dump_service({"service": "orders", "custom": {}, "functions": {}})
        assert text.index("service") < text.index("custom") < text.index("functions")

    def test_writes_to_stream(self):
        """Test output can go to a stream."""
        stream = io.StringIO()
        dump_service({"service": "orders"}, stream)
        assert stream.getvalue() == "service: orders\n"

    def test_write_round_trip(self, tmp_path):
        """Test the written file reads back as the same service."""
        service = {"functions": {"create": {"vpc": {"subnetIds": ["subnet-1"]}}}}
        path = write_service_file(service, tmp_path / "out.yml")
        assert yaml.safe_load(path.read_text()) == service


CFN_SERVICE_YML = """
service: orders
custom:
  vpc:
    vpcName: prod
    subnetNames: [a]
functions:
  create:
    handler: handler.create
    environment:
      QUEUE_URL: !Ref OrdersQueue
      QUEUE_ARN: !GetAtt OrdersQueue.Arn
      TOPIC: !Join [":", [arn, aws, sns]]
resources:
  Outputs:
    QueueName:
      Value: !Sub "${AWS::StackName}-orders"
"""


class TestCloudFormationTags:
    """Tests for CloudFormation short-form intrinsics in service files."""

    def test_loads_tagged_values(self, tmp_path):
        """Test !Ref, !GetAtt and !Join are loaded as tagged values."""
        path = tmp_path / "serverless.yml"
        path.write_text(CFN_SERVICE_YML)

        service = load_service_file(path)
        environment = service["functions"]["create"]["environment"]

        assert environment["QUEUE_URL"] == CfnTag("!Ref", "OrdersQueue")
        assert environment["QUEUE_ARN"] == CfnTag("!GetAtt", "OrdersQueue.Arn")
        assert environment["TOPIC"] == CfnTag("!Join", [":", ["arn", "aws", "sns"]])

    def test_sub_is_left_for_cloudformation(self, tmp_path):
        """Test ${AWS::...} inside !Sub is not treated as a serverless variable."""
        path = tmp_path / "serverless.yml"
        path.write_text(CFN_SERVICE_YML)

        service = load_service_file(path)
        assert service["resources"]["Outputs"]["QueueName"]["Value"] == CfnTag(
            "!Sub", "${AWS::StackName}-orders"
        )

    def test_tags_survive_writing(self, tmp_path):
        """Test the written file keeps the short-form tags."""
        path = tmp_path / "serverless.yml"
        path.write_text(CFN_SERVICE_YML)

        service = load_service_file(path)
        text = dump_service(service)

        assert "!Ref OrdersQueue" in text
        assert "!GetAtt OrdersQueue.Arn" in text
        assert "!Join" in text

        written = write_service_file(service, tmp_path / "out.yml")
        assert load_service_file(written) == service
