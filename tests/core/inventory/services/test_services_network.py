"""
tests/core/inventory/services/test_services_network.py - EIP/NAT/IGW 수집기 테스트
"""

from unittest.mock import MagicMock, patch

from core.inventory.services import collect_elastic_ips, collect_internet_gateways, collect_nat_gateways
from core.inventory.tags import TagFilter


class TestCollectElasticIPs:
    """Elastic IP 수집 테스트"""

    def test_single_call_with_filters(self, aws_session, settings):
        client = MagicMock()
        client.describe_addresses.return_value = {
            "Addresses": [
                {
                    "AllocationId": "eipalloc-1",
                    "PublicIp": "3.3.3.3",
                    "Domain": "vpc",
                    "InstanceId": "i-1",
                    "NetworkInterfaceId": "eni-1",
                    "PrivateIpAddress": "10.0.0.5",
                    "Tags": [{"Key": "Team", "Value": "ops"}],
                },
                {
                    "AllocationId": "eipalloc-2",
                    "PublicIp": "4.4.4.4",
                    "Domain": "vpc",
                    "Tags": [{"Key": "Team", "Value": "ops"}],
                },
            ]
        }

        with patch("core.inventory.services.vpc.get_client", return_value=client):
            eips = collect_elastic_ips(aws_session, TagFilter("Team", "ops"), settings)

        client.describe_addresses.assert_called_once_with(Filters=[{"Name": "tag:Team", "Values": ["ops"]}])
        assert eips[0].instance_id == "i-1"
        assert eips[0].tags == {"Team": "ops"}
        assert eips[1].instance_id == ""

    def test_wildcard_values_rechecked(self, aws_session, settings):
        """API가 * 를 와일드카드로 해석해도 값이 정확히 같은 EIP만 수집"""
        client = MagicMock()
        client.describe_addresses.return_value = {
            "Addresses": [
                {"AllocationId": "eipalloc-1", "Tags": [{"Key": "Environment", "Value": "prod-x"}]},
                {"AllocationId": "eipalloc-2", "Tags": [{"Key": "Environment", "Value": "prod*"}]},
            ]
        }

        with patch("core.inventory.services.vpc.get_client", return_value=client):
            eips = collect_elastic_ips(aws_session, TagFilter("Environment", "prod*"), settings)

        assert [e.allocation_id for e in eips] == ["eipalloc-2"]

    def test_with_moto(self, moto_session, settings):
        ec2 = moto_session.boto_session.client("ec2", region_name="us-east-1")
        allocation = ec2.allocate_address(Domain="vpc")

        eips = collect_elastic_ips(moto_session, None, settings)

        assert [e.allocation_id for e in eips] == [allocation["AllocationId"]]
        assert eips[0].domain == "vpc"


class TestCollectNATGateways:
    """NAT Gateway 수집 테스트"""

    def test_filter_parameter_name(self, aws_session, settings, paginator):
        """describe_nat_gateways는 Filter(단수) 파라미터 사용"""
        client = MagicMock()
        client.get_paginator.return_value = paginator(
            {
                "NatGateways": [
                    {
                        "NatGatewayId": "nat-1",
                        "VpcId": "vpc-1",
                        "SubnetId": "subnet-1",
                        "State": "available",
                        "Tags": [{"Key": "Environment", "Value": "prod"}],
                    },
                    {
                        "NatGatewayId": "nat-2",
                        "State": "available",
                        "Tags": [{"Key": "Environment", "Value": "production"}],
                    },
                ]
            }
        )

        with patch("core.inventory.services.vpc.get_client", return_value=client):
            nats = collect_nat_gateways(aws_session, TagFilter("Environment", "prod"), settings)

        client.get_paginator.return_value.paginate.assert_called_once_with(
            Filter=[{"Name": "tag:Environment", "Values": ["prod"]}]
        )
        # API 필터 결과라도 값이 다른 NAT Gateway는 제외
        assert [n.nat_gateway_id for n in nats] == ["nat-1"]
        assert nats[0].state == "available"

    def test_without_filter(self, aws_session, settings, paginator):
        client = MagicMock()
        client.get_paginator.return_value = paginator({"NatGateways": []})

        with patch("core.inventory.services.vpc.get_client", return_value=client):
            assert collect_nat_gateways(aws_session, None, settings) == []

        client.get_paginator.return_value.paginate.assert_called_once_with()


class TestCollectInternetGateways:
    """Internet Gateway 수집 테스트"""

    def test_attachments_are_vpc_ids(self, aws_session, settings, paginator):
        client = MagicMock()
        client.get_paginator.return_value = paginator(
            {
                "InternetGateways": [
                    {
                        "InternetGatewayId": "igw-1",
                        "Attachments": [{"VpcId": "vpc-1", "State": "available"}, {"State": "detached"}],
                    }
                ]
            }
        )

        with patch("core.inventory.services.vpc.get_client", return_value=client):
            igws = collect_internet_gateways(aws_session, None, settings)

        assert igws[0].attachments == ["vpc-1"]

    def test_tag_filter_rechecked(self, aws_session, settings, paginator):
        client = MagicMock()
        client.get_paginator.return_value = paginator(
            {
                "InternetGateways": [
                    {"InternetGatewayId": "igw-1", "Tags": [{"Key": "Team", "Value": "ops-2"}]},
                    {"InternetGatewayId": "igw-2", "Tags": [{"Key": "Team", "Value": "ops?"}]},
                ]
            }
        )

        with patch("core.inventory.services.vpc.get_client", return_value=client):
            igws = collect_internet_gateways(aws_session, TagFilter("Team", "ops?"), settings)

        assert [igw.internet_gateway_id for igw in igws] == ["igw-2"]

    def test_with_moto(self, moto_session, settings):
        ec2 = moto_session.boto_session.client("ec2", region_name="us-east-1")
        vpc_id = ec2.create_vpc(CidrBlock="10.0.0.0/16")["Vpc"]["VpcId"]
        igw_id = ec2.create_internet_gateway()["InternetGateway"]["InternetGatewayId"]
        ec2.attach_internet_gateway(InternetGatewayId=igw_id, VpcId=vpc_id)

        igws = collect_internet_gateways(moto_session, None, settings)

        attached = [igw for igw in igws if igw.internet_gateway_id == igw_id]
        assert attached[0].attachments == [vpc_id]
