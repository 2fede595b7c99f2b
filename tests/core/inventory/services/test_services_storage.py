"""
tests/core/inventory/services/test_services_storage.py - S3/ECR 수집기 테스트
"""

import dataclasses
import time
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

from core.inventory.services import collect_ecr_repositories, collect_s3_buckets
from core.inventory.services.ecr import _latest_image
from core.inventory.tags import TagFilter

ALL_BLOCKED = {
    "PublicAccessBlockConfiguration": {
        "BlockPublicAcls": True,
        "IgnorePublicAcls": True,
        "BlockPublicPolicy": True,
        "RestrictPublicBuckets": True,
    }
}


class TestCollectS3Buckets:
    """S3 수집 테스트"""

    def test_region_and_public_access(self, aws_session, settings, client_error):
        client = MagicMock()
        client.list_buckets.return_value = {"Buckets": [{"Name": "logs"}, {"Name": "legacy"}, {"Name": "open"}]}
        client.get_bucket_location.side_effect = lambda Bucket: {
            "logs": {"LocationConstraint": None},
            "legacy": {"LocationConstraint": "EU"},
            "open": {"LocationConstraint": "us-west-2"},
        }[Bucket]

        def public_access_block(Bucket):
            if Bucket == "open":
                raise client_error("NoSuchPublicAccessBlockConfiguration")
            return ALL_BLOCKED

        client.get_public_access_block.side_effect = public_access_block
        client.get_bucket_tagging.side_effect = client_error("NoSuchTagSet")

        with patch("core.inventory.services.storage.get_client", return_value=client):
            buckets = collect_s3_buckets(aws_session, None, settings)

        assert [(b.name, b.region, b.block_all_public_access) for b in buckets] == [
            ("logs", "us-east-1", True),
            ("legacy", "eu-west-1", True),
            ("open", "us-west-2", False),
        ]
        assert all(b.tags == {} for b in buckets)

    def test_location_failure_skips_bucket(self, aws_session, settings, client_error):
        client = MagicMock()
        client.list_buckets.return_value = {"Buckets": [{"Name": "forbidden"}, {"Name": "ok"}]}

        def location(Bucket):
            if Bucket == "forbidden":
                raise client_error("AccessDenied")
            return {"LocationConstraint": None}

        client.get_bucket_location.side_effect = location
        client.get_public_access_block.return_value = ALL_BLOCKED
        client.get_bucket_tagging.return_value = {"TagSet": []}

        with patch("core.inventory.services.storage.get_client", return_value=client):
            buckets = collect_s3_buckets(aws_session, None, settings)

        assert [b.name for b in buckets] == ["ok"]

    def test_public_access_error_defaults_to_blocked(self, aws_session, settings, client_error):
        client = MagicMock()
        client.list_buckets.return_value = {"Buckets": [{"Name": "b"}]}
        client.get_bucket_location.return_value = {"LocationConstraint": None}
        client.get_public_access_block.side_effect = client_error("AccessDenied")
        client.get_bucket_tagging.return_value = {"TagSet": []}

        with patch("core.inventory.services.storage.get_client", return_value=client):
            buckets = collect_s3_buckets(aws_session, None, settings)

        assert buckets[0].block_all_public_access is True

    def test_location_timeout_skips_bucket(self, aws_session, settings):
        """리전 조회가 item_timeout을 넘긴 버킷은 건너뜀"""
        settings = dataclasses.replace(settings, item_timeout=0.2)
        client = MagicMock()
        client.list_buckets.return_value = {"Buckets": [{"Name": "slow"}, {"Name": "ok"}]}

        def location(Bucket):
            if Bucket == "slow":
                time.sleep(0.6)
            return {"LocationConstraint": None}

        client.get_bucket_location.side_effect = location
        client.get_public_access_block.return_value = ALL_BLOCKED
        client.get_bucket_tagging.return_value = {"TagSet": []}

        with patch("core.inventory.services.storage.get_client", return_value=client) as factory:
            buckets = collect_s3_buckets(aws_session, None, settings)

        assert [b.name for b in buckets] == ["ok"]
        # 버킷 단위 client의 읽기 타임아웃도 item_timeout 이하
        assert factory.call_args.kwargs["budget"] == 0.2

    def test_with_moto_tag_filter(self, moto_session, settings):
        """moto S3에서 태그 필터는 수집 후 적용"""
        s3 = moto_session.boto_session.client("s3", region_name="us-east-1")
        for name, env in (("prod-bucket", "prod"), ("dev-bucket", "dev")):
            s3.create_bucket(Bucket=name)
            s3.put_bucket_tagging(Bucket=name, Tagging={"TagSet": [{"Key": "Environment", "Value": env}]})
        s3.create_bucket(Bucket="untagged")

        buckets = collect_s3_buckets(moto_session, TagFilter("Environment", "prod"), settings)

        assert [b.name for b in buckets] == ["prod-bucket"]
        assert buckets[0].region == "us-east-1"
        assert buckets[0].tags == {"Environment": "prod"}
        # PublicAccessBlock 설정이 없는 버킷
        assert buckets[0].block_all_public_access is False


class TestCollectECRRepositories:
    """ECR 수집 테스트"""

    def _client(self, paginator):
        client = MagicMock()
        client.get_paginator.return_value = paginator(
            {
                "repositories": [
                    {"repositoryName": "api", "repositoryArn": "arn:ecr/api", "registryId": "123"},
                    {"repositoryName": "worker", "repositoryArn": "arn:ecr/worker", "registryId": "123"},
                ]
            }
        )
        return client

    def test_latest_image_and_tags(self, aws_session, settings, paginator):
        client = self._client(paginator)
        client.describe_images.side_effect = lambda repositoryName, maxResults, filter: {
            "imageDetails": [
                {
                    "imageTags": ["v1"],
                    "imageDigest": "sha256:old",
                    "imagePushedAt": datetime(2024, 1, 1, tzinfo=timezone.utc),
                },
                {
                    "imageTags": ["v2", "latest"],
                    "imageDigest": "sha256:new",
                    "imagePushedAt": datetime(2024, 3, 1, tzinfo=timezone.utc),
                },
            ]
        }
        client.list_tags_for_resource.side_effect = lambda resourceArn: {
            "tags": [{"Key": "Team", "Value": "api" if resourceArn.endswith("api") else "jobs"}]
        }

        with patch("core.inventory.services.ecr.get_client", return_value=client):
            repos = collect_ecr_repositories(aws_session, TagFilter("Team", "api"), settings)

        assert len(repos) == 1
        assert repos[0].repository_name == "api"
        assert repos[0].latest_image_tag == "v2"
        assert repos[0].latest_image_digest == "sha256:new"
        assert repos[0].tags == {"Team": "api"}
        kwargs = client.describe_images.call_args.kwargs
        assert kwargs["maxResults"] == 10
        assert kwargs["filter"] == {"tagStatus": "TAGGED"}

    def test_image_failure_skips_repository(self, aws_session, settings, paginator, client_error):
        client = self._client(paginator)

        def describe_images(repositoryName, maxResults, filter):
            if repositoryName == "api":
                raise client_error("RepositoryNotFoundException")
            return {"imageDetails": []}

        client.describe_images.side_effect = describe_images
        client.list_tags_for_resource.return_value = {"tags": []}

        with patch("core.inventory.services.ecr.get_client", return_value=client):
            repos = collect_ecr_repositories(aws_session, None, settings)

        assert [r.repository_name for r in repos] == ["worker"]
        assert repos[0].latest_image_tag == ""

    def test_image_timeout_skips_repository(self, aws_session, settings, paginator):
        """이미지 조회가 item_timeout을 넘긴 리포지토리는 건너뜀"""
        settings = dataclasses.replace(settings, item_timeout=0.2)
        client = self._client(paginator)

        def describe_images(repositoryName, maxResults, filter):
            if repositoryName == "api":
                time.sleep(0.6)
            return {"imageDetails": []}

        client.describe_images.side_effect = describe_images
        client.list_tags_for_resource.return_value = {"tags": []}

        with patch("core.inventory.services.ecr.get_client", return_value=client) as factory:
            repos = collect_ecr_repositories(aws_session, None, settings)

        assert [r.repository_name for r in repos] == ["worker"]
        assert factory.call_args.kwargs["budget"] == 0.2

    def test_latest_image_without_timestamps(self):
        assert _latest_image([{"imageTags": ["x"], "imageDigest": "sha256:a"}]) == ("", "")
