"""Tests for seqera_batch.aws.context — profile resolution and STS identity lookup."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import NoCredentialsError

from seqera_batch.aws.context import AWSContext, resolve_profile


# ── resolve_profile ──────────────────────────────────────────────────


class TestResolveProfile:
    def test_explicit_profile(self):
        assert resolve_profile("my-profile") == "my-profile"

    def test_first_non_empty_candidate(self):
        assert resolve_profile(None, "", "from-config") == "from-config"

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("AWS_PROFILE", "env-profile")
        assert resolve_profile() == "env-profile"

    def test_explicit_overrides_env(self, monkeypatch):
        monkeypatch.setenv("AWS_PROFILE", "env-profile")
        assert resolve_profile("explicit") == "explicit"

    def test_missing_raises(self, monkeypatch):
        monkeypatch.delenv("AWS_PROFILE", raising=False)
        with pytest.raises(RuntimeError, match="AWS_PROFILE is not set"):
            resolve_profile(None, None)


# ── AWSContext.build ─────────────────────────────────────────────────


class TestAWSContextBuild:
    """Tests use mocked boto3 to avoid real AWS calls."""

    @patch("seqera_batch.aws.context.boto3.Session")
    def test_build_success(self, mock_session_cls):
        mock_session = MagicMock()
        mock_session_cls.return_value = mock_session
        mock_sts = MagicMock()
        mock_session.client.return_value = mock_sts
        mock_sts.get_caller_identity.return_value = {
            "Account": "123456789012",
            "Arn": "arn:aws:iam::123456789012:user/alice",
            "UserId": "AIDAEXAMPLE",
        }

        ctx = AWSContext.build(region="us-west-2", profile="test-profile")

        assert ctx.profile == "test-profile"
        assert ctx.region == "us-west-2"
        assert ctx.account_id == "123456789012"
        assert ctx.caller_arn == "arn:aws:iam::123456789012:user/alice"
        mock_session_cls.assert_called_once_with(
            profile_name="test-profile", region_name="us-west-2"
        )
        mock_session.client.assert_called_once_with("sts")

    @patch("seqera_batch.aws.context.boto3.Session")
    def test_build_assumed_role(self, mock_session_cls):
        mock_session = MagicMock()
        mock_session_cls.return_value = mock_session
        mock_session.client.return_value.get_caller_identity.return_value = {
            "Account": "987654321098",
            "Arn": "arn:aws:sts::987654321098:assumed-role/AdminRole/sess",
        }

        ctx = AWSContext.build(region="eu-west-1", profile="role-profile")

        assert ctx.account_id == "987654321098"
        assert ctx.caller_arn.endswith("/sess")

    @patch("seqera_batch.aws.context.boto3.Session")
    def test_build_credential_failure(self, mock_session_cls):
        mock_session = MagicMock()
        mock_session_cls.return_value = mock_session
        mock_session.client.return_value.get_caller_identity.side_effect = (
            NoCredentialsError()
        )

        with pytest.raises(RuntimeError, match="credentials invalid"):
            AWSContext.build(region="us-east-1", profile="bad")

    @patch("seqera_batch.aws.context.boto3.Session")
    def test_frozen(self, mock_session_cls):
        mock_session_cls.return_value.client.return_value.get_caller_identity.return_value = {
            "Account": "123456789012",
            "Arn": "arn:aws:iam::123456789012:user/alice",
        }
        ctx = AWSContext.build(region="us-east-1", profile="p")
        with pytest.raises(AttributeError):
            ctx.account_id = "000000000000"  # type: ignore[misc]
