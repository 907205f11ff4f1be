"""AWS identity lookup for filling in the account id.

The compiler itself never talks to AWS.  When the input document has no
``account_id`` the CLI can resolve it here with STS
``get-caller-identity`` so role ARNs are rendered concretely instead of
with the ``${aws_account_id}`` placeholder.

Profile resolution precedence:
1. Explicit ``--profile`` CLI flag
2. ``profile`` from the input document
3. ``AWS_PROFILE`` env var
4. Error — no implicit default
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)


def resolve_profile(*candidates: Optional[str]) -> str:
    """Return the first non-empty candidate, else ``AWS_PROFILE``.

    Raises :class:`RuntimeError` when nothing is set.
    """
    for candidate in candidates:
        if candidate:
            return candidate
    resolved = os.environ.get("AWS_PROFILE", "")
    if not resolved:
        raise RuntimeError(
            "AWS_PROFILE is not set. Please export AWS_PROFILE or use --profile."
        )
    return resolved


@dataclass(frozen=True)
class AWSContext:
    """Resolved AWS identity.

    Attributes:
        profile: AWS profile used for the session.
        region: AWS region of the session.
        account_id: 12-digit AWS account ID.
        caller_arn: Full ARN from ``sts:GetCallerIdentity``.
    """

    profile: str
    region: str
    account_id: str
    caller_arn: str

    @classmethod
    def build(cls, region: str, profile: str) -> "AWSContext":
        """Construct an :class:`AWSContext` by calling STS.

        Raises :class:`RuntimeError` on credential / network failures.
        """
        if profile == "default":
            logger.warning("AWS_PROFILE is set to 'default'.")

        session = boto3.Session(profile_name=profile, region_name=region)
        try:
            identity = session.client("sts").get_caller_identity()
        except (BotoCoreError, ClientError) as exc:
            raise RuntimeError(
                f"AWS credentials invalid or inaccessible in region {region}: {exc}"
            ) from exc

        ctx = cls(
            profile=profile,
            region=region,
            account_id=identity["Account"],
            caller_arn=identity["Arn"],
        )
        logger.debug("Resolved AWS account %s via %s", ctx.account_id, ctx.caller_arn)
        return ctx
