"""AWS identity lookup used outside the pure compiler."""

from seqera_batch.aws.context import AWSContext, resolve_profile

__all__ = [
    "AWSContext",
    "resolve_profile",
]
