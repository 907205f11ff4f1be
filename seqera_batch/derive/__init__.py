"""Names, ARNs, URIs and feature-flag branches derived from the input."""

from seqera_batch.derive.names import (
    ACCOUNT_PLACEHOLDER,
    MANAGED_BY_TAG_VALUE,
    MODULE_TAG_VALUE,
    RESERVED_TAG_KEYS,
    DerivationError,
    DerivedNames,
    aws_partition,
    bucket_arn,
    combined_bucket_arns,
    derive,
    effective_allocation_strategy,
    merge_tags,
    work_dir_uri,
)

__all__ = [
    "ACCOUNT_PLACEHOLDER",
    "DerivationError",
    "DerivedNames",
    "MANAGED_BY_TAG_VALUE",
    "MODULE_TAG_VALUE",
    "RESERVED_TAG_KEYS",
    "aws_partition",
    "bucket_arn",
    "combined_bucket_arns",
    "derive",
    "effective_allocation_strategy",
    "merge_tags",
    "work_dir_uri",
]
