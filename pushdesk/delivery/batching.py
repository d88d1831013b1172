"""Partitioning of recipients into provider-sized batches."""

from typing import List, Sequence

from pushdesk.config.models import PROVIDER_MAX_BATCH
from pushdesk.domain.models import Recipient

from .models import Batch


def partition_recipients(
    recipients: Sequence[Recipient], max_batch_size: int = PROVIDER_MAX_BATCH
) -> List[Batch]:
    """Split recipients into consecutive batches of at most max_batch_size.

    Every recipient lands in exactly one batch, in input order; all batches
    are full except possibly the last. An empty input gives no batches.

    Args:
        recipients: Eligible recipients
        max_batch_size: Batch ceiling, between 1 and the provider limit

    Returns:
        Batches numbered from 0

    Raises:
        ValueError: If max_batch_size is outside 1..PROVIDER_MAX_BATCH

    Example:
        1200 recipients with max_batch_size=500 give batches of 500, 500 and 200.
    """
    if not 1 <= max_batch_size <= PROVIDER_MAX_BATCH:
        raise ValueError(
            f"max_batch_size must be between 1 and {PROVIDER_MAX_BATCH}, got: {max_batch_size}"
        )

    return [
        Batch(index=index, recipients=tuple(recipients[start : start + max_batch_size]))
        for index, start in enumerate(range(0, len(recipients), max_batch_size))
    ]
