"""
Instruction Chunker - splits instructions into transaction-sized groups.

Groups are formed first-in-first-out: order is never changed, and every
input instruction lands in exactly one group.
"""

from typing import List, Optional, Sequence

import structlog

from solders.instruction import Instruction

from bulk_transfer.errors import ConfigError

logger = structlog.get_logger(__name__)


def validate_limit(limit: object, name: str = "limit") -> int:
    """
    Check that a batch limit is a positive integer.

    Raises:
        ConfigError: If the limit is not an integer or is not positive
    """
    if isinstance(limit, bool) or not isinstance(limit, int):
        raise ConfigError(f"{name} must be an integer, got {limit!r}")
    if limit <= 0:
        raise ConfigError(f"{name} must be positive, got {limit}")
    return limit


def chunk(
    instructions: Sequence[Instruction],
    limit: int,
    annotation: Optional[Instruction] = None,
) -> List[List[Instruction]]:
    """
    Split instructions into ordered groups of at most `limit` items.

    When an annotation is given, one copy of it is appended to every group
    as it closes. The annotation does not count against the limit.

    Args:
        instructions: Instructions to split, in submission order
        limit: Maximum payload instructions per group
        annotation: Optional trailing instruction (usually a memo)

    Returns:
        List of groups; empty input yields an empty list

    Raises:
        ConfigError: If limit is not a positive integer
    """
    validate_limit(limit)

    groups: List[List[Instruction]] = []
    current: List[Instruction] = []

    for instruction in instructions:
        current.append(instruction)
        if len(current) == limit:
            groups.append(_seal(current, annotation))
            current = []

    if current:
        groups.append(_seal(current, annotation))

    logger.debug(
        "instructions_chunked",
        instruction_count=len(instructions),
        group_count=len(groups),
        limit=limit,
        annotated=annotation is not None,
    )

    return groups


def _seal(group: List[Instruction], annotation: Optional[Instruction]) -> List[Instruction]:
    """Close a group, appending the annotation when present."""
    if annotation is not None:
        group.append(annotation)
    return group
