"""
Range selection.

Decides which positions a poller processes on a tick.
"""


def compute_range(
    cursor: int | None,
    head: int,
    backfill_from_genesis: bool,
    backfill_window: int,
) -> range | None:
    """
    Compute the inclusive block/slot range for one tick.

    First run (no cursor): from 0 in genesis mode, otherwise the trailing
    `backfill_window` positions up to head. Later runs: cursor+1 to head.

    Args:
        cursor: Last fully processed position, None if never indexed
        head: Current chain head
        backfill_from_genesis: Start from position 0 on first run
        backfill_window: Trailing window size on first run

    Returns:
        Ascending range of positions, or None when there is nothing to do

    Examples:
        >>> compute_range(None, 50, True, 10)
        range(0, 51)
        >>> compute_range(None, 50, False, 10)
        range(41, 51)
        >>> compute_range(41, 55, False, 10)
        range(42, 56)
        >>> compute_range(50, 50, False, 10) is None
        True
    """
    if cursor is not None:
        start = cursor + 1
    elif backfill_from_genesis:
        start = 0
    else:
        start = max(0, head - max(backfill_window, 1) + 1)

    if start > head:
        return None
    return range(start, head + 1)
