"""Block-range cursor for continuous scanning.

The cursor hands out inclusive ranges that, across one run, form a strictly
increasing, gap-free sequence starting at the configured start block. It is
advanced only by an explicit `commit` after a range was fully processed, so
an aborted tick is retried with the same `from_block`.
"""

from __future__ import annotations

from govwatch.core.config import StartKind, StartMode
from govwatch.core.errors import ConfigError
from govwatch.core.models import BlockRange


class ChainCursor:
    """Owns the "next block range to scan" state. Mutated only by the scan engine."""

    def __init__(self) -> None:
        self.last_committed: int | None = None
        self._first_block: int | None = None

    @property
    def initialized(self) -> bool:
        return self._first_block is not None

    def initialize(self, mode: StartMode, tip: int) -> int:
        """Anchor the cursor against the current tip and return the anchor block.

        - earliest: anchor 0, scanned inclusively.
        - start=N: anchor N, scanned inclusively (N must already be mined).
        - latest: anchor tip; only blocks mined after it are scanned.
        - tail=N: anchor tip-N; the N blocks after it (up to tip) are scanned.
          If N reaches past genesis, scanning starts at block 0.
        """
        match mode.kind:
            case StartKind.EARLIEST:
                anchor, first = 0, 0
            case StartKind.START:
                if mode.value > tip:
                    raise ConfigError(
                        f"start block {mode.value} exceeds the last mined block {tip}"
                    )
                anchor, first = mode.value, mode.value
            case StartKind.LATEST:
                anchor, first = tip, tip + 1
            case StartKind.TAIL:
                anchor = max(0, tip - mode.value)
                first = anchor + 1 if tip - mode.value >= 0 else 0
            case _:
                raise ConfigError(f"unsupported start mode: {mode}")
        self._first_block = first
        self.last_committed = None
        return anchor

    @property
    def next_from(self) -> int:
        if self._first_block is None:
            raise RuntimeError("cursor used before initialize()")
        if self.last_committed is None:
            return self._first_block
        return self.last_committed + 1

    def next_range(self, tip: int) -> BlockRange | None:
        """Return the next uncommitted range up to `tip`, or None if nothing is new."""
        start = self.next_from
        if start > tip:
            return None
        return BlockRange(start, tip)

    def commit(self, block_range: BlockRange) -> None:
        """Mark `block_range` fully processed. Must be exactly the range last handed out."""
        if block_range.from_block != self.next_from:
            raise ValueError(
                f"commit of {block_range} does not continue from block {self.next_from}"
            )
        self.last_committed = block_range.to_block
