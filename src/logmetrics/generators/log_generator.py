"""
Generate plain-text log batches by sampling lines from a candidate pool.

Lines are sampled with replacement; the payload is the lines joined with a
newline after every line, including the last.
"""

from collections.abc import Sequence

from ..errors import InvalidArgument
from ..payloads import PlainTextRequest
from ..statistics.random_source import RandomSource

PLAINTEXT_PATH = "/test-lines"
PLAINTEXT_CONTENT_TYPE = "text/plain"


def build_plaintext_batch(
    lines_per_cycle: int,
    candidate_pool: Sequence[str],
    rng: RandomSource,
) -> PlainTextRequest:
    """Sample `lines_per_cycle` lines uniformly from `candidate_pool`."""
    if lines_per_cycle < 0:
        raise InvalidArgument(f"lines_per_cycle must be >= 0, got {lines_per_cycle}")
    if lines_per_cycle == 0:
        return PlainTextRequest()
    if not candidate_pool:
        raise InvalidArgument("candidate line pool is empty")
    return PlainTextRequest(tuple(rng.pick(candidate_pool) for _ in range(lines_per_cycle)))


class PlainTextGenerator:
    """Produce one PlainTextRequest per call to generate()."""

    path = PLAINTEXT_PATH

    def __init__(
        self,
        lines: Sequence[str],
        lines_per_cycle: int,
        rng: RandomSource | None = None,
    ):
        """Initialize generator with the candidate line pool."""
        self.lines: tuple[str, ...] = tuple(lines)
        self.lines_per_cycle = lines_per_cycle
        self.rng = rng or RandomSource()
        if lines_per_cycle < 0:
            raise InvalidArgument(f"lines_per_cycle must be >= 0, got {lines_per_cycle}")
        if lines_per_cycle > 0 and not self.lines:
            raise InvalidArgument("candidate line pool is empty")

    def headers(self) -> dict[str, str]:
        return {"Content-Type": PLAINTEXT_CONTENT_TYPE}

    def generate(self) -> PlainTextRequest:
        return build_plaintext_batch(self.lines_per_cycle, self.lines, self.rng)
