import logging
import os
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

MAJORITY_BASES = ("total", "continuing")


@dataclass
class TabulationConfig:
    """
    Tabulation settings.

    Attributes:
        majority_basis: "total" compares a candidate's votes with half of all
            stored ballots; "continuing" uses half of the ballots that were not
            exhausted in the current round.
        max_rounds: Upper bound on rounds. None means the candidate count.
    """

    majority_basis: str = "total"
    max_rounds: Optional[int] = None

    def __post_init__(self):
        if self.majority_basis not in MAJORITY_BASES:
            raise ValueError(
                f"majority_basis must be one of {MAJORITY_BASES}, got {self.majority_basis!r}"
            )
        if self.max_rounds is not None and self.max_rounds < 1:
            raise ValueError(f"max_rounds must be positive, got {self.max_rounds}")

    @classmethod
    def from_env(cls, environ=None) -> "TabulationConfig":
        """Build a config from RUNOFF_MAJORITY_BASIS and RUNOFF_MAX_ROUNDS."""
        environ = os.environ if environ is None else environ

        majority_basis = environ.get("RUNOFF_MAJORITY_BASIS", "total")
        max_rounds = environ.get("RUNOFF_MAX_ROUNDS")
        if max_rounds is not None:
            try:
                max_rounds = int(max_rounds)
            except ValueError:
                raise ValueError(
                    f"RUNOFF_MAX_ROUNDS must be an integer, got {max_rounds!r}"
                ) from None

        config = cls(majority_basis=majority_basis, max_rounds=max_rounds)
        logger.debug(f"Loaded tabulation config from environment: {config}")
        return config
