"""Project code generation and validation.

Codes look like ``AB3-X9Q-77K``: nine symbols from ``[A-Z0-9]`` in three
dash-separated groups. The keyspace is 36**9 (about 1.0e14), so collisions
are rare but possible; callers that need uniqueness go through
:func:`generate_unique` or allocate against the store.
"""

import math
import re
import secrets
from collections.abc import Collection

ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
GROUP_SIZE = 3
GROUP_COUNT = 3
SEPARATOR = "-"
CODE_LENGTH = GROUP_SIZE * GROUP_COUNT + (GROUP_COUNT - 1)
KEYSPACE = len(ALPHABET) ** (GROUP_SIZE * GROUP_COUNT)

MAX_BATCH_SIZE = 100_000
MAX_BATCH_ATTEMPTS = 1_000_000

CODE_PATTERN = re.compile(r"^[A-Z0-9]{3}-[A-Z0-9]{3}-[A-Z0-9]{3}$")
_WHITESPACE = re.compile(r"\s+")


class CodeGenerationError(Exception):
    """Raised when a unique code cannot be produced within the attempt budget."""


def generate() -> str:
    """Return a random code drawn uniformly from the keyspace."""
    groups = [
        "".join(secrets.choice(ALPHABET) for _ in range(GROUP_SIZE)) for _ in range(GROUP_COUNT)
    ]
    return SEPARATOR.join(groups)


def is_valid_format(code: str) -> bool:
    """Structural check only. Does not say whether the code exists."""
    return isinstance(code, str) and CODE_PATTERN.match(code) is not None


def normalize(code: str) -> str:
    """Trim, uppercase and drop all whitespace.

    Normalizing an already-normalized code is a no-op.
    """
    return _WHITESPACE.sub("", code.strip().upper())


def parse(code: str) -> list[str] | None:
    """Split a code into its groups, or None when malformed."""
    if not is_valid_format(code):
        return None
    return code.split(SEPARATOR)


def generate_unique(
    existing: Collection[str],
    max_attempts: int = 100,
    *,
    crowded_threshold: int = 1000,
    min_attempts_when_crowded: int = 100,
) -> str:
    """Generate a code not present in ``existing``.

    Fails fast when the known set is crowded but the attempt budget is too
    small to be worth trying.
    """
    if len(existing) > crowded_threshold and max_attempts < min_attempts_when_crowded:
        raise CodeGenerationError(
            f"Too few attempts ({max_attempts}) for {len(existing)} existing codes"
        )

    for _ in range(max_attempts):
        code = generate()
        if code not in existing:
            return code

    raise CodeGenerationError(f"Failed to generate unique code after {max_attempts} attempts")


def generate_many(count: int) -> list[str]:
    """Generate ``count`` distinct codes or raise; never returns a short list."""
    if count < 0:
        raise ValueError("count must be non-negative")
    if count > MAX_BATCH_SIZE:
        raise ValueError(f"Cannot generate more than {MAX_BATCH_SIZE} codes at once")

    codes: set[str] = set()
    max_attempts = min(count * 10, MAX_BATCH_ATTEMPTS)
    attempts = 0
    while len(codes) < count:
        if attempts >= max_attempts:
            raise CodeGenerationError(
                f"Generated only {len(codes)} of {count} codes in {max_attempts} attempts"
            )
        codes.add(generate())
        attempts += 1
    return list(codes)


def collision_probability(n: int) -> float:
    """Birthday-bound probability that ``n`` random codes contain a duplicate."""
    if n <= 1:
        return 0.0
    # expm1 keeps precision when the exponent is tiny
    probability = -math.expm1(-(n * (n - 1)) / (2 * KEYSPACE))
    return min(max(probability, 0.0), 1.0)
