"""Tests for project code generation (src/feedback/core/codes.py)."""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from src.feedback.core import codes

pytestmark = pytest.mark.unit

valid_code = st.from_regex(r"^[A-Z0-9]{3}-[A-Z0-9]{3}-[A-Z0-9]{3}$", fullmatch=True)


class TestGenerate:
    def test_generated_codes_are_valid(self) -> None:
        for _ in range(200):
            code = codes.generate()
            assert codes.is_valid_format(code)
            assert len(code) == codes.CODE_LENGTH == 11

    def test_parse_splits_groups(self) -> None:
        assert codes.parse("AB3-X9Q-77K") == ["AB3", "X9Q", "77K"]
        assert codes.parse("AB3X9Q77K") is None


class TestFormat:
    @pytest.mark.parametrize(
        "code",
        ["ab3-x9q-77k", "AB3-X9Q-77", "AB3_X9Q_77K", "AB3-X9Q-77K-", "", "NOTREAL", "AB$-X9Q-77K"],
    )
    def test_rejects_malformed(self, code: str) -> None:
        assert not codes.is_valid_format(code)

    def test_normalize_trims_uppercases_and_drops_whitespace(self) -> None:
        assert codes.normalize("  ab3-x9q - 77k\n") == "AB3-X9Q-77K"


@given(code=valid_code)
@settings(max_examples=100)
def test_normalize_is_idempotent_on_valid_codes(code: str):
    """Normalizing a valid code keeps it valid and unchanged."""
    assert codes.normalize(code) == code
    assert codes.is_valid_format(codes.normalize(code))


@given(code=valid_code)
def test_lowercase_codes_normalize_to_valid(code: str):
    assert codes.is_valid_format(codes.normalize(f" {code.lower()} "))


class TestGenerateUnique:
    def test_avoids_existing_codes(self) -> None:
        existing = {codes.generate() for _ in range(50)}
        code = codes.generate_unique(existing)
        assert code not in existing

    def test_fails_fast_when_crowded_with_small_budget(self) -> None:
        existing = {f"AAA-AAA-{i:03d}" for i in range(1001)}
        with pytest.raises(codes.CodeGenerationError):
            codes.generate_unique(existing, max_attempts=10)

    def test_raises_when_every_attempt_collides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(codes, "generate", lambda: "AAA-AAA-AAA")
        with pytest.raises(codes.CodeGenerationError):
            codes.generate_unique({"AAA-AAA-AAA"}, max_attempts=5)


class TestGenerateMany:
    def test_returns_exact_count_of_distinct_codes(self) -> None:
        batch = codes.generate_many(500)
        assert len(batch) == 500
        assert len(set(batch)) == 500

    def test_zero_is_empty(self) -> None:
        assert codes.generate_many(0) == []

    @pytest.mark.parametrize("count", [-1, codes.MAX_BATCH_SIZE + 1])
    def test_rejects_out_of_range_counts(self, count: int) -> None:
        with pytest.raises(ValueError):
            codes.generate_many(count)

    def test_raises_instead_of_returning_short_batch(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(codes, "generate", lambda: "AAA-AAA-AAA")
        with pytest.raises(codes.CodeGenerationError):
            codes.generate_many(3)


class TestCollisionProbability:
    @pytest.mark.parametrize("n", [0, 1])
    def test_trivial_sizes_are_zero(self, n: int) -> None:
        assert codes.collision_probability(n) == 0.0

    def test_small_batches_are_tiny_but_positive(self) -> None:
        p = codes.collision_probability(1000)
        assert 0.0 < p < 1e-6

    def test_saturates_at_one(self) -> None:
        assert codes.collision_probability(10**9) == pytest.approx(1.0)


@given(n=st.integers(min_value=0, max_value=10**8))
def test_collision_probability_is_bounded_and_monotone(n: int):
    p = codes.collision_probability(n)
    assert 0.0 <= p <= 1.0
    assert codes.collision_probability(n + 1000) >= p
