"""Unit tests for referral code generation."""

import re

import pytest

from referral_ledger.services.referral.code_generator import (
    CodeGenerator,
    build_candidate,
    build_referral_link,
    code_prefix,
)
from referral_ledger.utils.exceptions import CodeGenerationExhausted

CODE_PATTERN = re.compile(r"^[A-Z0-9]{6,16}$")


class TestCodePrefix:
    """Tests for code_prefix."""

    def test_upper_cases_and_truncates(self):
        """Prefix keeps the first six letters, upper-cased."""
        assert code_prefix("Alexandra") == "ALEXAN"

    def test_strips_accents(self):
        """Accented letters degrade to their ASCII base."""
        assert code_prefix("Zoë") == "ZOE"

    def test_drops_punctuation_and_spaces(self):
        """Only [A-Z0-9] survives."""
        assert code_prefix("Mary-Jo O'Neil") == "MARYJO"

    @pytest.mark.parametrize("seed", [None, "", "   ", "李小龍", "---"])
    def test_fallback_prefix(self, seed):
        """Seeds with nothing usable fall back to USER."""
        assert code_prefix(seed) == "USER"


class TestBuildCandidate:
    """Tests for build_candidate."""

    @pytest.mark.parametrize("prefix", ["A", "BO", "USER", "ALEXAN"])
    def test_matches_code_format(self, prefix):
        """Every candidate is 6+ upper-case letters or digits."""
        candidate = build_candidate(prefix)
        assert CODE_PATTERN.match(candidate)
        assert candidate.startswith(prefix)

    def test_short_prefix_gets_longer_suffix(self):
        """Suffix pads short prefixes up to the minimum length."""
        assert len(build_candidate("A")) == 6
        assert len(build_candidate("ALEXAN")) == 10


class TestCodeGenerator:
    """Tests for CodeGenerator."""

    @pytest.mark.asyncio
    async def test_returns_first_free_candidate(self, is_taken, sequential_candidates):
        """No collisions means the first candidate wins."""
        generator = CodeGenerator(is_taken, candidate_factory=sequential_candidates)

        assert await generator.generate("Anna") == "ANNA0001"
        assert generator.attempts_made == 1

    @pytest.mark.asyncio
    async def test_retries_on_collision(self, taken_codes, is_taken, sequential_candidates):
        """Taken candidates are skipped."""
        taken_codes.update({"ANNA0001", "ANNA0002"})
        generator = CodeGenerator(is_taken, candidate_factory=sequential_candidates)

        assert await generator.generate("Anna") == "ANNA0003"
        assert generator.attempts_made == 3

    @pytest.mark.asyncio
    async def test_exhausted_after_max_attempts(self, is_taken, sequential_candidates):
        """Collision on every attempt raises CodeGenerationExhausted."""
        async def always_taken(code: str) -> bool:
            return True

        generator = CodeGenerator(
            always_taken, max_attempts=3, candidate_factory=sequential_candidates
        )

        with pytest.raises(CodeGenerationExhausted):
            await generator.generate("Anna")
        assert generator.attempts_made == 3

    @pytest.mark.asyncio
    async def test_budget_shared_across_calls(self, is_taken, sequential_candidates):
        """A code lost at insert time still counts against the budget."""
        generator = CodeGenerator(
            is_taken, max_attempts=2, candidate_factory=sequential_candidates
        )

        await generator.generate("Anna")
        await generator.generate("Anna")

        with pytest.raises(CodeGenerationExhausted):
            await generator.generate("Anna")


class TestBuildReferralLink:
    """Tests for build_referral_link."""

    def test_link_format(self):
        """Link is base URL + /signup?ref= + code."""
        assert build_referral_link("https://example.com", "ANNA1234") == (
            "https://example.com/signup?ref=ANNA1234"
        )

    def test_trailing_slash_removed(self):
        """No double slash when the base URL ends with one."""
        assert build_referral_link("https://example.com/", "ANNA1234") == (
            "https://example.com/signup?ref=ANNA1234"
        )
