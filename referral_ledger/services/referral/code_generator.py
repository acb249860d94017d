"""
Referral code generator.

Builds short, human-shareable codes from a seed (usually the first name)
and a random digit suffix, retrying on collision.
"""

import secrets
import unicodedata
from collections.abc import Awaitable, Callable

from loguru import logger

from referral_ledger.config.constants import (
    REFERRAL_CODE_FALLBACK_PREFIX,
    REFERRAL_CODE_MAX_ATTEMPTS,
    REFERRAL_CODE_MIN_LENGTH,
    REFERRAL_CODE_PREFIX_LENGTH,
    REFERRAL_CODE_SUFFIX_LENGTH,
    REFERRAL_LINK_PATH,
    REFERRAL_LINK_QUERY_PARAM,
)
from referral_ledger.utils.exceptions import CodeGenerationExhausted


def code_prefix(seed: str | None) -> str:
    """
    Derive the code prefix from a seed.

    Accents are stripped and anything outside [A-Z0-9] dropped.

    Examples:
        >>> code_prefix("José-María")
        'JOSEMA'
        >>> code_prefix("李")
        'USER'
    """
    normalized = unicodedata.normalize("NFKD", seed or "")
    cleaned = "".join(
        ch for ch in normalized if ch.isascii() and ch.isalnum()
    ).upper()
    return cleaned[:REFERRAL_CODE_PREFIX_LENGTH] or REFERRAL_CODE_FALLBACK_PREFIX


def random_suffix(length: int) -> str:
    """Random digit string of the given length."""
    return "".join(secrets.choice("0123456789") for _ in range(length))


def build_candidate(prefix: str) -> str:
    """One code candidate for a prefix; always at least the minimum length."""
    length = max(REFERRAL_CODE_SUFFIX_LENGTH, REFERRAL_CODE_MIN_LENGTH - len(prefix))
    return prefix + random_suffix(length)


def build_referral_link(base_url: str, code: str) -> str:
    """
    Build the shareable signup link for a code.

    Examples:
        >>> build_referral_link("https://example.com/", "ANNA1234")
        'https://example.com/signup?ref=ANNA1234'
    """
    return f"{base_url.rstrip('/')}{REFERRAL_LINK_PATH}?{REFERRAL_LINK_QUERY_PARAM}={code}"


class CodeGenerator:
    """
    Collision-checked code generator.

    The uniqueness check is injected so the generator stays storage-agnostic;
    the unique constraint on referrals.referral_code remains the final word.
    One instance spends a single attempt budget across repeated generate()
    calls, so a code lost to a concurrent insert still counts.
    """

    def __init__(
        self,
        is_taken: Callable[[str], Awaitable[bool]],
        max_attempts: int = REFERRAL_CODE_MAX_ATTEMPTS,
        candidate_factory: Callable[[str], str] = build_candidate,
    ) -> None:
        """
        Initialize code generator.

        Args:
            is_taken: Async predicate, True if a code already exists
            max_attempts: Candidates to try before giving up
            candidate_factory: Builds a candidate from a prefix
        """
        self.is_taken = is_taken
        self.max_attempts = max_attempts
        self.candidate_factory = candidate_factory
        self.attempts_made = 0

    async def generate(self, seed: str | None) -> str:
        """
        Generate an unused referral code.

        Args:
            seed: Seed text, typically the user's first name

        Returns:
            Code that was free at check time

        Raises:
            CodeGenerationExhausted: Every candidate collided
        """
        prefix = code_prefix(seed)

        while self.attempts_made < self.max_attempts:
            self.attempts_made += 1
            candidate = self.candidate_factory(prefix)
            if not await self.is_taken(candidate):
                return candidate
            logger.bind(prefix=prefix, attempt=self.attempts_made).debug(
                f"Referral code collision on attempt {self.attempts_made}"
            )

        raise CodeGenerationExhausted(
            f"No free referral code for prefix {prefix} "
            f"after {self.max_attempts} attempts"
        )
