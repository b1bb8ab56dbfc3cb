"""
Unit tests for short code allocation.
"""

from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import IntegrityError

from common.core.exceptions import ConflictError, InternalError, InvalidAliasError
from common.db.scoped import transaction
from packages.links.models.domain.link import LinkCreateModel
from packages.links.repositories.link_repository import LinkRepository
from packages.links.services.code_allocator import (
    ALIAS_PATTERN,
    CODE_ALPHABET,
    CodeAllocator,
    generate_code,
)


def _insert_for(ip: str = "9.9.9.9"):
    repo = LinkRepository()

    async def insert(code: str):
        return await repo.create(
            LinkCreateModel(code=code, original_url="https://example.com", ip_address=ip)
        )

    return insert


def _sequence(*codes):
    """Code generator that returns ``codes`` in order and records requested lengths."""
    remaining = list(codes)
    lengths = []

    def generator(length: int) -> str:
        lengths.append(length)
        return remaining.pop(0)

    generator.lengths = lengths
    return generator


class TestGenerateCode:
    def test_uses_unambiguous_alphabet(self):
        code = generate_code(200)
        assert len(code) == 200
        assert set(code) <= set(CODE_ALPHABET)
        assert not set("0O1lI") & set(CODE_ALPHABET)

    @pytest.mark.parametrize("alias", ["abc", "my-link_01", "A" * 20])
    def test_alias_pattern_accepts(self, alias):
        assert ALIAS_PATTERN.match(alias)

    @pytest.mark.parametrize("alias", ["ab", "A" * 21, "has space", "emoji✓", "a/b"])
    def test_alias_pattern_rejects(self, alias):
        assert not ALIAS_PATTERN.match(alias)


class TestLengthEscalation:
    def test_length_grows_every_block_of_attempts(self):
        allocator = CodeAllocator(code_length=6, max_attempts=9, attempts_per_length=3)
        assert [allocator.length_for_attempt(i) for i in range(9)] == [
            6, 6, 6, 7, 7, 7, 8, 8, 8,
        ]


@pytest.mark.asyncio
class TestAllocate:
    async def test_allocates_fresh_code(self):
        generator = _sequence("abc234")
        allocator = CodeAllocator(code_generator=generator)

        link = await allocator.allocate(None, _insert_for())

        assert link.code == "abc234"
        assert generator.lengths == [6]

    async def test_retries_taken_codes_and_escalates_length(self):
        insert = _insert_for()
        for code in ("taken1", "taken2"):
            await insert(code)

        generator = _sequence("taken1", "taken2", "fresh77")
        allocator = CodeAllocator(
            code_generator=generator, code_length=6, attempts_per_length=2
        )

        link = await allocator.allocate(None, insert)

        assert link.code == "fresh77"
        assert generator.lengths == [6, 6, 7]

    async def test_insert_collision_rolls_back_only_the_savepoint(self):
        """A code taken between the pre-check and the insert is retried."""
        insert = _insert_for()
        await insert("racy01")

        generator = _sequence("racy01", "calm02")
        allocator = CodeAllocator(code_generator=generator)
        allocator.link_repo.code_exists = AsyncMock(return_value=False)

        async with transaction():
            link = await allocator.allocate(None, insert)

        assert link.code == "calm02"
        assert await LinkRepository().code_exists("racy01")
        assert await LinkRepository().code_exists("calm02")

    async def test_gives_up_after_max_attempts(self):
        insert = _insert_for()
        await insert("dup123")

        allocator = CodeAllocator(
            code_generator=lambda length: "dup123", max_attempts=4
        )

        with pytest.raises(InternalError):
            await allocator.allocate(None, insert)

    async def test_custom_alias(self):
        link = await CodeAllocator().allocate("my-alias", _insert_for())
        assert link.code == "my-alias"

    async def test_invalid_alias(self):
        with pytest.raises(InvalidAliasError) as exc_info:
            await CodeAllocator().allocate("no", _insert_for())
        assert exc_info.value.status_code == 400
        assert exc_info.value.error_code == "invalid_alias"

    async def test_taken_alias_conflicts(self):
        await CodeAllocator().allocate("my-alias", _insert_for())

        with pytest.raises(ConflictError):
            await CodeAllocator().allocate("my-alias", _insert_for("8.8.8.8"))

    async def test_alias_taken_at_insert_time_conflicts(self):
        await CodeAllocator().allocate("my-alias", _insert_for())
        allocator = CodeAllocator()

        with patch.object(allocator.link_repo, "code_exists", AsyncMock(return_value=False)):
            with pytest.raises(ConflictError):
                await allocator.allocate("my-alias", _insert_for("8.8.8.8"))

    async def test_other_integrity_errors_are_not_retried(self, individual_account):
        repo = LinkRepository()
        attempted = []

        async def insert_with_two_owners(code: str):
            attempted.append(code)
            return await repo.create(
                LinkCreateModel(
                    code=code,
                    original_url="https://example.com",
                    user_id=individual_account.user.id,
                    ip_address="9.9.9.9",
                )
            )

        allocator = CodeAllocator(code_generator=_sequence("owner1", "owner2"))

        with pytest.raises(IntegrityError):
            await allocator.allocate(None, insert_with_two_owners)
        assert attempted == ["owner1"]
