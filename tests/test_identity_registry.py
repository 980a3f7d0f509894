"""
Unit tests for IdentityRegistry
"""

import pytest
import os
import tempfile

from custodian.errors import NotAuthorized, AlreadyVerified, NotFound
from custodian.services.identity_registry import IdentityRegistry
from custodian.utils.clock import LogicalClock


ADMIN = "ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM"
INSTITUTION = "ST2CY5V39NHDPWSXMW9QDT3HC3GD6Q6XX4CFRK9AG"
OTHER = "ST3NBRSFKX28FQ2ZJ1MAKX58HKHSDGNV5YC7TZ9JZ"


class TestIdentityRegistry:
    """Test suite for IdentityRegistry"""

    @pytest.fixture
    def temp_db(self):
        """Create a temporary database for testing"""
        fd, path = tempfile.mkstemp(suffix='.db')
        os.close(fd)
        yield path
        # Cleanup
        if os.path.exists(path):
            os.unlink(path)

    @pytest.fixture
    def clock(self):
        return LogicalClock(123)

    @pytest.fixture
    def registry(self, temp_db, clock):
        """Create IdentityRegistry instance with temporary database"""
        return IdentityRegistry(admin=ADMIN, db_path=temp_db, clock=clock)

    @pytest.mark.asyncio
    async def test_verify_institution_success(self, registry):
        """Test successful verification"""
        result = await registry.verify(ADMIN, INSTITUTION, "Test Institution", 2)
        assert result is True

        details = await registry.get_details(INSTITUTION)
        assert details is not None
        assert details.name == "Test Institution"
        assert details.verification_level == 2
        assert details.verification_date == 123
        assert details.active is True

    @pytest.mark.asyncio
    async def test_verify_requires_admin(self, registry):
        with pytest.raises(NotAuthorized) as exc_info:
            await registry.verify(OTHER, INSTITUTION, "Test Institution", 2)

        assert exc_info.value.code == 100
        assert await registry.get_details(INSTITUTION) is None

    @pytest.mark.asyncio
    async def test_verify_twice_fails_and_keeps_first_record(self, registry, clock):
        """Verification is not idempotent and the stored record is unchanged"""
        await registry.verify(ADMIN, INSTITUTION, "Test Institution", 2)
        first = await registry.get_details(INSTITUTION)

        clock.advance(10)
        with pytest.raises(AlreadyVerified) as exc_info:
            await registry.verify(ADMIN, INSTITUTION, "Test Institution Updated", 3)

        assert exc_info.value.code == 101
        assert await registry.get_details(INSTITUTION) == first

    @pytest.mark.asyncio
    async def test_not_authorized_checked_before_already_verified(self, registry):
        await registry.verify(ADMIN, INSTITUTION, "Test Institution", 2)

        with pytest.raises(NotAuthorized):
            await registry.verify(OTHER, INSTITUTION, "Test Institution", 2)

    @pytest.mark.asyncio
    async def test_revoke_verification(self, registry):
        """Test revocation keeps the record with active=False"""
        await registry.verify(ADMIN, INSTITUTION, "Test Institution", 2)

        result = await registry.revoke(ADMIN, INSTITUTION)
        assert result is True

        details = await registry.get_details(INSTITUTION)
        assert details is not None
        assert details.active is False
        assert details.name == "Test Institution"

    @pytest.mark.asyncio
    async def test_revoke_unknown_institution(self, registry):
        with pytest.raises(NotFound) as exc_info:
            await registry.revoke(ADMIN, OTHER)
        assert exc_info.value.code == 102

    @pytest.mark.asyncio
    async def test_revoke_requires_admin(self, registry):
        await registry.verify(ADMIN, INSTITUTION, "Test Institution", 2)

        with pytest.raises(NotAuthorized):
            await registry.revoke(OTHER, INSTITUTION)
        assert await registry.is_verified(INSTITUTION) is True

    @pytest.mark.asyncio
    async def test_reverification_after_revoke_is_rejected(self, registry):
        await registry.verify(ADMIN, INSTITUTION, "Test Institution", 2)
        await registry.revoke(ADMIN, INSTITUTION)

        with pytest.raises(AlreadyVerified):
            await registry.verify(ADMIN, INSTITUTION, "Test Institution", 2)

    @pytest.mark.asyncio
    async def test_is_verified(self, registry):
        """Test verification status follows the active flag"""
        await registry.verify(ADMIN, INSTITUTION, "Test Institution", 2)
        assert await registry.is_verified(INSTITUTION) is True

        await registry.revoke(ADMIN, INSTITUTION)
        assert await registry.is_verified(INSTITUTION) is False

    @pytest.mark.asyncio
    async def test_is_verified_unknown_institution(self, registry):
        with pytest.raises(NotFound):
            await registry.is_verified(OTHER)

    @pytest.mark.asyncio
    async def test_get_details_unknown_returns_none(self, registry):
        assert await registry.get_details(OTHER) is None

    @pytest.mark.asyncio
    async def test_transfer_admin(self, registry):
        """Test admin rights transfer"""
        result = await registry.transfer_admin(ADMIN, OTHER)
        assert result is True
        assert await registry.get_admin() == OTHER

        # Old admin lost its rights
        with pytest.raises(NotAuthorized):
            await registry.verify(ADMIN, INSTITUTION, "Test Institution", 2)

        await registry.verify(OTHER, INSTITUTION, "Test Institution", 2)
        assert await registry.is_verified(INSTITUTION) is True

    @pytest.mark.asyncio
    async def test_transfer_admin_requires_admin(self, registry):
        with pytest.raises(NotAuthorized):
            await registry.transfer_admin(OTHER, OTHER)
        assert await registry.is_admin(ADMIN) is True

    @pytest.mark.asyncio
    async def test_state_persists_across_instances(self, registry, temp_db, clock):
        """A reopened registry keeps its records and its transferred admin"""
        await registry.verify(ADMIN, INSTITUTION, "Test Institution", 2)
        await registry.transfer_admin(ADMIN, OTHER)

        reopened = IdentityRegistry(admin=ADMIN, db_path=temp_db, clock=clock)
        assert await reopened.get_admin() == OTHER
        assert await reopened.is_verified(INSTITUTION) is True

    def test_empty_admin_rejected(self, temp_db):
        with pytest.raises(ValueError, match="Admin principal cannot be empty"):
            IdentityRegistry(admin="", db_path=temp_db)


@pytest.mark.asyncio
async def test_default_clock_is_unix_seconds(tmp_path):
    registry = IdentityRegistry(admin=ADMIN, db_path=str(tmp_path / "identity.db"))
    await registry.verify(ADMIN, INSTITUTION, "Test Institution", 2)

    details = await registry.get_details(INSTITUTION)
    assert details.verification_date > 1_600_000_000
