"""
Unit tests for ProvenanceRegistry - usage records and anonymized datasets
"""

import asyncio
import pytest

from custodian.errors import CategoryNotFound, DatasetNotFound
from custodian.services.category_registry import (
    CategoryRegistry, USAGE_TYPES, ANONYMIZATION_METHODS
)
from custodian.services.provenance_registry import (
    ProvenanceRegistry, USAGE_COUNTER, ANONYMIZED_COUNTER
)
from custodian.utils.clock import LogicalClock
from custodian.utils.hashing import fingerprint


ADMIN = "ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM"
USER = "ST2CY5V39NHDPWSXMW9QDT3HC3GD6Q6XX4CFRK9AG"

ORIGINAL_HASH = fingerprint("original dataset")
ANONYMIZED_HASH = fingerprint("anonymized dataset")


class TestProvenanceRegistry:
    """Test suite for the provenance logs"""

    @pytest.fixture
    def clock(self):
        return LogicalClock(123)

    @pytest.fixture
    def usage_types(self, tmp_path):
        return CategoryRegistry(ADMIN, kind=USAGE_TYPES, db_path=str(tmp_path / "usage_types.db"))

    @pytest.fixture
    def methods(self, tmp_path):
        return CategoryRegistry(ADMIN, kind=ANONYMIZATION_METHODS, db_path=str(tmp_path / "methods.db"))

    @pytest.fixture
    def registry(self, tmp_path, usage_types, methods, clock):
        return ProvenanceRegistry(
            ADMIN, usage_types, methods, db_path=str(tmp_path / "provenance.db"), clock=clock
        )

    @pytest.mark.asyncio
    async def test_record_usage(self, registry, usage_types):
        """Test recording usage returns sequential ids and stores the record"""
        await usage_types.register(ADMIN, 1, "Research", "Academic research")

        record_id = await registry.record_usage(USER, 1, 1, "notes")
        assert record_id == 1

        record = await registry.get_record(1)
        assert record.dataset_id == 1
        assert record.user == USER
        assert record.usage_type == 1
        assert record.timestamp == 123
        assert record.details == "notes"

    @pytest.mark.asyncio
    async def test_record_usage_unknown_type(self, registry, usage_types):
        """An unknown usage type fails and does not advance the counter"""
        with pytest.raises(CategoryNotFound) as exc_info:
            await registry.record_usage(USER, 1, 999, "notes")
        assert exc_info.value.code == 101
        assert await registry.get_counter(USAGE_COUNTER) == 0

        await usage_types.register(ADMIN, 1, "Research", "Academic research")
        assert await registry.record_usage(USER, 1, 1, "notes") == 1

    @pytest.mark.asyncio
    async def test_record_usage_with_deactivated_type(self, registry, usage_types):
        """Deactivated usage types remain valid references"""
        await usage_types.register(ADMIN, 1, "Research", "Academic research")
        await usage_types.deactivate(ADMIN, 1)

        assert await registry.record_usage(USER, 1, 1, "notes") == 1

    @pytest.mark.asyncio
    async def test_register_anonymized_dataset_with_deactivated_method(self, registry, methods):
        """Deactivated anonymization methods remain valid references"""
        await methods.register(ADMIN, 1, "Differential Privacy", "Adds noise to data")
        await methods.deactivate(ADMIN, 1)

        assert await registry.register_anonymized_dataset(USER, ORIGINAL_HASH, ANONYMIZED_HASH, 1) == 1
        assert (await registry.get_anonymized_record(1)).method_id == 1

    @pytest.mark.asyncio
    async def test_get_counter_unknown_name(self, registry):
        with pytest.raises(ValueError, match="Unknown counter: bogus"):
            await registry.get_counter("bogus")

    @pytest.mark.asyncio
    async def test_out_of_range_dataset_id(self, registry, usage_types):
        await usage_types.register(ADMIN, 1, "Research", "Academic research")

        with pytest.raises(ValueError, match="Invalid usage record"):
            await registry.record_usage(USER, 2 ** 64, 1, "notes")
        assert await registry.get_counter(USAGE_COUNTER) == 0

        # An unstorable type id is simply unknown
        with pytest.raises(CategoryNotFound):
            await registry.record_usage(USER, 1, 2 ** 64, "notes")
        assert await registry.get_record(2 ** 64) is None
        assert await registry.get_anonymized_record(2 ** 64) is None

    @pytest.mark.asyncio
    async def test_ids_are_sequential_and_counters_independent(self, registry, usage_types, methods):
        """Both logs count 1, 2, 3 on their own, even when interleaved"""
        await usage_types.register(ADMIN, 1, "Research", "Academic research")
        await methods.register(ADMIN, 1, "Differential Privacy", "Adds noise to data")

        ids = []
        for _ in range(3):
            ids.append(await registry.record_usage(USER, 1, 1, "notes"))
            ids.append(await registry.register_anonymized_dataset(USER, ORIGINAL_HASH, ANONYMIZED_HASH, 1))

        assert ids == [1, 1, 2, 2, 3, 3]
        assert await registry.get_counter(USAGE_COUNTER) == 3
        assert await registry.get_counter(ANONYMIZED_COUNTER) == 3

    @pytest.mark.asyncio
    async def test_concurrent_records_get_unique_ids(self, registry, usage_types):
        await usage_types.register(ADMIN, 1, "Research", "Academic research")

        ids = await asyncio.gather(*[
            registry.record_usage(USER, 1, 1, f"run {i}") for i in range(10)
        ])

        assert sorted(ids) == list(range(1, 11))

    @pytest.mark.asyncio
    async def test_get_dataset_usage(self, registry, usage_types):
        """A record is returned only for the dataset it was recorded against"""
        await usage_types.register(ADMIN, 1, "Research", "Academic research")
        await registry.record_usage(USER, 1, 1, "notes")

        record = await registry.get_dataset_usage(1, 1)
        assert record is not None
        assert record.details == "notes"

        assert await registry.get_dataset_usage(2, 1) is None
        assert await registry.get_dataset_usage(1, 2) is None

    @pytest.mark.asyncio
    async def test_get_record_unknown(self, registry):
        assert await registry.get_record(1) is None
        assert await registry.get_anonymized_record(1) is None

    @pytest.mark.asyncio
    async def test_register_anonymized_dataset(self, registry, methods):
        """Test registering an anonymized dataset"""
        await methods.register(ADMIN, 1, "Differential Privacy", "Adds noise to data")

        record_id = await registry.register_anonymized_dataset(USER, ORIGINAL_HASH, ANONYMIZED_HASH, 1)
        assert record_id == 1

        record = await registry.get_anonymized_record(1)
        assert record.original_hash == ORIGINAL_HASH
        assert record.anonymized_hash == ANONYMIZED_HASH
        assert record.method_id == 1
        assert record.anonymizer == USER
        assert record.timestamp == 123

    @pytest.mark.asyncio
    async def test_register_anonymized_dataset_unknown_method(self, registry):
        with pytest.raises(CategoryNotFound) as exc_info:
            await registry.register_anonymized_dataset(USER, ORIGINAL_HASH, ANONYMIZED_HASH, 999)

        assert exc_info.value.code == 101
        assert await registry.get_counter(ANONYMIZED_COUNTER) == 0

    @pytest.mark.asyncio
    async def test_register_anonymized_dataset_rejects_wrong_hash_size(self, registry, methods):
        await methods.register(ADMIN, 1, "Differential Privacy", "Adds noise to data")

        with pytest.raises(ValueError, match="exactly 32 bytes"):
            await registry.register_anonymized_dataset(USER, b"short", ANONYMIZED_HASH, 1)
        assert await registry.get_counter(ANONYMIZED_COUNTER) == 0

    @pytest.mark.asyncio
    async def test_verify_anonymization(self, registry, methods):
        """Only the exact anonymized hash verifies"""
        await methods.register(ADMIN, 1, "Differential Privacy", "Adds noise to data")
        await registry.register_anonymized_dataset(USER, ORIGINAL_HASH, ANONYMIZED_HASH, 1)

        assert await registry.verify_anonymization(1, ANONYMIZED_HASH) is True
        assert await registry.verify_anonymization(1, fingerprint("wrong")) is False
        # The original hash is not accepted as proof
        assert await registry.verify_anonymization(1, ORIGINAL_HASH) is False

    @pytest.mark.asyncio
    async def test_verify_anonymization_unknown_dataset(self, registry):
        with pytest.raises(DatasetNotFound) as exc_info:
            await registry.verify_anonymization(999, ANONYMIZED_HASH)
        assert exc_info.value.code == 102

    @pytest.mark.asyncio
    async def test_counters_persist_across_instances(self, registry, tmp_path, usage_types, methods, clock):
        await usage_types.register(ADMIN, 1, "Research", "Academic research")
        await registry.record_usage(USER, 1, 1, "first")

        reopened = ProvenanceRegistry(
            ADMIN, usage_types, methods, db_path=str(tmp_path / "provenance.db"), clock=clock
        )
        assert await reopened.record_usage(USER, 1, 1, "second") == 2
