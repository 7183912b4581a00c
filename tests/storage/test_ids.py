"""Tests for numeric id <-> ObjectId translation."""

import pytest
from bson import ObjectId

from quickbite.core.exceptions import IdentifierError
from quickbite.storage.ids import (
    MAX_NUMERIC_ID,
    is_minted,
    numeric_id_for,
    object_id_for,
    try_object_id_for,
)


class TestObjectIdFor:
    def test_small_ids_are_left_padded(self):
        assert str(object_id_for(1)) == "0" * 23 + "1"
        assert str(object_id_for(255)) == "0" * 22 + "ff"

    @pytest.mark.parametrize("numeric_id", [1, 42, 1_000_000, 2**40, MAX_NUMERIC_ID])
    def test_translation_is_reversible(self, numeric_id):
        assert numeric_id_for(object_id_for(numeric_id)) == numeric_id

    def test_distinct_ids_never_collide(self):
        # ids sharing their low hex digits must still map apart
        assert object_id_for(0x1000001) != object_id_for(0x2000001)

    @pytest.mark.parametrize("numeric_id", [0, -1, MAX_NUMERIC_ID + 1])
    def test_out_of_range_rejected(self, numeric_id):
        with pytest.raises(IdentifierError):
            object_id_for(numeric_id)

    @pytest.mark.parametrize("numeric_id", ["1", 1.0, True, None])
    def test_non_integers_rejected(self, numeric_id):
        with pytest.raises(IdentifierError):
            object_id_for(numeric_id)

    def test_try_object_id_for(self):
        assert try_object_id_for(7) == object_id_for(7)
        assert try_object_id_for(0) is None


class TestNumericIdFor:
    def test_accepts_hex_strings(self):
        assert numeric_id_for("0" * 22 + "2a") == 42

    def test_driver_generated_ids_rejected(self):
        with pytest.raises(IdentifierError, match="not minted"):
            numeric_id_for(ObjectId())

    def test_zero_object_id_rejected(self):
        with pytest.raises(IdentifierError):
            numeric_id_for(ObjectId("0" * 24))

    @pytest.mark.parametrize("value", ["not-an-id", "abc", None])
    def test_malformed_values_rejected(self, value):
        with pytest.raises(IdentifierError):
            numeric_id_for(value)

    def test_is_minted(self):
        assert is_minted(object_id_for(3)) is True
        assert is_minted(ObjectId()) is False
