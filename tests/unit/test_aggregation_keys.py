import pytest

from intake.aggregation.keys import (
    CompositeKey,
    document_key,
    file_key,
    file_type_prefix,
    partition_key,
    profile_key,
)


class TestKeys:
    def test_partition_joins_tenant_and_submission(self) -> None:
        assert partition_key("acme", "sub-1") == "acme#sub-1"

    def test_profile_key(self) -> None:
        assert profile_key("acme", "sub-1") == CompositeKey("acme#sub-1", "PROFILE")

    def test_document_key(self) -> None:
        assert document_key("acme", "sub-1", "INVOICE") == CompositeKey(
            "acme#sub-1", "DOCUMENT#INVOICE"
        )

    def test_file_key_is_zero_padded_under_type_prefix(self) -> None:
        key = file_key("acme", "sub-1", "INVOICE", 7)
        assert key == CompositeKey("acme#sub-1", "FILE#INVOICE#000007")
        assert key.sort.startswith(file_type_prefix("INVOICE"))

    def test_file_keys_sort_by_index(self) -> None:
        sorts = [file_key("a", "s", "OTHER", i).sort for i in (10, 2, 1)]
        assert sorted(sorts) == [file_key("a", "s", "OTHER", i).sort for i in (1, 2, 10)]

    def test_type_prefix_does_not_match_longer_type_names(self) -> None:
        assert not file_key("a", "s", "INVOICE", 0).sort.startswith(file_type_prefix("INV"))

    def test_keys_differ_per_record_kind(self) -> None:
        keys = {
            profile_key("a", "s"),
            document_key("a", "s", "INVOICE"),
            file_key("a", "s", "INVOICE", 0),
        }
        assert len(keys) == 3

    def test_negative_index_rejected(self) -> None:
        with pytest.raises(ValueError):
            file_key("a", "s", "INVOICE", -1)
