"""Unit tests for RawRecord qualification."""

import pytest

from resobooru.domain.photo.model.value import RawRecord

ASSET_BASE = "https://assets.resonite.com/"


class TestRawRecord:
    def test_parses_api_payload(self):
        record = RawRecord.model_validate(
            {
                "id": "R-1",
                "name": "Photo in TestWorld",
                "tags": ["a", "b"],
                "assetUri": "resdb:///abc.brson",
                "ownerId": "U-owner",
                "recordType": "object",
                "thumbnailUri": "resdb:///thumb.webp",
            }
        )

        assert record.tags == ("a", "b")
        assert record.owner_id == "U-owner"
        assert record.is_photo_candidate

    @pytest.mark.parametrize(
        "overrides",
        [
            {"name": "Screenshot of TestWorld"},
            {"asset_uri": None},
            {"asset_uri": "resdb:///abc.webp"},
            {"record_type": "directory"},
        ],
    )
    def test_non_candidates(self, make_record, overrides):
        assert not make_record(**overrides).is_photo_candidate

    def test_asset_url(self, make_record):
        record = make_record(asset_uri="resdb:///feedbeef.brson")

        assert record.asset_url(ASSET_BASE) == "https://assets.resonite.com/feedbeef"

    def test_asset_url_requires_uri(self, make_record):
        with pytest.raises(ValueError):
            make_record(asset_uri=None).asset_url(ASSET_BASE)
