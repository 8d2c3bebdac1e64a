"""Tests for deduplication and the property loader."""

import pandas as pd
import pytest

from realty_portal.database.crud import PropertyListingCRUD
from realty_portal.etl.deduplication import DeduplicationEngine
from realty_portal.etl.load import PropertyLoader


def listing_row(external_id, title="Studio in JLT", **fields):
    row = {"external_id": external_id, "title": title, "source": "test", "purpose": "for-rent"}
    row.update(fields)
    return row


class TestPropertyLoader:
    """Tests for PropertyLoader."""

    def test_duplicate_insert_stores_one_row(self, db_session):
        loader = PropertyLoader(db_session)

        first = loader.save_listing(listing_row("tg_dubai_1"))
        second = loader.save_listing(listing_row("tg_dubai_1", title="Edited title"))

        assert first is not None
        assert second is None
        assert PropertyListingCRUD.count(db_session) == 1
        assert PropertyListingCRUD.get_by_external_id(db_session, "tg_dubai_1").title == "Studio in JLT"

    def test_export_to_csv(self, db_session, tmp_path):
        loader = PropertyLoader(db_session, output_dir=str(tmp_path))
        loader.save_listing(listing_row("a", price=45000.0))
        loader.save_listing(listing_row("b", price=60000.0))

        path = loader.export_to_csv("listings")

        assert path.endswith("listings.csv")
        df = pd.read_csv(path)
        assert list(df["external_id"]) == ["a", "b"]
        assert "district" in df.columns

    def test_export_to_json(self, db_session, tmp_path):
        loader = PropertyLoader(db_session, output_dir=str(tmp_path))
        loader.save_listing(listing_row("a"))

        path = loader.export_to_json()

        df = pd.read_json(path)
        assert len(df) == 1


class TestDeduplicationEngine:
    """Tests for DeduplicationEngine."""

    def test_is_duplicate(self, db_session):
        PropertyLoader(db_session).save_listing(listing_row("pf_42"))
        engine = DeduplicationEngine(db_session)

        assert engine.is_duplicate("pf_42") is True
        assert engine.is_duplicate("pf_43") is False
        assert engine.is_duplicate("") is False
        assert engine.is_duplicate("pf_42", DeduplicationEngine.SCRAPED) is False

    def test_unknown_table(self, db_session):
        with pytest.raises(ValueError):
            DeduplicationEngine(db_session).is_duplicate("x", "listings_v2")

    def test_find_duplicates_in_batch(self, db_session):
        records = [
            {"external_id": "a"},
            {"external_id": "b"},
            {"external_id": "a"},
            {"external_id": None},
            {"external_id": None},
        ]

        unique, removed = DeduplicationEngine(db_session).find_duplicates_in_batch(records)

        assert removed == 1
        assert len(unique) == 4
