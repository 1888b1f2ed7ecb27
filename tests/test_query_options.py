"""
Tests for QueryOptions validation.
"""

import pytest
from pydantic import ValidationError

from pgrepo.schemas.query import QueryOptions, SortDirection


class TestSortDirection:
    @pytest.mark.parametrize("token", ["asc", "ASC", "ascending", " Ascending "])
    def test_ascending_tokens(self, token):
        assert SortDirection(token) is SortDirection.ASC

    @pytest.mark.parametrize("token", ["desc", "DESC", "descending"])
    def test_descending_tokens(self, token):
        assert SortDirection(token) is SortDirection.DESC

    def test_sql_rendering(self):
        assert SortDirection.ASC.sql == "ASC"
        assert SortDirection.DESC.sql == "DESC"

    def test_unknown_token(self):
        with pytest.raises(ValueError):
            SortDirection("sideways")


class TestQueryOptions:
    def test_defaults(self):
        options = QueryOptions()

        assert options.where == {}
        assert options.order_by == {}
        assert options.limit is None
        assert options.offset is None
        assert options.select is None

    def test_order_by_normalized(self):
        options = QueryOptions(order_by={"name": "DESC", "id": "ascending"})
        assert options.order_by == {"name": SortDirection.DESC, "id": SortDirection.ASC}

    def test_order_by_camel_case_alias(self):
        options = QueryOptions.model_validate({"orderBy": {"name": "desc"}})
        assert options.order_by == {"name": SortDirection.DESC}

    def test_injection_in_direction_rejected(self):
        with pytest.raises(ValidationError):
            QueryOptions(order_by={"name": "desc; DROP TABLE users"})

    @pytest.mark.parametrize("limit", [0, -1])
    def test_limit_must_be_positive(self, limit):
        with pytest.raises(ValidationError):
            QueryOptions(limit=limit)

    def test_offset_zero_allowed(self):
        assert QueryOptions(offset=0).offset == 0

    def test_negative_offset_rejected(self):
        with pytest.raises(ValidationError):
            QueryOptions(offset=-1)

    def test_empty_select_rejected(self):
        with pytest.raises(ValidationError):
            QueryOptions(select=[])

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            QueryOptions.model_validate({"wher": {"id": 1}})
