"""
Unit tests for request and response envelopes.

Tests cover:
- Identity flattening and optional payload fields
- Data/Index helpers
- MSet alignment
- Response parsing, records and opt-in error raising
"""

import pytest

from sdk.datastore_sdk.errors import ApplicationError, ResponseDecodeError
from sdk.datastore_sdk.models import (
    AllRequest,
    CountRankedListRequest,
    Data,
    DeleteRequest,
    Format,
    GetRequest,
    IncreaseCounterRequest,
    Index,
    InsertRequest,
    ListRequest,
    MGetRequest,
    MSetRequest,
    Page,
    PurgeRequest,
    Response,
    ScoreRange,
    SetRequest,
    StoreIdentity,
)
from sdk.datastore_sdk.query import FilterBuilder, SortBuilder
from sdk.datastore_sdk.schema import ValueKind
from sdk.datastore_sdk.value import value_of


@pytest.fixture
def identity():
    """Identity of a games collection."""
    return StoreIdentity(id="site", namespace="studio", name="games", version="v1", task="cms")


IDENTITY_BODY = {
    "id": "site",
    "namespace": "studio",
    "name": "games",
    "version": "v1",
    "task": "cms",
}


class TestHelpers:
    """Tests for Data and Index."""

    def test_data_record_round_trip(self):
        """Records convert to structured data and back."""
        record = {"title": "Skyfall", "rating": 4.5, "tags": ["rpg", "indie"], "live": True}
        data = Data.from_record(record)

        assert {v.name for v in data.structured} == set(record)
        assert data.to_record() == record

    def test_data_wire(self):
        """serialized is omitted unless set."""
        assert Data.from_record({}).to_dict() == {"structured": []}
        assert Data(serialized="abc").to_dict() == {"structured": [], "serialized": "abc"}

    def test_data_from_dict_child_lists(self):
        """Missing structured is empty; a wrong-typed one is rejected."""
        assert Data.from_dict({}).structured == ()
        assert Data.from_dict({"structured": None, "serialized": "abc"}).serialized == "abc"
        for bad in ("", {}, 0):
            with pytest.raises(ResponseDecodeError):
                Data.from_dict({"structured": bad})

    def test_index_of(self):
        """Index.of keeps keyword order and encodes values."""
        index = Index.of(slug="skyfall", season=2)

        assert index.fields == ("slug", "season")
        assert index.values == (value_of("skyfall"), value_of(2))
        assert index.to_dict()["fields"] == ["slug", "season"]

    def test_index_rejects_misaligned(self):
        """Fields and values must be parallel."""
        with pytest.raises(ValueError):
            Index(fields=("a", "b"), values=(value_of(1),))


class TestRequests:
    """Tests for request envelopes."""

    def test_collection_requests(self, identity):
        """all and purge carry only the identity."""
        assert AllRequest(identity).to_dict() == IDENTITY_BODY
        assert PurgeRequest(identity).to_dict() == IDENTITY_BODY
        assert AllRequest.operation == "all"
        assert PurgeRequest.operation == "purge"

    def test_format_included_when_set(self, identity):
        """format omits unset flags."""
        body = AllRequest(identity, format=Format(structured=True)).to_dict()
        assert body["format"] == {"structured": True}

    def test_insert(self, identity):
        """insert carries data, batch and upsert."""
        body = InsertRequest(
            identity,
            data=Data.from_record({"a": 1}),
            batch=[Data.from_record({"b": 2})],
            upsert=True,
        ).to_dict()

        assert body["data"]["structured"][0]["name"] == "a"
        assert len(body["batch"]) == 1
        assert body["upsert"] is True

    def test_point_requests(self, identity):
        """get/set/delete carry the index and optional previous."""
        index = Index.of(slug="skyfall")
        previous = Data.from_record({"title": "Old"})

        get_body = GetRequest(identity, index=index).to_dict()
        set_body = SetRequest(
            identity, index=index, data=Data.from_record({"title": "New"}), previous=previous
        ).to_dict()
        delete_body = DeleteRequest(identity, index=index).to_dict()

        assert get_body == {**IDENTITY_BODY, "index": index.to_dict()}
        assert set_body["previous"] == previous.to_dict()
        assert "upsert" not in set_body
        assert "previous" not in delete_body
        assert SetRequest.operation == "set"
        assert DeleteRequest.operation == "delete"

    def test_mget(self, identity):
        """mget always carries the index list."""
        assert MGetRequest(identity).to_dict()["indexes"] == []
        assert MGetRequest.operation == "mget"

    def test_mset_aligned(self, identity):
        """Aligned lists serialize positionally."""
        req = MSetRequest(
            identity,
            indexes=[Index.of(slug="a"), Index.of(slug="b")],
            data=[Data.from_record({"n": 1}), Data.from_record({"n": 2})],
        )
        body = req.to_dict()

        assert len(body["indexes"]) == len(body["data"]) == 2
        assert body["previous"] == []

    def test_mset_rejects_misaligned_data(self, identity):
        """indexes and data must match in length."""
        with pytest.raises(ValueError):
            MSetRequest(identity, indexes=[Index.of(slug="a")], data=[])

    def test_mset_rejects_misaligned_previous(self, identity):
        """previous, when given, must match in length."""
        with pytest.raises(ValueError):
            MSetRequest(
                identity,
                indexes=[Index.of(slug="a")],
                data=[Data.from_record({"n": 1})],
                previous=[Data(), Data()],
            )

    def test_list_unfiltered(self, identity):
        """unfiltered() sends the empty filter."""
        body = ListRequest.unfiltered(identity, paginate=Page(number=1, size=20)).to_dict()

        assert body["filter"] == {"simples": [], "multiples": [], "groups": [], "unwinds": []}
        assert body["paginate"] == {"number": 1, "size": 20}
        assert "sort" not in body

    def test_list_with_filter_and_sort(self, identity):
        """list carries filter and sort."""
        body = ListRequest(
            identity,
            filter=FilterBuilder().equal("status", "open").build(),
            sort=SortBuilder().descending("created_at").build(),
        ).to_dict()

        assert body["filter"]["simples"][0]["field"] == "status"
        assert body["sort"] == {"orders": [{"symbol": 2, "field": "created_at"}]}

    def test_counter_and_ranked_list(self, identity):
        """Counter carries delta, ranked list carries a camelCase range."""
        counter = IncreaseCounterRequest(identity, index=Index.of(slug="a"), delta=3).to_dict()
        ranked = CountRankedListRequest(
            identity, range=ScoreRange(score_min=0, score_max=10, exclude_max=True)
        ).to_dict()

        assert counter["delta"] == 3
        assert ranked["range"] == {
            "scoreMin": 0,
            "scoreMax": 10,
            "excludeMin": False,
            "excludeMax": True,
        }
        assert IncreaseCounterRequest.operation == "increase_counter"
        assert CountRankedListRequest.operation == "count_ranked_list"


class TestResponse:
    """Tests for Response parsing."""

    def test_parse_full_envelope(self):
        """All envelope fields are parsed."""
        body = {
            "code": 0,
            "message": "ok",
            "trace": {"id": "t-1", "env": "prod", "lane": "a", "caller": "cms", "duration": "3ms"},
            "data": {
                "values": [Data.from_record({"title": "Skyfall", "tags": ["a"]}).to_dict()],
                "page": {"number": 1, "size": 10, "total": "42"},
            },
        }
        response = Response.from_dict(body)

        assert response.ok
        assert response.trace.id == "t-1"
        assert response.page == Page(number=1, size=10, total=42)
        assert response.records() == [{"title": "Skyfall", "tags": ["a"]}]
        assert response.raw == body

    def test_empty_envelope(self):
        """An empty body is a successful response without data."""
        response = Response.from_dict({})
        assert response.ok
        assert response.records() == []
        assert response.page is None
        assert response.raise_for_error() is response

    def test_null_values_list(self):
        """A null values list is an empty result."""
        response = Response.from_dict({"data": {"values": None, "page": {"number": 2, "size": 5}}})
        assert response.records() == []
        assert response.page == Page(number=2, size=5)

    def test_application_error_not_raised_on_parse(self):
        """Errors in the envelope are only raised on request."""
        response = Response.from_dict(
            {"code": 409, "error": "version conflict", "trace": {"id": "t-9"}}
        )
        assert not response.ok

        with pytest.raises(ApplicationError) as exc_info:
            response.raise_for_error()
        assert exc_info.value.status == 409
        assert exc_info.value.trace_id == "t-9"
        assert "version conflict" in str(exc_info.value)

    @pytest.mark.parametrize(
        "body",
        [
            [],
            "text",
            {"code": "abc"},
            {"message": 3},
            {"data": []},
            {"data": {"values": {}}},
            {"data": {"values": ""}},
            {"data": {"values": False}},
            {"data": {"values": [{"structured": ""}]}},
            {"data": {"values": [{"structured": {}}]}},
            {"data": {"values": [{"structured": [{"type": 0}]}]}},
            {"data": {"page": {"number": 1, "size": float("inf")}}},
            {"code": float("nan")},
            {"code": float("inf")},
            {"code": 1.5},
            {"trace": "t-1"},
        ],
    )
    def test_malformed_envelope(self, body):
        """Shape mismatches raise ResponseDecodeError."""
        with pytest.raises(ResponseDecodeError):
            Response.from_dict(body)

    def test_nested_record_field(self):
        """Object fields decode as dicts."""
        data = Data(structured=(value_of({"id": "u-1"}, "owner"),))
        assert data.structured[0].kind == ValueKind.OBJECT
        assert data.to_record() == {"owner": {"id": "u-1"}}
