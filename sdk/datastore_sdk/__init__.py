"""
Data Store Python SDK - Client library for the generic data store service.

This SDK provides a typed interface to a remote key/document store:
- Structured value codec (Value, encode, decode)
- Filter and sort builders for list queries
- Request/response envelopes for every store operation
- DataStoreClient for talking to the HTTP API

Example:
    >>> from datastore_sdk import DataStoreClient, Data, Index, SetRequest, StoreIdentity
    >>>
    >>> games = StoreIdentity(id="site", namespace="studio", name="games", version="v1", task="cms")
    >>>
    >>> async with DataStoreClient() as store:
    ...     await store.set(
    ...         SetRequest(
    ...             games,
    ...             index=Index.of(slug="skyfall"),
    ...             data=Data.from_record({"title": "Skyfall", "platforms": ["pc", "switch"]}),
    ...             upsert=True,
    ...         )
    ...     )
    ...     response = await store.list(ListRequest.unfiltered(games))
    ...     records = response.raise_for_error().records()

Invariants:
    - Values are immutable and rebuilt for every encode
    - Requests are immutable value objects
    - Application errors are only raised on request (Response.raise_for_error)

Version: 1.0.0
"""

__version__ = "1.0.0"

from .client import DataStoreClient, TrafficReport, get_client, reset_client
from .config import ClientSettings
from .errors import (
    ApplicationError,
    ClientConfigurationError,
    DataStoreConnectionError,
    DataStoreError,
    HttpStatusError,
    RequestTimeoutError,
    ResponseDecodeError,
    ValueCodecError,
)
from .log import configure_logging
from .models import (
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
    Result,
    ScoreRange,
    SetRequest,
    StoreIdentity,
    Trace,
)
from .query import (
    Filter,
    FilterBuilder,
    Group,
    MultiFilter,
    Order,
    SimpleFilter,
    Sort,
    SortBuilder,
    Unwind,
)
from .schema import Direction, MultiSelector, SimpleSelector, ValueKind
from .value import Value, decode, encode, infer_kind, value_of

__all__ = [
    # Version
    "__version__",
    # Wire enumerations
    "ValueKind",
    "SimpleSelector",
    "MultiSelector",
    "Direction",
    # Value codec
    "Value",
    "encode",
    "decode",
    "infer_kind",
    "value_of",
    # Query
    "Filter",
    "FilterBuilder",
    "SimpleFilter",
    "MultiFilter",
    "Group",
    "Unwind",
    "Order",
    "Sort",
    "SortBuilder",
    # Envelopes
    "StoreIdentity",
    "Format",
    "Page",
    "Trace",
    "Data",
    "Index",
    "ScoreRange",
    "Result",
    "AllRequest",
    "InsertRequest",
    "PurgeRequest",
    "GetRequest",
    "SetRequest",
    "DeleteRequest",
    "MGetRequest",
    "MSetRequest",
    "ListRequest",
    "IncreaseCounterRequest",
    "CountRankedListRequest",
    "Response",
    # Client
    "DataStoreClient",
    "TrafficReport",
    "get_client",
    "reset_client",
    # Configuration
    "ClientSettings",
    "configure_logging",
    # Errors
    "DataStoreError",
    "RequestTimeoutError",
    "HttpStatusError",
    "DataStoreConnectionError",
    "ResponseDecodeError",
    "ApplicationError",
    "ValueCodecError",
    "ClientConfigurationError",
]
