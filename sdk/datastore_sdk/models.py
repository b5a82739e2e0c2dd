"""
Request and response envelopes for the data store.

Every request carries a StoreIdentity (id, namespace, name, version,
task), which is flattened into the JSON body, plus an operation-specific
payload and an optional Format. Every response is parsed into the same
Response envelope.

Operations:
- Collection scoped: all, insert, purge
- Point operations: get, set, delete
- Batched point operations: mget, mset
- Queries: list
- Counters and ranked lists: increase_counter, count_ranked_list

Example:
    >>> games = StoreIdentity(id="site", namespace="studio", name="games", version="v1", task="cms")
    >>> req = SetRequest(games, index=Index.of(slug="skyfall"), data=Data.from_record({"title": "Skyfall"}))
    >>> body = req.to_dict()

Invariants:
    - Envelopes are immutable once built
    - MSetRequest indexes, data and previous are positionally aligned
    - Response parsing never inspects error/code; see Response.raise_for_error
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, ClassVar

from .errors import ApplicationError, ResponseDecodeError
from .query import Filter, Sort
from .schema import ValueKind
from .value import Value, decode_object, encode, value_of


@dataclass(frozen=True)
class StoreIdentity:
    """Identity of the collection an operation addresses.

    Attributes:
        id: Application identifier
        namespace: Namespace the collection lives in
        name: Collection name
        version: Collection schema version
        task: Calling task
    """

    id: str
    namespace: str
    name: str
    version: str
    task: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "namespace": self.namespace,
            "name": self.name,
            "version": self.version,
            "task": self.task,
        }


@dataclass(frozen=True)
class Format:
    """Requested response shape."""

    schema: bool | None = None
    structured: bool | None = None
    serialized: bool | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, omitting unset flags."""
        return {
            key: flag
            for key, flag in (
                ("schema", self.schema),
                ("structured", self.structured),
                ("serialized", self.serialized),
            )
            if flag is not None
        }


@dataclass(frozen=True)
class Page:
    """Pagination window.

    Attributes:
        number: Page number
        size: Records per page
        total: Total record count (set by the store in responses)
    """

    number: int
    size: int
    total: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        result: dict[str, Any] = {"number": self.number, "size": self.size}
        if self.total is not None:
            result["total"] = self.total
        return result

    @classmethod
    def from_dict(cls, data: Any, path: str = "page") -> Page:
        _require_mapping(data, path)
        total = _read_int(data, "total", path)
        return cls(
            number=_read_int(data, "number", path) or 0,
            size=_read_int(data, "size", path) or 0,
            total=total,
        )


@dataclass(frozen=True)
class Trace:
    """Server-side trace metadata."""

    id: str = ""
    env: str = ""
    lane: str = ""
    caller: str = ""
    duration: str = ""

    @classmethod
    def from_dict(cls, data: Any, path: str = "trace") -> Trace:
        _require_mapping(data, path)
        return cls(
            **{key: _read_str(data, key, path) or "" for key in ("id", "env", "lane", "caller", "duration")}
        )


@dataclass(frozen=True)
class Data:
    """One record in structured (and optionally serialized) form.

    Attributes:
        structured: One named Value per record field
        serialized: Opaque serialized record; not decoded by the SDK
    """

    structured: tuple[Value, ...] = ()
    serialized: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "structured", tuple(self.structured))

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Data:
        """Build Data from a native record mapping."""
        return cls(structured=encode(ValueKind.OBJECT, record).children)

    def to_record(self) -> dict[str, Any]:
        """Decode the structured fields into a native dict."""
        return decode_object(self.structured)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        result: dict[str, Any] = {"structured": [v.to_dict() for v in self.structured]}
        if self.serialized is not None:
            result["serialized"] = self.serialized
        return result

    @classmethod
    def from_dict(cls, data: Any, path: str = "data") -> Data:
        _require_mapping(data, path)
        raw = data.get("structured")
        if raw is None:
            raw = []
        if not isinstance(raw, list):
            raise ResponseDecodeError(f"{path}.structured: expected list", path=path)
        return cls(
            structured=tuple(
                Value.from_dict(v, f"{path}.structured[{i}]") for i, v in enumerate(raw)
            ),
            serialized=_read_str(data, "serialized", path),
        )


@dataclass(frozen=True)
class Index:
    """Key of a point operation: field names with parallel values."""

    fields: tuple[str, ...] = ()
    values: tuple[Value, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", tuple(self.fields))
        object.__setattr__(self, "values", tuple(self.values))
        if len(self.fields) != len(self.values):
            raise ValueError(
                f"Index has {len(self.fields)} field(s) but {len(self.values)} value(s)"
            )

    @classmethod
    def of(cls, **fields: Any) -> Index:
        """Build an Index from native keyword values.

        Example:
            >>> Index.of(slug="skyfall", region="eu")
        """
        return cls(
            fields=tuple(fields.keys()),
            values=tuple(value_of(v) for v in fields.values()),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "fields": list(self.fields),
            "values": [v.to_dict() for v in self.values],
        }


@dataclass(frozen=True)
class ScoreRange:
    """Score window for ranked lists."""

    score_min: float
    score_max: float
    exclude_min: bool = False
    exclude_max: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "scoreMin": self.score_min,
            "scoreMax": self.score_max,
            "excludeMin": self.exclude_min,
            "excludeMax": self.exclude_max,
        }


@dataclass(frozen=True)
class Result:
    """Records returned by an operation."""

    values: tuple[Data, ...] = ()
    page: Page | None = None

    @classmethod
    def from_dict(cls, data: Any, path: str = "data") -> Result:
        _require_mapping(data, path)
        raw = data.get("values")
        if raw is None:
            raw = []
        if not isinstance(raw, list):
            raise ResponseDecodeError(f"{path}.values: expected list", path=path)
        page = data.get("page")
        return cls(
            values=tuple(Data.from_dict(v, f"{path}.values[{i}]") for i, v in enumerate(raw)),
            page=Page.from_dict(page, f"{path}.page") if page is not None else None,
        )


# =============================================================================
# Requests
# =============================================================================


class _RequestBody:
    """Shared wire serialization for request envelopes."""

    operation: ClassVar[str]
    identity: StoreIdentity
    format: Format | None

    def _payload(self) -> dict[str, Any]:
        return {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON request body."""
        body = self.identity.to_dict()
        body.update(self._payload())
        if self.format is not None:
            body["format"] = self.format.to_dict()
        return body


@dataclass(frozen=True)
class AllRequest(_RequestBody):
    """Fetch every record of the collection."""

    operation: ClassVar[str] = "all"

    identity: StoreIdentity
    format: Format | None = None


@dataclass(frozen=True)
class InsertRequest(_RequestBody):
    """Insert one record (data) or several (batch)."""

    operation: ClassVar[str] = "insert"

    identity: StoreIdentity
    data: Data | None = None
    batch: tuple[Data, ...] = ()
    upsert: bool | None = None
    format: Format | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "batch", tuple(self.batch))

    def _payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.data is not None:
            payload["data"] = self.data.to_dict()
        if self.batch:
            payload["batch"] = [d.to_dict() for d in self.batch]
        if self.upsert is not None:
            payload["upsert"] = self.upsert
        return payload


@dataclass(frozen=True)
class PurgeRequest(_RequestBody):
    """Remove every record of the collection."""

    operation: ClassVar[str] = "purge"

    identity: StoreIdentity
    format: Format | None = None


@dataclass(frozen=True)
class GetRequest(_RequestBody):
    operation: ClassVar[str] = "get"

    identity: StoreIdentity
    index: Index | None = None
    format: Format | None = None

    def _payload(self) -> dict[str, Any]:
        return {"index": self.index.to_dict()} if self.index is not None else {}


@dataclass(frozen=True)
class SetRequest(_RequestBody):
    """Write one record; previous enables compare-and-set."""

    operation: ClassVar[str] = "set"

    identity: StoreIdentity
    index: Index | None = None
    data: Data | None = None
    upsert: bool | None = None
    previous: Data | None = None
    format: Format | None = None

    def _payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.index is not None:
            payload["index"] = self.index.to_dict()
        if self.data is not None:
            payload["data"] = self.data.to_dict()
        if self.upsert is not None:
            payload["upsert"] = self.upsert
        if self.previous is not None:
            payload["previous"] = self.previous.to_dict()
        return payload


@dataclass(frozen=True)
class DeleteRequest(_RequestBody):
    """Delete one record; previous enables compare-and-delete."""

    operation: ClassVar[str] = "delete"

    identity: StoreIdentity
    index: Index | None = None
    previous: Data | None = None
    format: Format | None = None

    def _payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.index is not None:
            payload["index"] = self.index.to_dict()
        if self.previous is not None:
            payload["previous"] = self.previous.to_dict()
        return payload


@dataclass(frozen=True)
class MGetRequest(_RequestBody):
    operation: ClassVar[str] = "mget"

    identity: StoreIdentity
    indexes: tuple[Index, ...] = ()
    format: Format | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "indexes", tuple(self.indexes))

    def _payload(self) -> dict[str, Any]:
        return {"indexes": [i.to_dict() for i in self.indexes]}


@dataclass(frozen=True)
class MSetRequest(_RequestBody):
    """Batched set.

    indexes[i], data[i] and previous[i] describe the same record. previous
    may be left empty to skip compare-and-set.
    """

    operation: ClassVar[str] = "mset"

    identity: StoreIdentity
    indexes: tuple[Index, ...] = ()
    data: tuple[Data, ...] = ()
    previous: tuple[Data, ...] = ()
    upsert: bool | None = None
    format: Format | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "indexes", tuple(self.indexes))
        object.__setattr__(self, "data", tuple(self.data))
        object.__setattr__(self, "previous", tuple(self.previous))
        if len(self.data) != len(self.indexes):
            raise ValueError(
                f"mset has {len(self.indexes)} index(es) but {len(self.data)} data item(s)"
            )
        if self.previous and len(self.previous) != len(self.indexes):
            raise ValueError(
                f"mset has {len(self.indexes)} index(es) but {len(self.previous)} previous item(s)"
            )

    def _payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "indexes": [i.to_dict() for i in self.indexes],
            "data": [d.to_dict() for d in self.data],
            "previous": [d.to_dict() for d in self.previous],
        }
        if self.upsert is not None:
            payload["upsert"] = self.upsert
        return payload


@dataclass(frozen=True)
class ListRequest(_RequestBody):
    """Filtered, sorted and paginated query."""

    operation: ClassVar[str] = "list"

    identity: StoreIdentity
    filter: Filter | None = None
    sort: Sort | None = None
    paginate: Page | None = None
    format: Format | None = None

    @classmethod
    def unfiltered(
        cls,
        identity: StoreIdentity,
        *,
        sort: Sort | None = None,
        paginate: Page | None = None,
        format: Format | None = None,
    ) -> ListRequest:
        """List request with the empty filter, matching every record."""
        return cls(identity, filter=Filter.empty(), sort=sort, paginate=paginate, format=format)

    def _payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.filter is not None:
            payload["filter"] = self.filter.to_dict()
        if self.sort is not None:
            payload["sort"] = self.sort.to_dict()
        if self.paginate is not None:
            payload["paginate"] = self.paginate.to_dict()
        return payload


@dataclass(frozen=True)
class IncreaseCounterRequest(_RequestBody):
    operation: ClassVar[str] = "increase_counter"

    identity: StoreIdentity
    index: Index | None = None
    delta: int | float | None = None
    format: Format | None = None

    def _payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.index is not None:
            payload["index"] = self.index.to_dict()
        if self.delta is not None:
            payload["delta"] = self.delta
        return payload


@dataclass(frozen=True)
class CountRankedListRequest(_RequestBody):
    operation: ClassVar[str] = "count_ranked_list"

    identity: StoreIdentity
    index: Index | None = None
    range: ScoreRange | None = None
    format: Format | None = None

    def _payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.index is not None:
            payload["index"] = self.index.to_dict()
        if self.range is not None:
            payload["range"] = self.range.to_dict()
        return payload


# =============================================================================
# Response
# =============================================================================


@dataclass(frozen=True)
class Response:
    """Uniform response envelope.

    The transport returns this as soon as the HTTP exchange succeeds;
    an application-level error is only raised if the caller asks via
    raise_for_error().

    Attributes:
        code: Application status code
        message: Human readable status
        error: Error text, empty on success
        trace: Server trace metadata
        data: Returned records
        raw: The decoded JSON body as received
    """

    code: int | None = None
    message: str | None = None
    error: str | None = None
    trace: Trace | None = None
    data: Result | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_dict(cls, body: Any) -> Response:
        """Parse a response body.

        Raises:
            ResponseDecodeError: If body is not a valid envelope
        """
        _require_mapping(body, "response")
        trace = body.get("trace")
        data = body.get("data")
        return cls(
            code=_read_int(body, "code", "response"),
            message=_read_str(body, "message", "response"),
            error=_read_str(body, "error", "response"),
            trace=Trace.from_dict(trace) if trace is not None else None,
            data=Result.from_dict(data) if data is not None else None,
            raw=dict(body),
        )

    @property
    def ok(self) -> bool:
        """True when the envelope reports neither an error nor a non-zero code."""
        return not self.error and not self.code

    @property
    def page(self) -> Page | None:
        return self.data.page if self.data is not None else None

    def records(self) -> list[dict[str, Any]]:
        """Decode every returned record into a native dict."""
        if self.data is None:
            return []
        return [d.to_record() for d in self.data.values]

    def raise_for_error(self) -> Response:
        """Raise ApplicationError if the envelope reports an error.

        Returns:
            Self, for chaining

        Raises:
            ApplicationError: If error is set or code is non-zero
        """
        if self.ok:
            return self
        raise ApplicationError(
            self.error or self.message or f"Data store returned code {self.code}",
            status=self.code,
            error=self.error,
            trace_id=self.trace.id if self.trace is not None else None,
        )


def _require_mapping(data: Any, path: str) -> None:
    if not isinstance(data, dict):
        raise ResponseDecodeError(f"{path}: expected object, got {type(data).__name__}", path=path)


def _read_str(data: dict[str, Any], key: str, path: str) -> str | None:
    raw = data.get(key)
    if raw is not None and not isinstance(raw, str):
        raise ResponseDecodeError(f"{path}.{key}: expected string", path=f"{path}.{key}")
    return raw


def _read_int(data: dict[str, Any], key: str, path: str) -> int | None:
    raw = data.get(key)
    if raw is None:
        return None
    # int64 fields may arrive as JSON strings
    if isinstance(raw, str):
        try:
            return int(raw)
        except ValueError:
            pass
    elif (
        isinstance(raw, (int, float))
        and not isinstance(raw, bool)
        and not (isinstance(raw, float) and not math.isfinite(raw))
        and int(raw) == raw
    ):
        return int(raw)
    raise ResponseDecodeError(f"{path}.{key}: expected integer", path=f"{path}.{key}")
