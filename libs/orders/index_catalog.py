"""
Index catalog: which secondary index serves which filter combination.

The catalog is an ordered, immutable registry of :class:`IndexTemplate`
entries. A template serves a query only when the requested dimensions equal
its dimension set exactly; a request for ``{offerer, filler}`` never falls
through to ``{filler, offerer, orderStatus}`` or to ``{offerer}``.

Every template keys one index partition by joining its dimensions in
canonical order, both when building a query key from filters and when
indexing a stored item, so the two always agree.

Usage:
    from libs.orders.index_catalog import DEFAULT_INDEX_CATALOG

    template = DEFAULT_INDEX_CATALOG.match({"orderStatus", "offerer"})
    template.index_id()                                  # "offerer_orderStatus-createdAt-all"
    template.build_key({"offerer": "0xabc", "orderStatus": "open"})  # "0xabc_open"
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from libs.orders.models import COMPOSITE_DELIMITER, SortField, join_attributes


class QueryParam(str, Enum):
    """Recognized keys of a query filter set."""

    ORDER_HASH = "orderHash"
    ORDER_HASHES = "orderHashes"
    OFFERER = "offerer"
    FILLER = "filler"
    ORDER_STATUS = "orderStatus"
    CHAIN_ID = "chainId"
    SORT_KEY = "sortKey"
    SORT = "sort"
    DESC = "desc"


# Keys that shape a scan rather than select an index.
MODIFIER_PARAMS = frozenset(
    {QueryParam.SORT_KEY.value, QueryParam.SORT.value, QueryParam.DESC.value}
)

# Dimension sets answered by primary-key lookups instead of an index.
POINT_LOOKUP_DIMENSIONS = frozenset({QueryParam.ORDER_HASH.value})
BATCH_LOOKUP_DIMENSIONS = frozenset({QueryParam.ORDER_HASHES.value})

INDEX_ID_SEPARATOR = "-"
INDEX_ID_SUFFIX = "all"


@dataclass(frozen=True)
class IndexTemplate:
    """
    One supported dimension combination.

    Attributes:
        dimensions: Filter names in canonical key order
    """

    dimensions: tuple[str, ...]

    @property
    def dimension_set(self) -> frozenset[str]:
        return frozenset(self.dimensions)

    @property
    def partition_attribute(self) -> str:
        """Name of the (possibly composite) attribute that keys this index."""
        return COMPOSITE_DELIMITER.join(self.dimensions)

    def matches(self, requested: Iterable[str]) -> bool:
        return self.dimension_set == frozenset(requested)

    def index_id(self, sort_key: SortField | str = SortField.CREATED_AT) -> str:
        """Identifier of this index ordered by ``sort_key``."""
        sort_name = sort_key.value if isinstance(sort_key, SortField) else sort_key
        return INDEX_ID_SEPARATOR.join((self.partition_attribute, sort_name, INDEX_ID_SUFFIX))

    def build_key(self, values: Mapping[str, Any]) -> str:
        """
        Build the partition key from query filter values.

        Raises:
            KeyError: If a dimension value is missing
        """
        key = join_attributes(values, self.dimensions)
        if key is None:
            missing = [dim for dim in self.dimensions if values.get(dim) is None]
            raise KeyError(f"Missing value for index dimension(s) {missing}")
        return key

    def partition_value(self, item: Mapping[str, Any]) -> str | None:
        """Partition key of a stored item, or None if the item is not in this index."""
        return join_attributes(item, self.dimensions)

    def describe(self) -> str:
        return "{" + ", ".join(sorted(self.dimensions)) + "}"


@dataclass(frozen=True)
class IndexCatalog:
    """
    Ordered registry of index templates plus the sort fields each index supports.

    Construct once at startup and inject; tests may build alternate catalogs.
    """

    templates: tuple[IndexTemplate, ...]
    sort_fields: tuple[SortField, ...] = (SortField.CREATED_AT, SortField.DEADLINE)

    def __post_init__(self) -> None:
        reserved = MODIFIER_PARAMS | POINT_LOOKUP_DIMENSIONS | BATCH_LOOKUP_DIMENSIONS
        seen: set[frozenset[str]] = set()
        for template in self.templates:
            if template.dimension_set in seen:
                raise ValueError(f"Duplicate index template {template.describe()}")
            if template.dimension_set & reserved:
                raise ValueError(f"Template {template.describe()} uses a reserved query param")
            seen.add(template.dimension_set)

    def match(self, requested: Iterable[str]) -> IndexTemplate | None:
        """Return the first template whose dimensions equal ``requested``, else None."""
        requested_set = frozenset(requested)
        for template in self.templates:
            if template.matches(requested_set):
                return template
        return None

    def template_for(self, *dimensions: str) -> IndexTemplate:
        """
        Return the template for exactly ``dimensions``.

        Raises:
            KeyError: If the catalog has no such template
        """
        template = self.match(dimensions)
        if template is None:
            raise KeyError(f"No index for dimensions {sorted(dimensions)}")
        return template

    def resolve_sort_field(self, sort_key: SortField | str | None) -> SortField:
        """
        Map a caller-supplied sort key to a supported sort field.

        Raises:
            ValueError: If the sort key is not supported by this catalog
        """
        if sort_key is None:
            return SortField.CREATED_AT
        sort_field = SortField(sort_key)
        if sort_field not in self.sort_fields:
            raise ValueError(f"Unsupported sort key {sort_field.value}")
        return sort_field

    def supported_dimension_sets(self) -> list[str]:
        """Human-readable list of every accepted dimension combination."""
        lookups = [
            "{" + ", ".join(sorted(POINT_LOOKUP_DIMENSIONS)) + "}",
            "{" + ", ".join(sorted(BATCH_LOOKUP_DIMENSIONS)) + "}",
        ]
        return lookups + [template.describe() for template in self.templates]


DEFAULT_INDEX_CATALOG = IndexCatalog(
    templates=(
        IndexTemplate(("filler", "offerer", "orderStatus")),
        IndexTemplate(("chainId", "filler")),
        IndexTemplate(("chainId", "orderStatus")),
        IndexTemplate(("chainId", "orderStatus", "filler")),
        IndexTemplate(("filler", "orderStatus")),
        IndexTemplate(("filler", "offerer")),
        IndexTemplate(("offerer", "orderStatus")),
        IndexTemplate(("offerer",)),
        IndexTemplate(("orderStatus",)),
        IndexTemplate(("filler",)),
        IndexTemplate(("chainId",)),
    )
)
