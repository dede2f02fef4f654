from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class ListQuery:
    """
    Filter predicate and order key for a listing.

    search        : substring to look for (case-insensitive), None matches all
    search_fields : fields the substring is matched against (any of them)
    order_by      : field used as the sort key
    descending    : sort direction; ties are always broken by ascending id
    """
    search: Optional[str] = None
    search_fields: Tuple[str, ...] = ()
    order_by: str = "id"
    descending: bool = False

    @property
    def has_filter(self) -> bool:
        return bool(self.search) and bool(self.search_fields)
