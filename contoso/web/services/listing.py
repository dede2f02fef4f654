"""
Listing helpers

Translate the student list parameters (sort order, search, current filter,
page number) into a ListQuery plus the state echoed back to the client.
"""

from dataclasses import dataclass
from typing import Optional

from contoso.store.base.query import ListQuery

STUDENT_SEARCH_FIELDS = ("last_name", "first_mid_name")


@dataclass
class StudentListing:
    query: ListQuery
    page_number: Optional[int]
    current_sort: Optional[str]
    current_filter: Optional[str]
    name_sort_parm: str
    date_sort_parm: str


def student_listing(
    sort_order: Optional[str],
    current_filter: Optional[str],
    search_string: Optional[str],
    page_number: Optional[int],
) -> StudentListing:
    """
    A new search string starts again at page 1; without one the previous
    filter (current_filter) stays in effect.
    """
    if search_string is not None:
        page_number = 1
    else:
        search_string = current_filter

    # Toggles for the column headers
    name_sort_parm = "name_desc" if not sort_order else ""
    date_sort_parm = "date_desc" if sort_order == "Date" else "Date"

    if sort_order == "name_desc":
        order_by, descending = "last_name", True
    elif sort_order == "Date":
        order_by, descending = "enrollment_date", False
    elif sort_order == "date_desc":
        order_by, descending = "enrollment_date", True
    else:
        order_by, descending = "last_name", False

    query = ListQuery(
        search=search_string or None,
        search_fields=STUDENT_SEARCH_FIELDS,
        order_by=order_by,
        descending=descending,
    )
    return StudentListing(
        query=query,
        page_number=page_number,
        current_sort=sort_order,
        current_filter=search_string,
        name_sort_parm=name_sort_parm,
        date_sort_parm=date_sort_parm,
    )
