"""
Unit tests for GitHub pagination module.

Why: Ensure pagination follows GitHub Link headers correctly so that pull
     request listings and check run listings are complete.

What: Tests LinkHeader parsing, PaginatedResponse item extraction and
      AsyncPaginator iteration with page limits.

How: Uses a mock client whose _fetch_paginated returns prepared pages, so no
     API calls are made.
"""

from typing import Any
from unittest.mock import AsyncMock, Mock

import pytest

from checkwatch.github.pagination import AsyncPaginator, LinkHeader, PaginatedResponse

PULLS_URL = "https://api.github.com/repos/acme/widgets/pulls"


def page(
    items: list[dict[str, Any]], next_url: str | None = None
) -> PaginatedResponse:
    """Build a page optionally linking to the next one."""
    headers = {"Link": f'<{next_url}>; rel="next"'} if next_url else {}
    return PaginatedResponse(items, headers, PULLS_URL)


class TestLinkHeader:
    """Test LinkHeader parsing."""

    def test_link_header_empty(self) -> None:
        """
        Why: The last page of a listing carries no Link header
        What: Tests LinkHeader with a missing header
        How: Creates LinkHeader with None and validates the empty state
        """
        link_header = LinkHeader(None)

        assert link_header.links == {}
        assert not link_header.has_next
        assert link_header.next_url is None

    def test_link_header_multiple_links(self) -> None:
        """Test every relation of a full Link header is parsed."""
        header_value = (
            f'<{PULLS_URL}?page=2>; rel="next", '
            f'<{PULLS_URL}?page=5>; rel="last", '
            f'<{PULLS_URL}?page=1>; rel="first"'
        )
        link_header = LinkHeader(header_value)

        assert link_header.next_url == f"{PULLS_URL}?page=2"
        assert link_header.has_next
        assert link_header.links["first"] == f"{PULLS_URL}?page=1"
        assert link_header.get_last_page_number() == 5

    def test_last_page_number_without_page_parameter(self) -> None:
        """Test a last link without a page parameter has no page number."""
        link_header = LinkHeader(f'<{PULLS_URL}?per_page=100>; rel="last"')

        assert link_header.get_last_page_number() is None


class TestPaginatedResponse:
    """Test PaginatedResponse."""

    def test_list_body(self) -> None:
        """Test a JSON array body is the item list."""
        response = page([{"number": 1}, {"number": 2}], f"{PULLS_URL}?page=2")

        assert response.items == [{"number": 1}, {"number": 2}]
        assert response.has_next_page
        assert response.next_page_url == f"{PULLS_URL}?page=2"

    def test_object_body_with_items_key(self) -> None:
        """Test the item list is unwrapped from an object body."""
        response = PaginatedResponse(
            {"total_count": 1, "check_runs": [{"id": 7}]},
            {},
            PULLS_URL,
            items_key="check_runs",
        )

        assert response.items == [{"id": 7}]
        assert not response.has_next_page

    def test_object_body_without_items_key(self) -> None:
        """Test a plain object body is a single item."""
        response = PaginatedResponse({"id": 7}, {}, PULLS_URL)

        assert response.items == [{"id": 7}]


class TestAsyncPaginator:
    """Test AsyncPaginator."""

    @pytest.fixture
    def mock_client(self) -> Mock:
        """Client serving three linked pages."""
        client = Mock()
        client._fetch_paginated = AsyncMock(
            side_effect=[
                page([{"number": 6}, {"number": 5}], f"{PULLS_URL}?page=2"),
                page([{"number": 4}, {"number": 3}], f"{PULLS_URL}?page=3"),
                page([{"number": 2}]),
            ]
        )
        return client

    @pytest.mark.asyncio
    async def test_iterates_all_pages(self, mock_client: Mock) -> None:
        """
        Why: A listing longer than one page must be read completely
        What: Tests the paginator follows next links until the last page
        How: Collects all items and checks the requested URLs and params
        """
        paginator = AsyncPaginator(mock_client, PULLS_URL, params={"state": "open"})

        items = await paginator.collect_all()

        assert [item["number"] for item in items] == [6, 5, 4, 3, 2]
        assert paginator.pages_fetched == 3

        calls = mock_client._fetch_paginated.await_args_list
        assert calls[0].args == (PULLS_URL, {"state": "open", "per_page": 100})
        assert calls[1].args == (f"{PULLS_URL}?page=2", None)
        assert calls[2].args == (f"{PULLS_URL}?page=3", None)

    @pytest.mark.asyncio
    async def test_max_pages(self, mock_client: Mock) -> None:
        """Test no page beyond max_pages is fetched."""
        paginator = AsyncPaginator(mock_client, PULLS_URL, max_pages=2)

        items = await paginator.collect_all()

        assert [item["number"] for item in items] == [6, 5, 4, 3]
        assert mock_client._fetch_paginated.await_count == 2

    @pytest.mark.asyncio
    async def test_early_break_stops_fetching(self, mock_client: Mock) -> None:
        """Test breaking out of iteration fetches no further pages."""
        paginator = AsyncPaginator(mock_client, PULLS_URL)

        async for item in paginator:
            if item["number"] == 5:
                break

        assert mock_client._fetch_paginated.await_count == 1

    def test_per_page_is_capped(self) -> None:
        """Test per_page never exceeds GitHub's maximum."""
        paginator = AsyncPaginator(Mock(), PULLS_URL, per_page=500)

        assert paginator.per_page == 100
        assert paginator.params["per_page"] == 100

    @pytest.mark.asyncio
    async def test_items_key_is_forwarded(self) -> None:
        """Test the items key is passed along with each page request."""
        client = Mock()
        client._fetch_paginated = AsyncMock(return_value=page([]))
        paginator = AsyncPaginator(client, PULLS_URL, items_key="check_runs")

        await paginator.collect_all()

        assert client._fetch_paginated.await_args.kwargs == {"items_key": "check_runs"}
