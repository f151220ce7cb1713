import pytest

from cmpss_admin.query.pagination import PageRequest, PageResult, total_pages_for


@pytest.mark.parametrize(("total", "per_page", "expected"), [(0, 20, 0), (1, 20, 1), (20, 20, 1), (21, 20, 2), (45, 20, 3)])
def test_total_pages_is_ceiling(total, per_page, expected) -> None:
    assert total_pages_for(total, per_page) == expected


def test_total_pages_with_non_positive_page_size() -> None:
    assert total_pages_for(10, 0) == 0


def test_page_request_validation() -> None:
    with pytest.raises(ValueError):
        PageRequest(page=0)
    with pytest.raises(ValueError):
        PageRequest(per_page=0)

    request = PageRequest(page=3, per_page=50)
    assert request.params() == {"page": 3, "per_page": 50}
    assert request.first() == PageRequest(page=1, per_page=50)
    assert request.goto(99).page == 99


def test_page_result_navigation() -> None:
    result = PageResult(items=[1, 2], total=45, total_pages=3, page=2, per_page=20)

    assert result.has_next is True
    assert result.has_prev is True
    assert PageResult.empty(PageRequest(page=4, per_page=10)) == PageResult(items=[], page=4, per_page=10)
