MAX_PER_PAGE = 50


def page_args(page, per_page, default_per_page: int = 10) -> tuple[int, int]:
    try:
        page_int = max(int(page), 1)
    except (TypeError, ValueError):
        page_int = 1
    try:
        per_page_int = min(max(int(per_page), 1), MAX_PER_PAGE)
    except (TypeError, ValueError):
        per_page_int = default_per_page
    return page_int, per_page_int
