"""Normalization of the user-supplied paging options.

Numeric fields fall back to their default when zero or negative and are clamped
to their maximum with a warning. Sort enums are parsed strictly: an invalid
value raises ConfigError instead of being replaced by the default.
"""

import logging

from prwatch.models import Page, PageConfig, SortDirection, SortField

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_PRS = 100
MAX_MAX_PRS = 2000
DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100
DEFAULT_MAX_RETRIES = 4
MAX_MAX_RETRIES = 10
DEFAULT_DELAY_BETWEEN_PAGES = 500
MAX_DELAY_BETWEEN_PAGES = 10000


def _bounded(name: str, value: int, default: int, maximum: int, logger: logging.Logger) -> int:
    if value <= 0:
        return default
    if value > maximum:
        logger.warning("Max %s value exceeded, using max value %d", name, maximum)
        return maximum
    return value


def normalize_page(page: Page, logger: logging.Logger | None = None) -> PageConfig:
    """Validate paging options and clamp them into their documented bounds."""
    log = logger or LOGGER

    sort_field = SortField.parse(page.sort_field)
    sort_direction = SortDirection.parse(page.sort_direction)

    max_prs = _bounded("max_prs", page.max_prs, DEFAULT_MAX_PRS, MAX_MAX_PRS, log)

    page_size = page.page_size if page.page_size > 0 else DEFAULT_PAGE_SIZE
    if page_size > max_prs:
        log.info("page_size %d exceeds max_prs, using %d", page_size, max_prs)
        page_size = max_prs
    if page_size > MAX_PAGE_SIZE:
        log.warning("Max page_size exceeded, using max value %d", MAX_PAGE_SIZE)
        page_size = MAX_PAGE_SIZE

    return PageConfig(
        page_size=page_size,
        max_prs=max_prs,
        sort_field=sort_field,
        sort_direction=sort_direction,
        max_retries=_bounded("max_retries", page.max_retries, DEFAULT_MAX_RETRIES, MAX_MAX_RETRIES, log),
        delay_between_pages=_bounded(
            "delay_between_pages",
            page.delay_between_pages,
            DEFAULT_DELAY_BETWEEN_PAGES,
            MAX_DELAY_BETWEEN_PAGES,
            log,
        ),
    )
