"""The check entry point: fetch candidates, filter them and resolve the versions to emit."""

import logging

from prwatch.errors import CollaboratorError
from prwatch.filters import FilterChain
from prwatch.models import CheckRequest, PRState, Version
from prwatch.pagination import normalize_page
from prwatch.providers.base import PullRequestSource
from prwatch.resolver import resolve

LOGGER = logging.getLogger(__name__)

DEFAULT_STATES = [PRState.OPEN]


def check(request: CheckRequest, source: PullRequestSource, logger: logging.Logger | None = None) -> list[Version]:
    """Return the new versions for request, oldest first.

    Raises ConfigError for invalid paging options or path patterns, and
    CollaboratorError when the pull request source fails. Nothing is returned
    on error.
    """
    log = logger or LOGGER
    config = request.source

    page = normalize_page(request.page_params(), logger=log)
    states = list(config.states) or DEFAULT_STATES

    try:
        pulls = source.list_pull_requests(states, page)
    except Exception as err:
        raise CollaboratorError(f"failed to get last commits: {err}") from err

    log.debug("previous version: %s", request.version.to_wire() or "(none)")
    chain = FilterChain(config, request.version, source.list_modified_files, logger=log)
    survivors = chain.select(pulls)
    log.debug("%d of %d pull requests selected", len(survivors), len(pulls))

    versions = resolve(survivors, request.version)
    log.debug("reporting %d version(s)", len(versions))
    return versions
