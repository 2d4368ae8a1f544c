"""Shared route dependencies: pagination parameters."""

from dataclasses import dataclass

from fastapi import Query

from configplaza.schemas.common import PaginationMeta


@dataclass
class Page:
    page: int
    limit: int

    def meta(self, total: int) -> PaginationMeta:
        return PaginationMeta(page=self.page, limit=self.limit, total=total)


def page_params(default_limit: int = 20, max_limit: int = 100):
    """Build a dependency for ?page=&limit= with limit clamped to [1, max_limit].

    Learn: page < 1 is a client error (422); an oversized or zero limit
    is silently clamped, matching what the web app expects.
    """

    def _params(
        page: int = Query(1, ge=1),
        limit: int = Query(default_limit),
    ) -> Page:
        return Page(page=page, limit=max(1, min(limit, max_limit)))

    return _params
