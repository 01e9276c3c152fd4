from fastapi import Query

from kaziconnect.core.auth import Role
from kaziconnect.core.security import require_roles
from kaziconnect.schemas.common import Pagination
from kaziconnect.services.filters import MAX_PAGE_LIMIT, Page

require_admin = require_roles(Role.ADMIN)
require_employer = require_roles(Role.EMPLOYER)
require_job_seeker = require_roles(Role.JOB_SEEKER)


def get_page(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=MAX_PAGE_LIMIT),
) -> Page:
    return Page(page=page, limit=limit)


def pagination_for(page: Page, total: int) -> Pagination:
    return Pagination(**page.pagination(total))
