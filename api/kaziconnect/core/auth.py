from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    JOB_SEEKER = "job-seeker"
    EMPLOYER = "employer"
    ADMIN = "admin"


@dataclass(slots=True, frozen=True)
class Principal:
    user_id: int
    email: str
    role: Role

    def require_roles(self, allowed: Iterable[Role]) -> None:
        allowed_roles = set(allowed)
        if self.role not in allowed_roles:
            raise PermissionError(
                f"role {self.role.value} not in {sorted(role.value for role in allowed_roles)}"
            )


def parse_role(value: object) -> Role | None:
    if isinstance(value, Role):
        return value
    if not isinstance(value, str):
        return None
    try:
        return Role(value.strip().lower())
    except ValueError:
        return None
