"""
User Domain Entities
====================

Pure Python business objects for accounts, roles and skills.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, List, Union

from ticket_ai.config import Role, STAFF_ROLES


def normalize_skills(skills: Union[str, Iterable[str], None]) -> List[str]:
    """
    Clean a skill list.

    Accepts a list or a comma-separated string. Entries are trimmed; blanks
    and case-insensitive duplicates are dropped, first occurrence wins.
    """
    if skills is None:
        return []
    if isinstance(skills, str):
        skills = skills.split(",")

    cleaned: List[str] = []
    seen = set()
    for skill in skills:
        if not isinstance(skill, str):
            continue
        skill = skill.strip()
        if skill and skill.lower() not in seen:
            seen.add(skill.lower())
            cleaned.append(skill)
    return cleaned


@dataclass
class User:
    """
    Account entity.

    The password is only ever held as an opaque hash.
    """
    id: str
    email: str
    password_hash: str
    role: str = Role.USER
    skills: List[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_staff(self) -> bool:
        """Moderators and admins see every ticket."""
        return self.role in STAFF_ROLES

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def has_any_skill(self, skills: Iterable[str]) -> bool:
        """Case-insensitive intersection test against this user's skills."""
        own = {s.strip().lower() for s in self.skills}
        return any(s.strip().lower() in own for s in skills)
