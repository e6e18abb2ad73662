from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

from perf_reviews.models.user import UserRole, ELEVATED_ROLES


class Actor(BaseModel):
    """Verified caller identity supplied by the identity collaborator; trusted as-is."""
    model_config = ConfigDict(frozen=True)

    user_id: str
    email: Optional[str] = None
    name: Optional[str] = None
    roles: List[str] = Field(default_factory=list)

    def has_role(self, role: UserRole) -> bool:
        return role.value in self.roles

    @property
    def is_elevated(self) -> bool:
        return any(self.has_role(role) for role in ELEVATED_ROLES)
