# This project was developed with assistance from AI tools.
"""Who is calling, and which leads they may see."""

from leaddb.enums import UserRole
from pydantic import BaseModel, ConfigDict, Field


class DataScope(BaseModel):
    """Lead visibility for one user.

    Exactly one rule applies: a student's own lead, a partner's referred
    leads, or the full pipeline. An empty scope sees nothing.
    """

    own_data_only: bool = False
    user_id: str | None = None
    partner_id: str | None = None
    full_pipeline: bool = False


class UserContext(BaseModel):
    """The acting user, passed explicitly from route to engine."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    role: UserRole
    email: str
    name: str
    data_scope: DataScope = Field(default_factory=DataScope)


class TokenPayload(BaseModel):
    """JWT claims the session provider reads."""

    sub: str
    email: str = ""
    name: str = ""
    preferred_username: str = ""
    realm_access: dict = Field(default_factory=dict)
    roles: list[str] = Field(default_factory=list)
    # Referral partner the user acts for; defaults to ``sub`` when absent
    partner_id: str | None = None
