"""
retail_pos/schemas/principal.py
Roles and the Principal model.
"""
from typing import Literal, Optional
from pydantic import BaseModel, Field

Role = Literal["guest", "owner", "admin"]


class Principal(BaseModel):
    uid: str = Field(..., description="Firebase UID of the business owner")
    role: Role = Field(..., description="guest | owner | admin")
    email: Optional[str] = Field(None, description="Email (if any)")
    display_name: Optional[str] = Field(None, description="Display name (if any)")
