from enum import Enum
from pydantic import BaseModel
from typing import Optional

class UserRole(str, Enum):
    CLIENT = "client"
    TRAINER = "trainer"
    ADMIN = "admin"

class AuthUser(BaseModel):
    """Identity context supplied with every inbound call."""
    id: str
    role: UserRole = UserRole.CLIENT
    trainer_id: Optional[str] = None
    client_id: Optional[str] = None

class TokenData(BaseModel):
    id: str
    role: UserRole = UserRole.CLIENT
    trainer_id: Optional[str] = None
    client_id: Optional[str] = None
    exp: Optional[float] = None
