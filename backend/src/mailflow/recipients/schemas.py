from typing import List, Literal, Optional

from pydantic import BaseModel


class RecipientEntry(BaseModel):
    """A user profile or external person mail can be addressed to.

    id refers to user_profiles for type "internal" and to external_people
    for type "external".
    """
    id: int
    type: Literal["internal", "external"]
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    department: Optional[str] = None
    location: Optional[str] = None


class RecipientListResponse(BaseModel):
    recipients: List[RecipientEntry]
    total: int
