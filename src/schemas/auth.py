from pydantic import BaseModel
from typing import Optional


class Actor(BaseModel):
    """Identity of the caller as asserted by a verified token"""

    id: str
    email: Optional[str] = None
