from datetime import datetime
from pydantic import BaseModel


class MessageResponse(BaseModel):
    """Schema for responses that carry only a message"""
    message: str


def parse_naive_datetime(value):
    """Accept ISO strings ending in 'Z' and drop timezone info; columns store naive UTC"""
    if isinstance(value, str) and value.endswith('Z'):
        fixed_value = value.replace('Z', '+00:00')
        return datetime.fromisoformat(fixed_value).replace(tzinfo=None)
    elif isinstance(value, datetime) and value.tzinfo is not None:
        return value.replace(tzinfo=None)
    return value
