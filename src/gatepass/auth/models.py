"""Authentication models for FastAPI"""

from pydantic import BaseModel


class User(BaseModel):
    """Authenticated event manager; user_id is the token's ``sub`` claim"""

    user_id: str
    claims: dict
