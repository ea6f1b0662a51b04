from pydantic import BaseModel


class TokenPayload(BaseModel):
    """Claims the console relies on; 'sub' is the identity provider's user id"""

    sub: str
    exp: int | None = None
