"""
Favicon Schemas.
"""

from pydantic import BaseModel


class FaviconResponse(BaseModel):
    url: str
    domain: str | None
    logo_url: str
    source: str
