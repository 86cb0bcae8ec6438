"""
Movie Matcher — ORM model registry.

Importing every model here ensures that Alembic (and any other tool that
inspects ``Base.metadata``) discovers all tables automatically.
"""

from moviematch.models.user import User
from moviematch.models.movie import Movie
from moviematch.models.partner_request import PartnerRequest
from moviematch.models.match import Match, Swipe

__all__ = [
    "User",
    "Movie",
    "PartnerRequest",
    "Match",
    "Swipe",
]
