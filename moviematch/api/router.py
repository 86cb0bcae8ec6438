"""
Movie Matcher — Main API Router

Aggregates all sub-routers under a single prefix so that ``moviematch.main``
can mount the entire API surface with one ``include_router`` call.
"""

from fastapi import APIRouter

from moviematch.api import auth, movies, swipes, matches, users

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["Auth"])
router.include_router(movies.router, prefix="/movies", tags=["Movies"])
router.include_router(swipes.router, prefix="/swipes", tags=["Swipes"])
router.include_router(matches.router, prefix="/matches", tags=["Matches"])
router.include_router(users.router, prefix="/users", tags=["Users"])
