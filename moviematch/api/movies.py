"""
Movie Matcher — Movies API

Read-only access to the swipeable catalog.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Path
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from moviematch.database import get_db
from moviematch.exceptions import NotFoundError
from moviematch.models.movie import Movie
from moviematch.schemas.match import MAX_MEDIA_ID, MovieResponse

logger = structlog.get_logger("moviematch.api.movies")

router = APIRouter()


@router.get(
    "",
    response_model=list[MovieResponse],
    summary="List the movie catalog",
)
async def list_movies(db: AsyncSession = Depends(get_db)) -> list[Movie]:
    result = await db.execute(select(Movie).order_by(Movie.id))
    movies = result.scalars().all()
    logger.info("list_movies", count=len(movies))
    return list(movies)


@router.get(
    "/{movie_id}",
    response_model=MovieResponse,
    summary="Get a movie by ID",
)
async def get_movie(
    movie_id: int = Path(..., gt=0, le=MAX_MEDIA_ID),
    db: AsyncSession = Depends(get_db),
) -> Movie:
    movie = await db.get(Movie, movie_id)
    if movie is None:
        logger.info("get_movie_not_found", movie_id=movie_id)
        raise NotFoundError("Movie not found")
    return movie
