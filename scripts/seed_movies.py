"""Seed the movie catalog.  Existing titles are left untouched."""
import asyncio

from sqlalchemy import select
from moviematch.database import async_session_factory, engine
from moviematch.models.movie import Movie


CATALOG = [
    {"title": "The Shawshank Redemption", "genre": "Drama", "poster_url": "https://picsum.photos/id/1/400/600"},
    {"title": "The Godfather", "genre": "Crime", "poster_url": "https://picsum.photos/id/2/400/600"},
    {"title": "The Dark Knight", "genre": "Action", "poster_url": "https://picsum.photos/id/3/400/600"},
    {"title": "Pulp Fiction", "genre": "Crime", "poster_url": "https://picsum.photos/id/4/400/600"},
    {"title": "Forrest Gump", "genre": "Drama", "poster_url": "https://picsum.photos/id/5/400/600"},
    {"title": "Inception", "genre": "Sci-Fi", "poster_url": "https://picsum.photos/id/6/400/600"},
    {"title": "Spirited Away", "genre": "Animation", "poster_url": "https://picsum.photos/id/7/400/600"},
    {"title": "Parasite", "genre": "Thriller", "poster_url": "https://picsum.photos/id/8/400/600"},
    {"title": "Breaking Bad", "genre": "Crime", "poster_url": "https://picsum.photos/id/9/400/600"},
    {"title": "Stranger Things", "genre": "Sci-Fi", "poster_url": "https://picsum.photos/id/10/400/600"},
    {"title": "The Office", "genre": "Comedy", "poster_url": "https://picsum.photos/id/11/400/600"},
    {"title": "Planet Earth", "genre": "Documentary", "poster_url": "https://picsum.photos/id/12/400/600"},
]


async def seed():
    async with async_session_factory() as session:
        for movie in CATALOG:
            existing = await session.execute(
                select(Movie).where(Movie.title == movie["title"])
            )
            if existing.scalar_one_or_none() is None:
                session.add(Movie(**movie))
                print(f"  Seeded {movie['title']} ({movie['genre']})")
            else:
                print(f"  {movie['title']} already exists, skipping.")
        await session.commit()
    await engine.dispose()
    print("Done seeding movies.")


if __name__ == "__main__":
    asyncio.run(seed())
