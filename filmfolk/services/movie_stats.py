from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import func

from filmfolk.models.movie import Movie
from filmfolk.models.review import Review, ReviewStatus


def recalculate_movie_stats(session, movie_id: str) -> None:
    """Refresh average_rating and total_reviews from published reviews. The caller commits."""
    session.flush()
    avg, count = (
        session.query(func.avg(Review.rating), func.count(Review.id))
        .filter(Review.movie_id == movie_id, Review.status == ReviewStatus.PUBLISHED)
        .one()
    )
    movie = session.get(Movie, movie_id)
    if movie is None:
        return
    movie.total_reviews = count or 0
    movie.average_rating = (
        Decimal(str(avg)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP) if count else None
    )
