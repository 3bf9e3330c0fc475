"""FilmFolk: a social movie-review REST API."""

__version__ = "1.0.0"
