"""
Tests for the fallback catalog and its synthetic reviews.
"""

import random

import pytest

from bookworm.domain.fallback_catalog import (
    SYNTHETIC_COMMENTS,
    SYNTHETIC_MAX_RATING,
    SYNTHETIC_MAX_REVIEWS,
    SYNTHETIC_MIN_RATING,
    SYNTHETIC_MIN_REVIEWS,
    FallbackCatalog,
)
from bookworm.domain.mapper import PLACEHOLDER_IMAGES, placeholder_image_for, round_rating


@pytest.fixture
def catalog():
    return FallbackCatalog()


class TestSampleData:

    def test_sample_books_are_stable_across_calls(self, catalog):
        assert catalog.sample_books() == catalog.sample_books()
        assert catalog.sample_books() is catalog.sample_books()

    def test_sample_books_have_unique_isbns(self, catalog):
        isbns = [book.isbn for book in catalog.sample_books()]

        assert len(isbns) == 5
        assert len(set(isbns)) == len(isbns)

    def test_samples_go_through_the_mapper(self, catalog):
        books = {book.isbn: book for book in catalog.sample_books()}

        # No stored image: placeholder derived from the ISBN.
        assert books["9780452284241"].image_url == placeholder_image_for("9780452284241")
        assert books["9780452284241"].image_url in PLACEHOLDER_IMAGES
        # Stored 4.5 and no reviews.
        assert books["9780452284241"].rating_aggregate == 4.5
        # Reviews win over the stored rating.
        assert books["9780141439518"].rating_aggregate == 5.0
        assert books["9780141439518"].author_display == "Jane Austen"
        assert books["9780141439518"].author_details.id == 1

    def test_sample_authors(self, catalog):
        authors = catalog.sample_authors()

        assert [a.name for a in authors] == ["Jane Austen", "Harper Lee", "George Orwell", "Dan Brown"]
        assert [b.title for b in authors[2].books] == ["1984", "Animal Farm"]
        assert catalog.sample_authors() is authors


class TestSyntheticReviews:

    def test_empty_pool_returns_plain_samples(self, catalog):
        assert catalog.sample_books_with_synthetic_reviews([]) is catalog.sample_books()
        assert catalog.sample_books_with_synthetic_reviews(["", None]) is catalog.sample_books()

    def test_reviews_respect_bounds(self, catalog):
        pool = ["user-a", "user-b", "user-c"]

        books = catalog.sample_books_with_synthetic_reviews(pool, rng=random.Random(42))

        assert len(books) == len(catalog.sample_books())
        for book in books:
            assert SYNTHETIC_MIN_REVIEWS <= book.review_count() <= SYNTHETIC_MAX_REVIEWS
            for review in book.reviews:
                assert SYNTHETIC_MIN_RATING <= review.rating <= SYNTHETIC_MAX_RATING
                assert review.user_id in pool
                assert review.comment in SYNTHETIC_COMMENTS

    def test_aggregate_is_mean_of_synthetic_ratings(self, catalog):
        books = catalog.sample_books_with_synthetic_reviews(["u1", "u2"], rng=random.Random(7))

        for book in books:
            ratings = [review.rating for review in book.reviews]
            assert book.rating_aggregate == round_rating(sum(ratings) / len(ratings))

    def test_plain_samples_untouched(self, catalog):
        before = catalog.sample_books()

        catalog.sample_books_with_synthetic_reviews(["u1"], rng=random.Random(1))

        assert catalog.sample_books() == before
        assert before[2].reviews == ()

    def test_same_seed_same_output(self, catalog):
        first = catalog.sample_books_with_synthetic_reviews(["u1", "u2"], rng=random.Random(3))
        second = catalog.sample_books_with_synthetic_reviews(["u1", "u2"], rng=random.Random(3))

        assert first == second
