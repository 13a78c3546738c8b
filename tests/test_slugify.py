"""Tests for slug normalization and per-scope collision handling."""

import unittest

import pytest

from booksync.errors import PersistenceError, ValidationError
from booksync.slugify import generate_slug, slugify
from booksync.storage import MemoryStore


class TestSlugify(unittest.TestCase):

    def test_basic_name(self):
        self.assertEqual(slugify('John Jonhson Jr.'), 'john-jonhson-jr')

    def test_ampersand(self):
        self.assertEqual(slugify('Tips & Tricks'), 'tips-and-tricks')

    def test_whitespace_and_punctuation_collapse(self):
        self.assertEqual(slugify('  Hello,   World!!  '), 'hello-world')

    def test_underscore_and_digits_kept(self):
        self.assertEqual(slugify('Chapter_2 v10'), 'chapter_2-v10')

    def test_accented_letters_above_range_kept(self):
        self.assertEqual(slugify('Café Ōsaka'), 'café-ōsaka')

    def test_non_string_input(self):
        self.assertEqual(slugify(2024), '2024')


class TestGenerateSlug:

    def test_free_slug_returned_as_is(self):
        store = MemoryStore()
        assert generate_slug(store.users, 'John Jonhson Jr.') == 'john-jonhson-jr'

    def test_numbered_suffixes(self):
        store = MemoryStore()
        for slug in ('john-jonhson-jr', 'john-jonhson-jr-1'):
            store.users.insert_one({'slug': slug, 'google_id': slug, 'email': f'{slug}@example.com'})

        assert generate_slug(store.users, 'John Jonhson Jr.') == 'john-jonhson-jr-2'

    def test_existing_user_slugs(self):
        store = MemoryStore()
        for slug in ('john-jonhson-jr', 'john-jonhson-jr-1', 'john'):
            store.users.insert_one({'slug': slug, 'google_id': slug, 'email': f'{slug}@example.com'})

        assert generate_slug(store.users, 'John Jonhson') == 'john-jonhson'
        assert generate_slug(store.users, 'John') == 'john-1'
        assert generate_slug(store.users, 'John Jonhson Jr.') == 'john-jonhson-jr-2'

    def test_scope_restricts_uniqueness(self):
        store = MemoryStore()
        store.chapters.insert_one({'book_id': 'a', 'slug': 'intro', 'github_file_path': 'introduction.md'})
        store.chapters.insert_one({'book_id': 'b', 'slug': 'intro', 'github_file_path': 'introduction.md'})
        store.chapters.insert_one({'book_id': 'b', 'slug': 'intro-1', 'github_file_path': 'chapter-1.md'})

        assert generate_slug(store.chapters, 'Intro', {'book_id': 'c'}) == 'intro'
        assert generate_slug(store.chapters, 'Intro', {'book_id': 'a'}) == 'intro-1'
        assert generate_slug(store.chapters, 'Intro', {'book_id': 'b'}) == 'intro-2'

    def test_empty_slug_rejected(self):
        store = MemoryStore()
        with pytest.raises(ValidationError):
            generate_slug(store.books, '?!')

    def test_attempts_exhausted(self):
        store = MemoryStore()
        for slug in ('book', 'book-1', 'book-2'):
            store.books.insert_one({'slug': slug})

        with pytest.raises(PersistenceError):
            generate_slug(store.books, 'Book', max_attempts=2)
