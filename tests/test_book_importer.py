"""Tests for syncing a whole book from its repository."""

import pytest

from booksync.errors import NoChangeError, NotFoundError, UpstreamError
from booksync.importers import BookImporter

from conftest import FakeContentSource, chapter_source


def chapters_by_path(store, book):
    return {
        document['github_file_path']: document
        for document in store.chapters.find({'book_id': book.id})
    }


class TestSyncBook:

    def test_first_sync(self, store, book, source):
        synced = BookImporter(store, source).sync_book(book.id)

        assert synced.github_last_commit_sha == 'sha-2'
        assert store.books.find_one({'_id': book.id})['github_last_commit_sha'] == 'sha-2'

        chapters = chapters_by_path(store, book)
        assert set(chapters) == {'introduction.md', 'chapter-1.md', 'chapter-13.md'}
        assert chapters['introduction.md']['order'] == 1
        assert chapters['introduction.md']['is_free'] is True
        assert chapters['chapter-1.md']['order'] == 2
        assert chapters['chapter-13.md']['order'] == 14

    def test_unrecognized_entries_never_fetched(self, store, book, source):
        BookImporter(store, source).sync_book(book.id)

        assert sorted(source.fetched) == ['chapter-1.md', 'chapter-13.md', 'introduction.md']

    def test_same_commit_is_no_change(self, store, book, source):
        importer = BookImporter(store, source)
        importer.sync_book(book.id)
        source.fetched.clear()

        with pytest.raises(NoChangeError) as excinfo:
            importer.sync_book(book.id)

        assert str(excinfo.value) == 'No change in content!'
        assert source.fetched == []

    def test_new_commit_resyncs(self, store, book, source):
        importer = BookImporter(store, source)
        importer.sync_book(book.id)
        first_ids = {path: doc['_id'] for path, doc in chapters_by_path(store, book).items()}

        source.commits.insert(0, 'sha-3')
        source.files['chapter-1.md'] = chapter_source('Set up Node', '## Install\n\nUpdated.\n')
        synced = importer.sync_book(book.id)

        chapters = chapters_by_path(store, book)
        assert synced.github_last_commit_sha == 'sha-3'
        assert chapters['chapter-1.md']['_id'] == first_ids['chapter-1.md']
        assert 'Updated.' in chapters['chapter-1.md']['content']
        assert store.chapters.count_documents({'book_id': book.id}) == 3

    def test_no_commits_is_no_change(self, store, book):
        with pytest.raises(NoChangeError):
            BookImporter(store, FakeContentSource(files={}, commits=[])).sync_book(book.id)

        assert store.books.find_one({'_id': book.id})['github_last_commit_sha'] is None

    def test_missing_book(self, store, source):
        with pytest.raises(NotFoundError):
            BookImporter(store, source).sync_book('missing')

    def test_failed_file_does_not_stop_others(self, store, book, source):
        source.files['chapter-2.md'] = '---\ntitle: [broken\n---\nbody'
        source.broken['chapter-1.md'] = UpstreamError("Server Error", status_code=500)
        importer = BookImporter(store, source)

        synced = importer.sync_book(book.id)

        assert synced.github_last_commit_sha == 'sha-2'
        assert set(chapters_by_path(store, book)) == {'introduction.md', 'chapter-13.md'}
        assert importer.stats['files'] == 4
        assert importer.stats['synced'] == 2
        assert importer.stats['failed'] == 2
        assert sorted(error['path'] for error in importer.stats['errors']) == ['chapter-1.md', 'chapter-2.md']

    def test_missing_title_counts_as_failure(self, store, book):
        source = FakeContentSource(
            files={'introduction.md': '---\nexcerpt: no title\n---\nbody'},
            commits=['sha-1']
        )
        importer = BookImporter(store, source)

        importer.sync_book(book.id)

        assert importer.stats['failed'] == 1
        assert store.chapters.count_documents({}) == 0

    def test_empty_repository_still_records_commit(self, store, book):
        synced = BookImporter(store, FakeContentSource(files={'README.md': 'hi'}, commits=['sha-1'])).sync_book(book.id)

        assert synced.github_last_commit_sha == 'sha-1'
        assert store.chapters.count_documents({}) == 0

    def test_listing_error_propagates(self, store, book, source):
        def fail(repo, path=''):
            raise UpstreamError("Bad credentials", status_code=401)
        source.list_directory = fail

        with pytest.raises(UpstreamError):
            BookImporter(store, source).sync_book(book.id)

        assert store.books.find_one({'_id': book.id})['github_last_commit_sha'] is None

    def test_single_worker_with_progress_bar(self, store, book, source):
        synced = BookImporter(store, source, max_workers=1, show_progress=True).sync_book(book.id)

        assert synced.github_last_commit_sha == 'sha-2'
        assert store.chapters.count_documents({}) == 3

    def test_from_config(self, store, source):
        importer = BookImporter.from_config(store, source, {'sync': {'max_workers': 2, 'show_progress': True}})

        assert importer.max_workers == 2
        assert importer.show_progress is True
