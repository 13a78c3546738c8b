"""Tests for the GitHub content source with a mocked requests session."""

import base64
import unittest
from unittest.mock import Mock

import requests

from booksync.errors import UpstreamError, ValidationError
from booksync.fetchers import ContentSource, GithubClient, create_content_source


def make_response(status_code=200, payload=None, headers=None, reason='OK'):
    response = Mock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.reason = reason
    response.headers = headers or {}
    if isinstance(payload, Exception):
        response.json.side_effect = payload
        response.text = ''
    else:
        response.json.return_value = payload
    return response


class TestGithubClient(unittest.TestCase):

    def setUp(self):
        self.session = requests.Session()
        self.session.get = Mock()
        self.client = GithubClient(access_token='gho_secret', session=self.session, timeout=10)

    def test_headers(self):
        self.assertEqual(self.session.headers['Authorization'], 'Bearer gho_secret')
        self.assertEqual(self.session.headers['Accept'], 'application/vnd.github+json')

    def test_no_token_no_authorization_header(self):
        session = requests.Session()
        GithubClient(session=session)
        self.assertNotIn('Authorization', session.headers)

    def test_list_commits(self):
        self.session.get.return_value = make_response(payload=[{'sha': 'abc'}, {'sha': 'def'}])

        commits = self.client.list_commits('builderbook/book-1', limit=1)

        self.assertEqual(commits, [{'sha': 'abc'}])
        url = self.session.get.call_args[0][0]
        kwargs = self.session.get.call_args[1]
        self.assertEqual(url, 'https://api.github.com/repos/builderbook/book-1/commits')
        self.assertEqual(kwargs['params'], {'per_page': 1})
        self.assertEqual(kwargs['timeout'], 10)

    def test_empty_repository_has_no_commits(self):
        self.session.get.return_value = make_response(409, {'message': 'Git Repository is empty.'}, reason='Conflict')
        self.assertEqual(self.client.list_commits('o/r'), [])

    def test_list_directory(self):
        entries = [{'path': 'introduction.md', 'type': 'file'}, {'path': 'images', 'type': 'dir'}]
        self.session.get.return_value = make_response(payload=entries)

        self.assertEqual(self.client.list_directory('o/r', ''), entries)
        self.assertEqual(self.session.get.call_args[0][0], 'https://api.github.com/repos/o/r/contents/')

    def test_list_directory_on_file_fails(self):
        self.session.get.return_value = make_response(payload={'type': 'file'})
        with self.assertRaises(UpstreamError):
            self.client.list_directory('o/r', 'README.md')

    def test_get_file_content_and_decode(self):
        encoded = base64.encodebytes('---\ntitle: Intro\n---\nHi ✓'.encode('utf-8')).decode('ascii')
        self.session.get.return_value = make_response(payload={'type': 'file', 'content': encoded, 'encoding': 'base64'})

        payload = self.client.get_file_content('o/r', 'introduction.md')

        self.assertEqual(self.session.get.call_args[0][0], 'https://api.github.com/repos/o/r/contents/introduction.md')
        self.assertEqual(self.client.decode_content(payload), '---\ntitle: Intro\n---\nHi ✓')

    def test_http_error(self):
        self.session.get.return_value = make_response(401, {'message': 'Bad credentials'}, reason='Unauthorized')

        with self.assertRaises(UpstreamError) as ctx:
            self.client.list_directory('o/r')

        self.assertEqual(ctx.exception.status_code, 401)
        self.assertEqual(str(ctx.exception), '[401] Bad credentials')

    def test_rate_limit_error(self):
        self.session.get.return_value = make_response(
            403, {'message': 'API rate limit exceeded'}, headers={'X-RateLimit-Remaining': '0'}, reason='Forbidden')

        with self.assertRaises(UpstreamError) as ctx:
            self.client.list_commits('o/r')

        self.assertIn('rate limit', str(ctx.exception))
        self.assertEqual(ctx.exception.status_code, 403)

    def test_timeout(self):
        self.session.get.side_effect = requests.exceptions.Timeout()
        with self.assertRaises(UpstreamError):
            self.client.list_commits('o/r')

    def test_connection_error(self):
        self.session.get.side_effect = requests.exceptions.ConnectionError("refused")
        with self.assertRaises(UpstreamError):
            self.client.list_directory('o/r')

    def test_invalid_json(self):
        self.session.get.return_value = make_response(payload=ValueError("no json"))
        with self.assertRaises(UpstreamError):
            self.client.list_commits('o/r')

    def test_bad_repo_name(self):
        with self.assertRaises(ValidationError):
            self.client.list_commits('just-a-name')
        self.session.get.assert_not_called()

    def test_list_repos(self):
        self.session.get.return_value = make_response(payload=[{'full_name': 'o/r'}])
        self.assertEqual(self.client.list_repos(), [{'full_name': 'o/r'}])
        self.assertEqual(self.session.get.call_args[0][0], 'https://api.github.com/user/repos')


class TestContentSourceHelpers(unittest.TestCase):

    def test_decode_missing_content(self):
        with self.assertRaises(UpstreamError):
            ContentSource.decode_content({'type': 'file'})

    def test_decode_invalid_utf8(self):
        with self.assertRaises(UpstreamError):
            ContentSource.decode_content({'content': base64.b64encode(b'\xff\xfe').decode('ascii')})

    def test_split_repo(self):
        self.assertEqual(ContentSource.split_repo('owner/name'), ('owner', 'name'))
        self.assertEqual(ContentSource.split_repo('/owner/name/'), ('owner', 'name'))
        for bad in ('', 'owner', 'a/b/c', '/name'):
            with self.assertRaises(ValidationError):
                ContentSource.split_repo(bad)


class TestCreateContentSource(unittest.TestCase):

    def test_from_config(self):
        config = {'github': {'api_url': 'https://ghe.example.com/api/v3/', 'access_token': 'cfg', 'timeout': 5}}

        client = create_content_source(config)

        self.assertIsInstance(client, GithubClient)
        self.assertEqual(client.api_url, 'https://ghe.example.com/api/v3')
        self.assertEqual(client.timeout, 5)
        self.assertEqual(client.session.headers['Authorization'], 'Bearer cfg')

    def test_explicit_token_wins(self):
        client = create_content_source({'github': {'access_token': 'cfg'}}, access_token='admin')
        self.assertEqual(client.session.headers['Authorization'], 'Bearer admin')
