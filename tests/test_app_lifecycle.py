import unittest
from pathlib import Path

from fastapi.testclient import TestClient

from app.config.settings import Settings
from app.main import app
from app.services.order_book import OrderBookService
from app.services.quote_store import QuoteStoreHolder

FIXTURES = Path(__file__).resolve().parent / 'fixtures'


class AppLifecycleTest(unittest.TestCase):
    def setUp(self):
        self._original = (
            app.state.get_settings,
            app.state.quote_store_holder,
            app.state.order_book_service,
        )
        holder = QuoteStoreHolder()
        app.state.quote_store_holder = holder
        app.state.order_book_service = OrderBookService(store_holder=holder)

    def tearDown(self):
        (
            app.state.get_settings,
            app.state.quote_store_holder,
            app.state.order_book_service,
        ) = self._original

    def _use_settings(self, quotes_file: Path, window_policy: str = 'inclusive') -> None:
        settings = Settings(
            BOOK_QUOTES_FILE=str(quotes_file),
            BOOK_RESULT_LIMIT=5,
            BOOK_WINDOW_POLICY=window_policy,
            BOOK_DEFAULT_SYMBOL='AAPL',
            BOOK_DEFAULT_POINT_IN_TIME='2021-02-18T10:00:01.000Z',
        )
        app.state.get_settings = lambda: settings

    def test_startup_builds_store_and_binds_window_policy(self):
        self._use_settings(FIXTURES / 'quotes_subset.csv', window_policy='exclusive')

        with TestClient(app) as client:
            self.assertEqual(len(app.state.quote_store_holder.current()), 5)
            self.assertEqual(app.state.order_book_service.window_policy, 'exclusive')
            res = client.get('/v1/book/AAPL', params={'at': '2021-02-18T10:00:01.000Z'})

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()['live_count'], 0)

    def test_startup_with_bad_file_serves_empty_store(self):
        self._use_settings(FIXTURES / 'missing.csv')

        with TestClient(app) as client:
            res = client.get('/')
            metrics = client.get('/v1/metrics/book').json()

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.text, '$AAPL (2021-02-18T10:00:01.000Z)<br />\nBest Bids:<br />\nBest Asks:')
        self.assertEqual(metrics['quote_count'], 0)
        self.assertIn('missing.csv', metrics['last_build_error'])

    def test_startup_with_non_utf8_file_serves_empty_store(self):
        self._use_settings(FIXTURES / 'quotes_latin1.csv')

        with TestClient(app) as client:
            res = client.get('/v1/book/AAPL', params={'at': '2021-02-18T09:58:59.262Z'})
            metrics = client.get('/v1/metrics/book').json()

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()['live_count'], 0)
        self.assertEqual(metrics['quote_count'], 0)
        self.assertIn('not readable', metrics['last_build_error'])

    def test_startup_without_env_does_not_crash(self):
        def broken_settings():
            return Settings.model_validate({})

        app.state.get_settings = broken_settings

        with TestClient(app):
            self.assertEqual(len(app.state.quote_store_holder.current()), 0)

    def test_requests_without_settings_return_503(self):
        def broken_settings():
            return Settings.model_validate({})

        app.state.get_settings = broken_settings

        with TestClient(app) as client:
            root = client.get('/')
            book = client.get('/v1/book/AAPL', params={'at': '2021-02-18T09:58:59.262Z'})
            limited = client.get('/v1/book/AAPL', params={'at': '2021-02-18T09:58:59.262Z', 'limit': 1})
            rebuild = client.post('/v1/book/rebuild')

        self.assertEqual(root.status_code, 503)
        self.assertEqual(root.json(), {'detail': 'SETTINGS_NOT_CONFIGURED'})
        self.assertEqual(book.status_code, 503)
        self.assertEqual(limited.status_code, 200)
        self.assertEqual(limited.json()['best_bids'], [])
        self.assertEqual(rebuild.status_code, 503)
        self.assertEqual(rebuild.json(), {'detail': 'SETTINGS_NOT_CONFIGURED'})


if __name__ == '__main__':
    unittest.main()
