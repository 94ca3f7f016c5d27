import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path

import httpx

from iataplaces.fetcher import FetchError, fetch_airports, snapshot_filename, verify_airports_csv
from iataplaces.store import load_from_file

CSV_BODY = b"id,ident,name,iata_code\n1,KJFK,John F Kennedy,JFK\n2,00A,Heliport,\n"
NOW = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def mock_client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


class TestFetchAirports(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.out_dir = Path(self._tmp.name) / "data"

    def test_snapshot_filename_is_utc(self):
        local = NOW.astimezone(timezone(timedelta(hours=-5)))
        self.assertEqual(snapshot_filename(local), "airports-20240102-030405.csv")

    def test_writes_snapshot_and_latest(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, content=CSV_BODY)

        with mock_client(handler) as client:
            result = fetch_airports("https://example.test/airports.csv", self.out_dir, client=client, now=NOW)

        self.assertEqual(len(requests), 1)
        self.assertEqual(result.path, self.out_dir / "airports-20240102-030405.csv")
        self.assertEqual(result.latest_path, self.out_dir / "airports-latest.csv")
        self.assertEqual(result.bytes_written, len(CSV_BODY))
        self.assertEqual(result.rows, 2)
        self.assertEqual(result.path.read_bytes(), CSV_BODY)
        self.assertEqual(result.latest_path.read_bytes(), CSV_BODY)
        self.assertEqual(sorted(p.name for p in self.out_dir.iterdir()),
                         ["airports-20240102-030405.csv", "airports-latest.csv"])

        store = load_from_file(result.latest_path)
        self.assertEqual(store.get("jfk").name, "John F Kennedy")

    def test_latest_is_replaced_on_next_fetch(self):
        bodies = [CSV_BODY, b"id,iata_code\n5,LHR\n"]

        def handler(request):
            return httpx.Response(200, content=bodies.pop(0))

        with mock_client(handler) as client:
            fetch_airports("https://example.test/a.csv", self.out_dir, client=client, now=NOW)
            second = fetch_airports("https://example.test/a.csv", self.out_dir, client=client,
                                    now=NOW + timedelta(seconds=1))

        self.assertEqual(second.latest_path.read_bytes(), b"id,iata_code\n5,LHR\n")
        self.assertEqual(len(list(self.out_dir.glob("airports-2*.csv"))), 2)

    def test_non_200_status_raises(self):
        with mock_client(lambda request: httpx.Response(404, content=b"not found")) as client:
            with self.assertRaises(FetchError):
                fetch_airports("https://example.test/a.csv", self.out_dir, client=client, now=NOW)
        self.assertEqual(list(self.out_dir.iterdir()), [])

    def test_transport_error_raises_fetch_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with mock_client(handler) as client:
            with self.assertRaises(FetchError) as ctx:
                fetch_airports("https://example.test/a.csv", self.out_dir, client=client, now=NOW)
        self.assertIsInstance(ctx.exception.__cause__, httpx.HTTPError)
        self.assertEqual(list(self.out_dir.iterdir()), [])

    def test_malformed_url_raises_fetch_error(self):
        with mock_client(lambda request: httpx.Response(200, content=CSV_BODY)) as client:
            with self.assertRaises(FetchError):
                fetch_airports("http://[::1", self.out_dir, client=client, now=NOW)
        self.assertEqual(list(self.out_dir.iterdir()), [])

    def test_non_csv_body_is_rejected(self):
        body = b"<html><body>maintenance</body></html>"
        with mock_client(lambda request: httpx.Response(200, content=body)) as client:
            with self.assertRaises(FetchError):
                fetch_airports("https://example.test/a.csv", self.out_dir, client=client, now=NOW)
        self.assertEqual(list(self.out_dir.iterdir()), [])

    def test_existing_latest_survives_failed_fetch(self):
        self.out_dir.mkdir(parents=True)
        latest = self.out_dir / "airports-latest.csv"
        latest.write_bytes(CSV_BODY)
        with mock_client(lambda request: httpx.Response(500)) as client:
            with self.assertRaises(FetchError):
                fetch_airports("https://example.test/a.csv", self.out_dir, client=client, now=NOW)
        self.assertEqual(latest.read_bytes(), CSV_BODY)


class TestVerifyAirportsCsv(unittest.TestCase):
    def write(self, content: bytes) -> Path:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        path = Path(tmp.name) / "airports.csv.tmp"
        path.write_bytes(content)
        return path

    def test_counts_rows(self):
        self.assertEqual(verify_airports_csv(self.write(CSV_BODY)), 2)

    def test_header_only_is_valid(self):
        self.assertEqual(verify_airports_csv(self.write(b"id,iata_code\n")), 0)

    def test_empty_file_is_rejected(self):
        with self.assertRaises(FetchError):
            verify_airports_csv(self.write(b""))

    def test_missing_column_is_rejected(self):
        with self.assertRaises(FetchError):
            verify_airports_csv(self.write(b"id,name\n1,Nowhere\n"))

    def test_undecodable_bytes_do_not_fail_verification(self):
        self.assertEqual(verify_airports_csv(self.write(b"id,iata_code,name\n1,LAX,Los \xe9ngeles\n")), 1)

    def test_truncated_quoted_field_is_rejected(self):
        with self.assertRaises(FetchError):
            verify_airports_csv(self.write(b'id,iata_code,name\n1,AAA,"Unterminated'))


if __name__ == "__main__":
    unittest.main()
