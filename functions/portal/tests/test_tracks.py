import unittest
from unittest import mock

import requests

from portal.tracks import load_academic_tracks


class LoadAcademicTracksTests(unittest.TestCase):
    def test_packaged_catalogue(self):
        tracks = load_academic_tracks()
        self.assertEqual(len(tracks), 10)
        self.assertIn("cs-undergrad", {t.id for t in tracks})
        self.assertTrue(all(t.name for t in tracks))

    def test_missing_file_yields_empty_list(self):
        with self.assertLogs("portal.tracks", level="ERROR"):
            self.assertEqual(load_academic_tracks(path="/nonexistent/tracks.json"), [])

    @mock.patch("portal.tracks.requests.get")
    def test_loads_from_url(self, mock_get):
        mock_get.return_value.json.return_value = [
            {"id": "nursing", "name": "סיעוד", "department": "בריאות"}
        ]
        tracks = load_academic_tracks(url="https://example.test/tracks.json")
        self.assertEqual(tracks[0].id, "nursing")
        self.assertEqual(tracks[0].degree_level, "")
        mock_get.assert_called_once_with("https://example.test/tracks.json", timeout=10)

    @mock.patch("portal.tracks.requests.get")
    def test_http_errors_yield_empty_list(self, mock_get):
        mock_get.return_value.raise_for_status.side_effect = requests.HTTPError("503")
        with self.assertLogs("portal.tracks", level="ERROR"):
            self.assertEqual(load_academic_tracks(url="https://example.test/x"), [])


if __name__ == "__main__":
    unittest.main()
