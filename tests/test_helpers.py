"""Pure helpers: pseudonyms, dates, user-agent, referrer, screen, country."""

from datetime import datetime, timedelta, timezone

import pytest

from privalytics.core.identity import current_date_string, session_pseudonym
from privalytics.core.parsing import (
    classify_user_agent,
    extract_registrable_domain,
    normalize_country,
    screen_bucket,
)

CHROME_DESKTOP = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
EDGE_CHROMIUM = CHROME_DESKTOP + " Edg/120.0.0.0"
SAFARI_IPHONE = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)
FIREFOX_ANDROID = "Mozilla/5.0 (Android 14; Mobile; rv:121.0) Gecko/121.0 Firefox/121.0"


class TestSessionPseudonym:
    def test_is_16_hex_chars(self):
        value = session_pseudonym("1.1.1.1", "2024-05-01")
        assert len(value) == 16
        int(value, 16)

    def test_matches_truncated_sha256(self):
        import hashlib

        expected = hashlib.sha256(b"1.1.1.1:2024-05-01").hexdigest()[:16]
        assert session_pseudonym("1.1.1.1", "2024-05-01") == expected

    def test_same_ip_same_day_is_stable(self):
        assert session_pseudonym("1.1.1.1", "2024-05-01") == session_pseudonym(
            "1.1.1.1", "2024-05-01"
        )

    def test_different_ip_differs(self):
        assert session_pseudonym("1.1.1.1", "2024-05-01") != session_pseudonym(
            "2.2.2.2", "2024-05-01"
        )

    def test_rotates_at_day_boundary(self):
        assert session_pseudonym("1.1.1.1", "2024-05-01") != session_pseudonym(
            "1.1.1.1", "2024-05-02"
        )

    def test_does_not_contain_ip(self):
        assert "1.1.1.1" not in session_pseudonym("1.1.1.1", "2024-05-01")


class TestCurrentDateString:
    def test_formats_utc_date(self):
        assert current_date_string(datetime(2024, 5, 1, 12, tzinfo=timezone.utc)) == "2024-05-01"

    def test_converts_other_timezones_to_utc(self):
        tokyo = timezone(timedelta(hours=9))
        # 08:00 in Tokyo is still the previous day in UTC
        assert current_date_string(datetime(2024, 5, 2, 8, tzinfo=tokyo)) == "2024-05-01"

    def test_defaults_to_today(self):
        assert current_date_string() == datetime.now(timezone.utc).strftime("%Y-%m-%d")


class TestClassifyUserAgent:
    @pytest.mark.parametrize(
        "ua, expected",
        [
            (CHROME_DESKTOP, ("Chrome", "desktop")),
            (SAFARI_IPHONE, ("Safari", "mobile")),
            (FIREFOX_ANDROID, ("Firefox", "mobile")),
            ("Mozilla/5.0 (iPad) Safari/605.1.15", ("Safari", "tablet")),
            ("SomeTablet Firefox/99", ("Firefox", "tablet")),
            ("Mozilla/5.0 Edge/18.19041", ("Edge", "desktop")),
            ("curl/8.4.0", ("Unknown", "desktop")),
            ("", ("Unknown", "desktop")),
            (None, ("Unknown", "desktop")),
        ],
    )
    def test_rules(self, ua, expected):
        assert classify_user_agent(ua) == expected

    def test_chromium_edge_is_labelled_chrome(self):
        assert classify_user_agent(EDGE_CHROMIUM) == ("Chrome", "desktop")

    def test_mobile_wins_over_tablet(self):
        assert classify_user_agent("iPad Mobile Safari")[1] == "mobile"

    def test_is_pure(self):
        assert classify_user_agent(SAFARI_IPHONE) == classify_user_agent(SAFARI_IPHONE)


class TestExtractRegistrableDomain:
    @pytest.mark.parametrize(
        "url, expected",
        [
            ("https://www.news.example/story", "news.example"),
            ("https://news.example/story?x=1", "news.example"),
            ("http://blog.www.example/", "blog.www.example"),
            ("https://WWW.Search.Example", "search.example"),
            ("https://sub.news.example", "sub.news.example"),
        ],
    )
    def test_extracts_host(self, url, expected):
        assert extract_registrable_domain(url) == expected

    @pytest.mark.parametrize("url", [None, "", "not a url", "/relative/path", "http://[::1"])
    def test_returns_none_for_unusable_input(self, url):
        assert extract_registrable_domain(url) is None


class TestScreenBucket:
    @pytest.mark.parametrize(
        "width, expected",
        [(None, None), (-1, None), (0, "small"), (390, "small"), (768, "medium"),
         (1280, "large"), (1440, "xlarge"), (2560, "xlarge")],
    )
    def test_buckets(self, width, expected):
        assert screen_bucket(width) == expected


class TestNormalizeCountry:
    @pytest.mark.parametrize(
        "value, expected",
        [("DE", "DE"), ("de", "DE"), (" us ", "US"), ("XX", None), ("T1", None),
         ("", None), (None, None), ("USA", None), ("1A", None)],
    )
    def test_normalize(self, value, expected):
        assert normalize_country(value) == expected
