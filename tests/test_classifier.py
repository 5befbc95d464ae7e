"""
Tests for the request classifier.
"""

import pytest

from linktrack.services.classifier import DEFAULT_BOT_SIGNATURES, RequestClassifier, Verdict, classify

CRAWLER_USER_AGENTS = [
    "facebookexternalhit/1.1 (+http://www.facebook.com/externalhit_uatext.php)",
    "Facebot",
    "Twitterbot/1.0",
    "TelegramBot (like TwitterBot)",
    "Slackbot-LinkExpanding 1.0 (+https://api.slack.com/robots)",
    "WhatsApp/2.23.20.0",
    "LinkedInBot/1.0 (compatible; Mozilla/5.0; Apache-HttpClient +http://www.linkedin.com)",
    "Mozilla/5.0 (compatible; Discordbot/2.0; +https://discordapp.com)",
    "Mozilla/5.0 (compatible; Googlebot/2.1; +http://www.google.com/bot.html)",
    "SomeCrawler/3.1",
    "my-spider",
    "Generic Scraper",
]

BROWSER_USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0 Safari/537.36",
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1",
    "Mozilla/5.0 (X11; Linux x86_64; rv:121.0) Gecko/20100101 Firefox/121.0",
]


class TestClassify:

    @pytest.mark.parametrize("user_agent", CRAWLER_USER_AGENTS)
    def test_crawlers_are_bots(self, user_agent):
        assert classify(user_agent) is Verdict.BOT

    @pytest.mark.parametrize("user_agent", BROWSER_USER_AGENTS)
    def test_browsers_are_human(self, user_agent):
        assert classify(user_agent) is Verdict.HUMAN

    @pytest.mark.parametrize("user_agent", [None, ""])
    def test_missing_user_agent_is_human(self, user_agent):
        """Unknown clients are redirected, not previewed."""
        assert classify(user_agent) is Verdict.HUMAN

    def test_match_is_case_insensitive(self):
        assert classify("TWITTERBOT") is Verdict.BOT
        assert classify("whatsapp") is Verdict.BOT


class TestRequestClassifier:

    def test_extra_signatures_extend_defaults(self):
        classifier = RequestClassifier(extra_signatures=["Embedly", "  "])
        assert classifier.is_bot("Mozilla/5.0 (compatible; Embedly/0.2)")
        assert classifier.is_bot("Twitterbot/1.0")
        assert "" not in classifier.signatures

    def test_signatures_are_lowercased_and_unique(self):
        classifier = RequestClassifier(extra_signatures=["BOT"])
        assert classifier.signatures.count("bot") == 1
        assert len(classifier.signatures) == len(DEFAULT_BOT_SIGNATURES)
