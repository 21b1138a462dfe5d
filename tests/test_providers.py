import unittest
from unittest import mock

import requests

from aiwire.config import Config
from aiwire.errors import TranslationRateLimited, TranslationTransient
from aiwire.translation.providers import (
    GoogleTranslateProvider,
    LibreTranslateProvider,
    build_providers,
    libretranslate_language,
)


def _response(status=200, payload=None, headers=None):
    resp = mock.Mock()
    resp.status_code = status
    resp.headers = headers or {}
    resp.text = "" if payload is None else str(payload)
    if isinstance(payload, Exception):
        resp.json.side_effect = payload
    else:
        resp.json.return_value = payload
    return resp


class TestGoogleTranslateProvider(unittest.TestCase):
    def test_joins_segments(self):
        session = mock.Mock()
        session.get.return_value = _response(payload=[[["你好，", "Hello, ", None], ["世界", "world", None]], None, "en"])
        provider = GoogleTranslateProvider(session=session)
        self.assertEqual(provider.translate("Hello, world", target="zh-CN"), "你好，世界")
        params = session.get.call_args.kwargs["params"]
        self.assertEqual((params["client"], params["tl"], params["q"]), ("gtx", "zh-CN", "Hello, world"))

    def test_429_is_rate_limited(self):
        session = mock.Mock()
        session.get.return_value = _response(status=429, headers={"Retry-After": "60"})
        with self.assertRaises(TranslationRateLimited) as ctx:
            GoogleTranslateProvider(session=session).translate("Hi", target="zh-CN")
        self.assertEqual(ctx.exception.provider, "google")

    def test_server_error_is_transient(self):
        session = mock.Mock()
        session.get.return_value = _response(status=503)
        with self.assertRaises(TranslationTransient):
            GoogleTranslateProvider(session=session).translate("Hi", target="zh-CN")

    def test_timeout_is_transient(self):
        session = mock.Mock()
        session.get.side_effect = requests.Timeout("read timeout")
        with self.assertRaises(TranslationTransient):
            GoogleTranslateProvider(session=session).translate("Hi", target="zh-CN")

    def test_bad_payload_is_transient(self):
        session = mock.Mock()
        session.get.return_value = _response(payload=ValueError("no json"))
        with self.assertRaises(TranslationTransient):
            GoogleTranslateProvider(session=session).translate("Hi", target="zh-CN")


class TestLibreTranslateProvider(unittest.TestCase):
    def test_posts_json(self):
        session = mock.Mock()
        session.post.return_value = _response(payload={"translatedText": "你好"})
        provider = LibreTranslateProvider("https://lt.example.com/", api_key="k", session=session)
        self.assertEqual(provider.translate("Hello", target="zh-CN"), "你好")
        args, kwargs = session.post.call_args
        self.assertEqual(args[0], "https://lt.example.com/translate")
        self.assertEqual(kwargs["json"]["target"], "zh")
        self.assertEqual(kwargs["json"]["api_key"], "k")

    def test_missing_field_is_transient(self):
        session = mock.Mock()
        session.post.return_value = _response(payload={"error": "nope"})
        with self.assertRaises(TranslationTransient):
            LibreTranslateProvider("https://lt.example.com", session=session).translate("Hello", target="zh-CN")

    def test_language_codes(self):
        self.assertEqual(libretranslate_language("zh-CN"), "zh")
        self.assertEqual(libretranslate_language("zh-TW"), "zt")
        self.assertEqual(libretranslate_language("ja"), "ja")


class TestBuildProviders(unittest.TestCase):
    def test_order_and_skip_unconfigured_libre(self):
        providers = build_providers(Config(translation_providers=["google", "libre"]), session=mock.Mock())
        self.assertEqual([p.name for p in providers], ["google"])

        providers = build_providers(
            Config(translation_providers=["libre", "google"], libretranslate_url="https://lt.example.com"),
            session=mock.Mock(),
        )
        self.assertEqual([p.name for p in providers], ["libre", "google"])


if __name__ == "__main__":
    unittest.main()
