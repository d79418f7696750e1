"""
test_translator.py - translation catalogs
"""

import json
from pathlib import Path

import pytest

from ipsqr.domain.constants import SUPPORTED_LANGUAGES
from ipsqr.domain.errors import ErrorCodes, UnsupportedLanguageError
from ipsqr.i18n.translator import LOCALES_DIR, Translator, load_catalogs


class TestLoadCatalogs:

    def test_bundled_catalogs_present(self):
        catalogs = load_catalogs()

        assert set(catalogs) == set(SUPPORTED_LANGUAGES)

    def test_catalogs_share_notification_keys(self):
        catalogs = load_catalogs()
        english = set(catalogs["en"]["notifications"])

        for language in ("sr_RS_Latn", "sr_RS"):
            assert set(catalogs[language]["notifications"]) == english

    def test_broken_catalog_skipped(self, tmp_path: Path):
        (tmp_path / "en.json").write_text(
            (LOCALES_DIR / "en.json").read_text(encoding="utf-8"), encoding="utf-8"
        )
        (tmp_path / "sr_RS.json").write_text("{broken", encoding="utf-8")

        catalogs = load_catalogs(tmp_path)

        assert set(catalogs) == {"en"}


class TestTranslate:

    def test_default_language(self, translator: Translator):
        assert translator.language == "sr_RS_Latn"

    def test_translate_with_params(self, translator: Translator):
        text = translator.translate(
            "notifications.languageChanged", {"language": "English"}, language="en"
        )

        assert text == "Language changed to English"

    def test_active_language_used(self, translator: Translator):
        translator.set_language("sr_RS_Latn")

        text = translator.t("notifications.languageChanged", {"language": "Latinica"})

        assert text == "Jezik promenjen na Latinica"

    def test_cyrillic(self, translator: Translator):
        translator.set_language("sr_RS")

        text = translator.t("notifications.languageChanged", {"language": "Ћирилица"})

        assert text.startswith("Језик")

    def test_fallback_to_english(self, translator: Translator):
        translator.set_language("sr_RS")

        assert translator.t("common.appName") == "NBS IPS QR"

    def test_missing_key_returns_key(self, translator: Translator):
        assert translator.t("no.such.key") == "no.such.key"

    def test_non_leaf_key_returns_key(self, translator: Translator):
        assert translator.t("notifications") == "notifications"

    def test_unknown_placeholder_left_intact(self):
        translator = Translator({"en": {"greet": "Hi {{name}} {{other}}"}}, language="en")

        assert translator.t("greet", {"name": "Ana"}) == "Hi Ana {{other}}"

    def test_unsupported_language_rejected(self, translator: Translator):
        with pytest.raises(UnsupportedLanguageError) as exc_info:
            translator.set_language("de")

        assert exc_info.value.code == ErrorCodes.UNSUPPORTED_LANGUAGE
        assert translator.language == "sr_RS_Latn"


class TestLabels:

    def test_endpoint_label(self, translator: Translator):
        assert translator.endpoint_label("/gen", language="en") == "Generate Image"
        assert translator.endpoint_label("/upload", language="en") == "Upload & Validate"

    def test_unknown_endpoint_label(self, translator: Translator):
        assert translator.endpoint_label("/other") == "/other"

    @pytest.mark.parametrize("code,name", [
        ("sr_RS_Latn", "Latinica"),
        ("sr_RS", "Ćirilica"),
        ("en", "English"),
    ])
    def test_language_name(self, code, name):
        assert Translator.language_name(code) == name


def test_catalog_files_are_valid_json():
    for path in LOCALES_DIR.glob("*.json"):
        json.loads(path.read_text(encoding="utf-8"))
