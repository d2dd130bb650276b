from semantics_service.languages import (
    LANGUAGE_NAMES,
    Language,
    is_valid_language,
    parse_language,
    supported_languages,
)


def test_every_language_has_a_name():
    assert set(LANGUAGE_NAMES) == set(Language)


def test_parse_language_accepts_supported_codes():
    assert parse_language("en") is Language.EN
    assert parse_language("it") is Language.IT


def test_parse_language_rejects_bad_codes():
    for code in ("zz", "eng", "e", "", None, "EN", 12):
        assert parse_language(code) is None
        assert is_valid_language(code) is False


def test_supported_languages_is_code_to_name():
    supported = supported_languages()
    assert supported["en"] == "English"
    assert all(len(code) == 2 for code in supported)
    assert len(supported) == len(Language)
