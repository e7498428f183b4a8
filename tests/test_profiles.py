from __future__ import annotations

import copy
import dataclasses
import re

import pytest

from core.models import TokenClass
from core.profiles import (
    CATEGORY_ORDER,
    C_FAMILY_CONFIG,
    HeuristicDetector,
    LanguageProfile,
    ProfileConfigError,
    ProfileRegistry,
    ProfileRule,
    build_profile,
    default_registry,
    detect_profile,
)
from core.segmenter import segment_line

SQL_CONFIG = {
    "id": "sql",
    "rules": {
        "strings": r"'(?:[^'\\]|\\.)*'",
        "comments": r"--.*$",
        "keywords": r"\b(?:SELECT|FROM|WHERE)\b",
        "types": r"\b[A-Z][a-z]+\b",
        "functions": r"\b[a-z_]+(?=\()",
        "numbers": r"\b\d+\b",
    },
}


def _config_with(**rules: str) -> dict:
    config = copy.deepcopy(C_FAMILY_CONFIG)
    config["id"] = "custom"
    config["rules"].update(rules)
    return config


def test_builtin_profiles_follow_precedence_order() -> None:
    registry = default_registry()
    assert registry.ids() == ["c-family", "python"]
    assert registry.default.id == "c-family"
    for profile_id in registry.ids():
        categories = [rule.category for rule in registry.get(profile_id).rules]
        assert tuple(categories) == CATEGORY_ORDER


def test_rule_classes_match_categories() -> None:
    profile = default_registry().get("python")
    classes = [rule.token_class for rule in profile.rules]
    assert classes == [
        TokenClass.STRING,
        TokenClass.COMMENT,
        TokenClass.KEYWORD,
        TokenClass.TYPE_NAME,
        TokenClass.CALL,
        TokenClass.NUMBER,
    ]


def test_missing_category_is_rejected() -> None:
    config = copy.deepcopy(C_FAMILY_CONFIG)
    del config["rules"]["numbers"]
    with pytest.raises(ProfileConfigError, match="missing rule categories: numbers"):
        build_profile(config)


def test_unknown_category_is_rejected() -> None:
    with pytest.raises(ProfileConfigError, match="unknown rule categories: operators"):
        build_profile(_config_with(operators=r"[+\-]"))


def test_empty_rules_are_rejected() -> None:
    with pytest.raises(ProfileConfigError):
        build_profile({"id": "empty", "rules": {}})


def test_missing_id_is_rejected() -> None:
    config = copy.deepcopy(C_FAMILY_CONFIG)
    config["id"] = "  "
    with pytest.raises(ProfileConfigError, match="id is required"):
        build_profile(config)


def test_invalid_regex_is_rejected() -> None:
    with pytest.raises(ProfileConfigError, match="invalid keywords pattern"):
        build_profile(_config_with(keywords="(unclosed"))


def test_pattern_matching_empty_string_is_rejected() -> None:
    with pytest.raises(ProfileConfigError, match="matches the empty string"):
        build_profile(_config_with(numbers=r"\d*"))


def test_detection_requires_block_marker() -> None:
    config = copy.deepcopy(SQL_CONFIG)
    config["detection"] = {"header": r":$"}
    with pytest.raises(ProfileConfigError, match="block_marker"):
        build_profile(config)


def test_duplicate_registration_is_rejected() -> None:
    registry = default_registry()
    with pytest.raises(ProfileConfigError, match="already registered"):
        registry.register(build_profile(C_FAMILY_CONFIG))


def test_register_rejects_rules_out_of_precedence_order() -> None:
    built = build_profile(SQL_CONFIG)
    reordered = LanguageProfile(id="sql-reversed", rules=tuple(reversed(built.rules)))
    with pytest.raises(ProfileConfigError, match="in that order"):
        ProfileRegistry([built, reordered], default_id="sql")


def test_register_rejects_partial_rule_set() -> None:
    keywords_only = LanguageProfile(
        id="keywords-only",
        rules=(ProfileRule("keywords", TokenClass.KEYWORD, re.compile(r"\bSELECT\b")),),
    )
    registry = default_registry()
    with pytest.raises(ProfileConfigError):
        registry.register(keywords_only)
    assert "keywords-only" not in registry


def test_register_rejects_wrong_token_class() -> None:
    built = build_profile(SQL_CONFIG)
    rules = list(built.rules)
    rules[2] = dataclasses.replace(rules[2], token_class=TokenClass.COMMENT)
    with pytest.raises(ProfileConfigError, match="must produce keyword"):
        default_registry().register(LanguageProfile(id="odd", rules=tuple(rules)))


def test_register_rejects_empty_matching_pattern() -> None:
    built = build_profile(SQL_CONFIG)
    rules = list(built.rules)
    rules[-1] = dataclasses.replace(rules[-1], pattern=re.compile(r"\d*"))
    with pytest.raises(ProfileConfigError, match="empty string"):
        default_registry().register(LanguageProfile(id="lazy", rules=tuple(rules)))


@pytest.mark.parametrize("config", ["python", ["python"], None, 3])
def test_non_object_profile_config_is_rejected(config: object) -> None:
    with pytest.raises(ProfileConfigError, match="must be an object"):
        build_profile(config)


def test_non_object_detection_is_rejected() -> None:
    config = copy.deepcopy(SQL_CONFIG)
    config["detection"] = [r"^SELECT"]
    with pytest.raises(ProfileConfigError, match="detection must be an object"):
        build_profile(config)


def test_profile_list_must_be_a_list() -> None:
    with pytest.raises(ProfileConfigError, match="must be a list"):
        default_registry("python")
    with pytest.raises(ProfileConfigError, match="must be a list"):
        default_registry({"id": "sql"})


def test_unknown_default_is_rejected() -> None:
    with pytest.raises(ProfileConfigError, match="Default profile"):
        ProfileRegistry([build_profile(SQL_CONFIG)], default_id="c-family")


def test_unknown_profile_lookup_raises_key_error() -> None:
    with pytest.raises(KeyError):
        default_registry().get("cobol")


def test_configured_profile_segments_without_touching_the_segmenter() -> None:
    registry = default_registry([SQL_CONFIG])
    assert "sql" in registry
    tokens = segment_line("SELECT count(id) FROM Users -- all", registry.get("sql"))
    pairs = [(t.text, t.token_class) for t in tokens]
    assert pairs == [
        ("SELECT", TokenClass.KEYWORD),
        (" ", TokenClass.PLAIN),
        ("count", TokenClass.CALL),
        ("(id) ", TokenClass.PLAIN),
        ("FROM", TokenClass.KEYWORD),
        (" ", TokenClass.PLAIN),
        ("Users", TokenClass.TYPE_NAME),
        (" ", TokenClass.PLAIN),
        ("-- all", TokenClass.COMMENT),
    ]


def test_detects_python_with_def_and_import() -> None:
    document = "import os\n\nresult = main\ndef main(argv=None)\n    return 0\n"
    assert detect_profile(document) == "python"


def test_detects_python_with_def_and_colon_header() -> None:
    document = "def main():\n    return 0\n"
    assert detect_profile(document) == "python"


def test_def_without_header_or_import_falls_back() -> None:
    assert detect_profile("def helper\nconst x = 1;\n") == "c-family"


def test_def_mid_line_is_not_a_block_marker() -> None:
    document = "// def main():\nimport x from 'y';\n"
    assert detect_profile(document) == "c-family"


def test_c_family_document_uses_default() -> None:
    document = "import React from 'react';\nexport const App = () => {\n  return null;\n};\n"
    assert detect_profile(document) == "c-family"


def test_detector_uses_configured_profiles() -> None:
    config = copy.deepcopy(SQL_CONFIG)
    config["detection"] = {"block_marker": r"^SELECT\b", "import": r"^\s*FROM\b"}
    registry = default_registry([config])
    detector = HeuristicDetector(registry)
    assert detector.detect("SELECT id\n  FROM users\n") == "sql"
    assert detector.detect("const a = 1;\n") == "c-family"
