"""Language profiles, the profile registry and language detection (core domain)."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import re
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

from core.models import TokenClass

LOGGER = logging.getLogger(__name__)

# Segmentation precedence. Strings and comments must swallow their contents
# before any other category runs; keywords before the type/call heuristics.
CATEGORY_ORDER: Tuple[str, ...] = (
    "strings",
    "comments",
    "keywords",
    "types",
    "functions",
    "numbers",
)

CATEGORY_CLASSES: Dict[str, TokenClass] = {
    "strings": TokenClass.STRING,
    "comments": TokenClass.COMMENT,
    "keywords": TokenClass.KEYWORD,
    "types": TokenClass.TYPE_NAME,
    "functions": TokenClass.CALL,
    "numbers": TokenClass.NUMBER,
}

DETECTION_KEYS = ("block_marker", "header", "import")


class ProfileConfigError(ValueError):
    """Raised when a language profile cannot be built from its config."""


@dataclass(frozen=True)
class ProfileRule:
    """One compiled rule category of a profile."""

    category: str
    token_class: TokenClass
    pattern: re.Pattern


@dataclass(frozen=True)
class DetectionHints:
    """Whole-document markers used by the heuristic detector.

    A profile is picked when ``block_marker`` matches AND either ``header`` or
    ``import`` matches. All three are compiled with ``re.MULTILINE``.
    """

    block_marker: re.Pattern
    header: Optional[re.Pattern]
    import_marker: Optional[re.Pattern]

    def matches(self, document: str) -> bool:
        if not self.block_marker.search(document):
            return False
        if self.header is not None and self.header.search(document):
            return True
        return self.import_marker is not None and bool(self.import_marker.search(document))


@dataclass(frozen=True)
class LanguageProfile:
    """Ordered rule set defining how one language's lines are segmented."""

    id: str
    rules: Tuple[ProfileRule, ...]
    detection: Optional[DetectionHints] = None


def _compile(profile_id: str, label: str, raw: str, flags: int = 0) -> re.Pattern:
    if not isinstance(raw, str) or not raw:
        raise ProfileConfigError(f"Profile {profile_id!r}: {label} pattern must be a non-empty string")
    try:
        return re.compile(raw, flags)
    except re.error as exc:
        raise ProfileConfigError(f"Profile {profile_id!r}: invalid {label} pattern {raw!r}: {exc}") from exc


def validate_profile(profile: LanguageProfile) -> None:
    """Check that a compiled profile can be segmented with correct precedence.

    Rules must cover every category of ``CATEGORY_ORDER`` exactly once and in
    that order, carry the class of their category, and never match the empty
    string. Failing here keeps a broken profile from silently mis-tokenizing
    every line later on.
    """

    if not isinstance(profile.id, str) or not profile.id.strip():
        raise ProfileConfigError("Profile id is required")
    categories = tuple(rule.category for rule in profile.rules)
    if categories != CATEGORY_ORDER:
        raise ProfileConfigError(
            f"Profile {profile.id!r}: rule categories must be {', '.join(CATEGORY_ORDER)} "
            f"in that order, got {', '.join(categories) or 'none'}"
        )
    for rule in profile.rules:
        if rule.token_class is not CATEGORY_CLASSES[rule.category]:
            raise ProfileConfigError(
                f"Profile {profile.id!r}: {rule.category} rule must produce {CATEGORY_CLASSES[rule.category].value}"
            )
        if rule.pattern.fullmatch("") is not None:
            raise ProfileConfigError(
                f"Profile {profile.id!r}: {rule.category} pattern {rule.pattern.pattern!r} matches the empty string"
            )


def build_profile(profile_config: dict) -> LanguageProfile:
    """Compile a profile config and validate the result."""

    if not isinstance(profile_config, dict):
        raise ProfileConfigError(f"Profile config must be an object, got {type(profile_config).__name__}")

    profile_id = str(profile_config.get("id") or "").strip()
    if not profile_id:
        raise ProfileConfigError("Profile id is required")

    raw_rules = profile_config.get("rules")
    if not isinstance(raw_rules, dict) or not raw_rules:
        raise ProfileConfigError(f"Profile {profile_id!r}: rules must be a non-empty mapping")

    unknown = sorted(set(raw_rules) - set(CATEGORY_ORDER))
    if unknown:
        raise ProfileConfigError(f"Profile {profile_id!r}: unknown rule categories: {', '.join(unknown)}")
    missing = [category for category in CATEGORY_ORDER if category not in raw_rules]
    if missing:
        raise ProfileConfigError(f"Profile {profile_id!r}: missing rule categories: {', '.join(missing)}")

    compiled = tuple(
        ProfileRule(
            category=category,
            token_class=CATEGORY_CLASSES[category],
            pattern=_compile(profile_id, category, raw_rules[category]),
        )
        for category in CATEGORY_ORDER
    )

    detection = None
    raw_detection = profile_config.get("detection")
    if raw_detection:
        if not isinstance(raw_detection, dict):
            raise ProfileConfigError(f"Profile {profile_id!r}: detection must be an object")
        if "block_marker" not in raw_detection:
            raise ProfileConfigError(f"Profile {profile_id!r}: detection requires a block_marker")
        extra = sorted(set(raw_detection) - set(DETECTION_KEYS))
        if extra:
            raise ProfileConfigError(f"Profile {profile_id!r}: unknown detection keys: {', '.join(extra)}")
        header = raw_detection.get("header")
        import_marker = raw_detection.get("import")
        detection = DetectionHints(
            block_marker=_compile(profile_id, "block_marker", raw_detection["block_marker"], re.MULTILINE),
            header=_compile(profile_id, "header", header, re.MULTILINE) if header else None,
            import_marker=_compile(profile_id, "import", import_marker, re.MULTILINE) if import_marker else None,
        )

    profile = LanguageProfile(id=profile_id, rules=compiled, detection=detection)
    validate_profile(profile)
    return profile


C_FAMILY_CONFIG = {
    "id": "c-family",
    "rules": {
        "strings": r""""(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*'|`(?:[^`\\]|\\.)*`""",
        "comments": r"//.*$",
        "keywords": (
            r"\b(?:const|let|var|function|return|if|else|for|while|import|export|from|default|type|"
            r"interface|class|extends|implements|new|this|try|catch|finally|switch|case|break|continue|"
            r"async|await|void|number|string|boolean|any|React|useState|useEffect|useMemo|useCallback|"
            r"useRef|useContext)\b"
        ),
        "types": r"\b[A-Z][a-zA-Z0-9]*\b",
        "functions": r"\b[a-z][a-zA-Z0-9]*\s*(?=\()",
        "numbers": r"\b\d+\b",
    },
}

PYTHON_CONFIG = {
    "id": "python",
    "rules": {
        "strings": r""""(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*'""",
        "comments": r"#.*$",
        "keywords": (
            r"\b(?:def|class|if|else|elif|for|while|return|import|from|as|pass|break|continue|try|"
            r"except|finally|raise|with|lambda|global|nonlocal|in|not|and|or|is|yield|assert|del|"
            r"async|await|True|False|None)\b"
        ),
        "types": r"\b[A-Z][a-zA-Z0-9]*\b",
        "functions": r"\b[a-z_][a-zA-Z0-9_]*\s*(?=\()",
        "numbers": r"\b\d+\b",
    },
    "detection": {
        "block_marker": r"^[ \t]*(?:async[ \t]+)?def[ \t]+\w+",
        "header": r":[ \t]*(?:#.*)?$",
        "import": r"^[ \t]*(?:import[ \t]+\w|from[ \t]+[\w.]+[ \t]+import[ \t])",
    },
}

BUILTIN_PROFILE_CONFIGS = (C_FAMILY_CONFIG, PYTHON_CONFIG)


class ProfileRegistry:
    """Fixed mapping from profile id to profile, with one default."""

    def __init__(self, profiles: Iterable[LanguageProfile], default_id: str) -> None:
        self._profiles: Dict[str, LanguageProfile] = {}
        for profile in profiles:
            self.register(profile)
        if default_id not in self._profiles:
            raise ProfileConfigError(f"Default profile {default_id!r} is not registered")
        self._default_id = default_id

    def register(self, profile: LanguageProfile) -> None:
        if profile.id in self._profiles:
            raise ProfileConfigError(f"Profile {profile.id!r} is already registered")
        validate_profile(profile)
        self._profiles[profile.id] = profile

    def get(self, profile_id: str) -> LanguageProfile:
        try:
            return self._profiles[profile_id]
        except KeyError:
            raise KeyError(f"Unknown language profile: {profile_id}") from None

    def __contains__(self, profile_id: object) -> bool:
        return profile_id in self._profiles

    def ids(self) -> List[str]:
        return list(self._profiles)

    @property
    def default(self) -> LanguageProfile:
        return self._profiles[self._default_id]

    def candidates(self) -> List[LanguageProfile]:
        """Non-default profiles that declare detection hints, in registration order."""

        return [
            profile
            for profile in self._profiles.values()
            if profile.id != self._default_id and profile.detection is not None
        ]


def default_registry(
    extra_profiles: Sequence[dict] = (),
    default_id: str = "c-family",
) -> ProfileRegistry:
    """Return a registry with the built-in profiles plus any configured ones."""

    if not isinstance(extra_profiles, (list, tuple)):
        raise ProfileConfigError(f"Configured profiles must be a list, got {type(extra_profiles).__name__}")
    profiles = [build_profile(config) for config in BUILTIN_PROFILE_CONFIGS]
    profiles.extend(build_profile(config) for config in extra_profiles)
    registry = ProfileRegistry(profiles, default_id)
    LOGGER.debug("Profile registry ready: %s (default %s)", registry.ids(), default_id)
    return registry


class LanguageDetector(Protocol):
    """Strategy that picks a profile id for a whole document."""

    def detect(self, document: str) -> str:
        ...


class HeuristicDetector:
    """Coarse detector driven by each profile's detection hints.

    The first candidate profile whose hints match wins; anything else falls
    back to the registry default.
    """

    def __init__(self, registry: ProfileRegistry) -> None:
        self._registry = registry

    def detect(self, document: str) -> str:
        for profile in self._registry.candidates():
            if profile.detection.matches(document):
                return profile.id
        return self._registry.default.id


def detect_profile(document: str, registry: Optional[ProfileRegistry] = None) -> str:
    return HeuristicDetector(registry or default_registry()).detect(document)
