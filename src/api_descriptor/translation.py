"""Translatable text values resolved against locale-scoped dictionaries."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol, Union

import yaml
from typing_extensions import TypeAliasType

from .exceptions import MetadataLoadError

logger = logging.getLogger(__name__)

TRANSLATION_KEY_PREFIX = "i18n:"
BUNDLE_SEPARATOR = "#"
ROOT_LOCALE = ""

_ROOT_LOCALE_ALIASES = ("default", "root")


class TranslationDictionary(Protocol):
    """Source of translated strings."""

    def lookup(self, key: str, locale: str) -> Optional[str]:
        """Return the text stored for ``key`` in exactly ``locale``, if any."""


@dataclass(frozen=True)
class LiteralText:
    """Text rendered verbatim in every locale."""

    raw: str

    def __str__(self) -> str:
        return self.raw


@dataclass(frozen=True)
class KeyedText:
    """Text looked up in a dictionary when it is rendered."""

    raw: str

    @property
    def key(self) -> str:
        """Dictionary key, the raw value without the translation prefix."""
        return self.raw[len(TRANSLATION_KEY_PREFIX) :]

    def __str__(self) -> str:
        return self.raw


TranslatableText = TypeAliasType("TranslatableText", Union[LiteralText, KeyedText])


def wrap(raw: str) -> TranslatableText:
    """Store ``raw`` as translatable text without resolving it."""
    if raw.startswith(TRANSLATION_KEY_PREFIX):
        return KeyedText(raw)
    return LiteralText(raw)


def wrap_optional(raw: Union[str, TranslatableText, None]) -> Optional[TranslatableText]:
    """Wrap strings, pass through wrapped values and ``None``."""
    if raw is None or isinstance(raw, (LiteralText, KeyedText)):
        return raw
    return wrap(raw)


def normalize_locale(locale: str) -> str:
    """Normalize a locale tag, e.g. ``en_gb`` to ``en-GB``.

    The language is lower-cased, a four-letter script is title-cased and
    regions are upper-cased.
    """
    parts = [part for part in locale.strip().replace("_", "-").split("-") if part]
    if not parts:
        return ""
    normalized = [parts[0].lower()]
    for part in parts[1:]:
        if len(part) == 4 and part.isalpha():
            normalized.append(part.title())
        elif len(part) == 2 or (len(part) == 3 and part.isdigit()):
            normalized.append(part.upper())
        else:
            normalized.append(part)
    return "-".join(normalized)


def locale_chain(locale: str, default_locale: Optional[str] = None) -> list[str]:
    """Return the lookup order for ``locale``.

    The chain walks from the most specific tag to its language, then through
    the default locale the same way, and ends with the root locale.

    Args:
        locale (str): Requested locale, e.g. ``en-GB``.
        default_locale (Optional[str]): Locale used when the request misses.

    Returns:
        list[str]: Distinct locale tags, most specific first.
    """
    chain: list[str] = []
    for tag in (locale, default_locale):
        if not tag:
            continue
        parts = normalize_locale(tag).split("-")
        for size in range(len(parts), 0, -1):
            candidate = "-".join(parts[:size])
            if candidate and candidate not in chain:
                chain.append(candidate)
    chain.append(ROOT_LOCALE)
    return chain


def resolve(
    text: TranslatableText,
    locale: str,
    dictionary: Optional[TranslationDictionary] = None,
    *,
    default_locale: Optional[str] = None,
) -> str:
    """Render translatable text for ``locale``.

    Literal text is returned unchanged. Keyed text is looked up along the
    locale chain; a miss falls back to the key itself so resolution never
    fails.
    """
    if isinstance(text, LiteralText):
        return text.raw

    key = text.key
    if dictionary is not None:
        for candidate in locale_chain(locale, default_locale):
            value = dictionary.lookup(key, candidate)
            if value is not None:
                return value

    logger.warning("No translation for %r in locale %r; using the key", key, locale)
    return key


class MappingDictionary:
    """In-memory dictionary shaped ``{locale: {key: text}}``."""

    def __init__(self, entries: Mapping[str, Mapping[str, str]]) -> None:
        self._entries: dict[str, dict[str, str]] = {}
        for locale, texts in entries.items():
            self._entries.setdefault(_locale_key(locale), {}).update(texts)

    def lookup(self, key: str, locale: str) -> Optional[str]:
        """Return the text for ``key`` in ``locale``."""
        texts = self._entries.get(_locale_key(locale))
        if texts is None:
            return None
        return texts.get(key)

    def locales(self) -> list[str]:
        """Return the locales with at least one entry."""
        return sorted(self._entries)

    def merge(self, other: Mapping[str, Mapping[str, str]]) -> None:
        """Add entries, later values replacing earlier ones."""
        for locale, texts in other.items():
            self._entries.setdefault(_locale_key(locale), {}).update(texts)


def load_dictionary(directory: Path) -> MappingDictionary:
    """Load every ``<bundle>.yaml`` file in ``directory``.

    Each file maps locale tags to ``{key: text}`` tables. Keys are stored as
    ``<bundle>#<key>`` so that ``i18n:<bundle>#<key>`` values find them.

    Args:
        directory (Path): Directory holding the bundle files.

    Returns:
        MappingDictionary: Dictionary with the entries of all bundles.
    """
    if not directory.is_dir():
        raise MetadataLoadError(f"Dictionary directory not found: {directory}")

    dictionary = MappingDictionary({})
    for path in _iter_bundle_paths(directory):
        bundle = path.stem
        payload = _load_bundle(path)
        dictionary.merge(
            {
                locale: {f"{bundle}{BUNDLE_SEPARATOR}{key}": text for key, text in texts.items()}
                for locale, texts in payload.items()
            }
        )
        logger.debug("Loaded translation bundle %s from %s", bundle, path)
    return dictionary


@dataclass(frozen=True)
class Translator:
    """Dictionary plus default locale used while rendering descriptions."""

    dictionary: Optional[TranslationDictionary] = None
    default_locale: Optional[str] = None

    def translate(self, text: TranslatableText, locale: str) -> str:
        """Resolve ``text`` for ``locale``."""
        return resolve(text, locale, self.dictionary, default_locale=self.default_locale)


def _iter_bundle_paths(directory: Path) -> Iterable[Path]:
    paths = sorted(directory.glob("*.yaml")) + sorted(directory.glob("*.yml"))
    return [path for path in paths if path.is_file()]


def _load_bundle(path: Path) -> dict[str, dict[str, str]]:
    try:
        with path.open("r", encoding="utf-8") as handle:
            payload = yaml.safe_load(handle)
    except OSError as exc:
        raise MetadataLoadError(f"Failed to read dictionary {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise MetadataLoadError(f"Failed to parse YAML in {path}: {exc}") from exc

    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise MetadataLoadError(f"Dictionary {path} must map locales to tables, got {type(payload)!r}")

    bundle: dict[str, dict[str, str]] = {}
    for locale, texts in payload.items():
        if not isinstance(texts, dict):
            raise MetadataLoadError(f"Locale {locale!r} in {path} must map keys to text")
        bundle[str(locale)] = {str(key): str(value) for key, value in texts.items()}
    return bundle


def _locale_key(locale: str) -> str:
    normalized = normalize_locale(locale)
    if normalized.lower() in _ROOT_LOCALE_ALIASES:
        return ROOT_LOCALE
    return normalized
