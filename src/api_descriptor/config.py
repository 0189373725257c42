"""
Configuration for rendering API descriptions.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .translation import MappingDictionary, Translator, load_dictionary


class Settings(BaseSettings):
    """
    Rendering configuration loaded from environment variables.

    Environment variables:
        API_DESCRIPTOR_DEFAULT_LOCALE: Locale used when a requested locale has
            no translation. Default: en
        API_DESCRIPTOR_DICTIONARY_DIR: Directory of ``<bundle>.yaml``
            translation files. Unset means no dictionary.
        API_DESCRIPTOR_LOG_LEVEL: Logging level name. Default: WARNING
    """

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    default_locale: str = Field(
        default="en",
        alias="API_DESCRIPTOR_DEFAULT_LOCALE",
        description="Fallback locale for translatable text",
    )

    dictionary_dir: Optional[Path] = Field(
        default=None,
        alias="API_DESCRIPTOR_DICTIONARY_DIR",
        description="Directory holding translation bundles",
    )

    log_level: str = Field(
        default="WARNING",
        alias="API_DESCRIPTOR_LOG_LEVEL",
        description="Logging level name",
    )

    @field_validator("log_level")
    @classmethod
    def known_level(cls, value: str) -> str:
        level = value.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value!r}")
        return level

    def translator(self) -> Translator:
        """Build the translator these settings describe."""
        dictionary: Optional[MappingDictionary] = None
        if self.dictionary_dir is not None:
            dictionary = load_dictionary(self.dictionary_dir)
        return Translator(dictionary=dictionary, default_locale=self.default_locale)
