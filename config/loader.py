"""Configuration file loader and validator.

Reads the INI configuration file into the ``models.config_models.Config`` dataclasses,
converting each value to the type of the field's default, and validates the result.
Raises exceptions for any issues encountered during loading.
"""

from __future__ import annotations

import ast
import configparser
from configparser import ConfigParser
from dataclasses import fields
from pathlib import Path
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit

from models.config_models import Config
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable
    from dataclasses import Field as DataclassField
else:
    from dataclasses import Field as DataclassField

__all__: list[str] = [
    "ConfigFileNotFoundError",
    "ConfigFormatError",
    "ConfigLoader",
    "ConfigTypeError",
    "ConfigValueError",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

SERVICE_HOST_PREFIX: str = "translate.google"


class ConfigLoaderError(Exception):
    """An error occurred while processing the configuration file."""


class ConfigFileNotFoundError(ConfigLoaderError):
    """The specified configuration file does not exist."""


class ConfigFormatError(ConfigLoaderError):
    """The configuration file is not formatted correctly."""


class ConfigValueError(ConfigFormatError):
    """The configuration file contains an invalid value."""


class ConfigTypeError(ConfigFormatError):
    """The configuration file contains an invalid type."""


class ConfigLoader:
    """Loads and validates the client configuration.

    Keys missing from the file keep their dataclass defaults, so an empty file yields a
    working configuration pointing at the default service host.

    Args:
        config_filename (str): INI file name to load.
        script_name (str): Name of the calling script, used in error messages.
        debug (bool): Optional override forcing ``GENERAL.DEBUG``.

    Raises:
        ConfigFileNotFoundError: If the configuration file does not exist.
        ConfigFormatError: If the file cannot be parsed or contains invalid values/types.
    """

    def __init__(
        self,
        *,
        config_filename: str,
        script_name: str = "",
        **args,
    ) -> None:
        config_path = Path(config_filename)
        msg: str
        if not config_path.exists():
            msg = f"Configuration file '{config_filename}' not found."
            if script_name:
                msg += f" Please create '{config_filename}' in the same directory as '{script_name}'."
            raise ConfigFileNotFoundError(msg)

        parser: ConfigParser = ConfigParser()

        try:
            parser.read(config_filename, encoding="utf-8")
        except configparser.Error as err:
            msg = f"Failed to parse configuration file '{config_filename}': {err}"
            raise ConfigFormatError(msg) from None

        self.config = Config()
        self._convert_settings(parser)
        if args.get("debug", False):
            self.config.GENERAL.DEBUG = True
        if self.config.GENERAL.DEBUG:
            self.config.GENERAL.LOG_LEVEL = "DEBUG"
        self._validate_settings()

    def _convert_settings(self, parser: ConfigParser) -> None:
        formatter = _ConfigFormatter(self.config, parser)
        for section in fields(self.config):
            if not parser.has_section(section.name):
                logger.debug("Section '%s' not defined, using defaults", section.name)
                continue
            self._convert_section_field(parser, formatter, section)

    def _convert_section_field(
        self, parser: ConfigParser, formatter: _ConfigFormatter, section: DataclassField[Any]
    ) -> None:
        for key in fields(getattr(self.config, section.name)):
            if not parser.has_option(section.name, key.name):
                logger.debug("Skipping undefined setting: '%s.%s'", section.name, key.name)
                continue

            formatted_value = formatter.apply_format(section, key)
            setattr(getattr(self.config, section.name), key.name, formatted_value)

    def _validate_settings(self) -> None:
        """Validate the service URLs and the numeric retry settings.

        Raises:
            ConfigFormatError: If validation fails for any setting.
        """
        self._validate_service_urls("TRANSLATION", "SERVICE_URLS")
        self._validate_url("TRANSLATION", "SECRET_SOURCE", self.config.TRANSLATION.SECRET_SOURCE)
        self._validate_positive("TRANSLATION", "TIMEOUT")
        self._validate_positive("SECRET", "RETRY_DELAY")
        self._validate_positive("SECRET", "REFRESH_TIMEOUT")
        self._validate_positive("DISPATCHER", "MAX_ATTEMPTS")
        self._validate_positive("DISPATCHER", "POST_THRESHOLD")
        if self.config.DISPATCHER.RATE_LIMIT_BACKOFF < 0:
            msg = "'DISPATCHER.RATE_LIMIT_BACKOFF' must not be negative"
            raise ConfigValueError(msg)

    def _validate_service_urls(self, section_name: str, key_name: str) -> None:
        value: Any = getattr(getattr(self.config, section_name), key_name)
        field_name: str = f"{section_name}.{key_name}"

        if isinstance(value, str):
            value = [value]
            setattr(getattr(self.config, section_name), key_name, value)
        if not isinstance(value, list) or not all(isinstance(url, str) for url in value):
            msg: str = f"Unsupported type used for '{field_name}': {type(value)}"
            raise ConfigTypeError(msg)

        for url in value:
            self._validate_url(section_name, key_name, url)

    def _validate_url(self, section_name: str, key_name: str, url: str) -> None:
        field_name: str = f"{section_name}.{key_name}"
        parts = urlsplit(url)
        if parts.scheme not in ("http", "https") or not parts.hostname:
            msg: str = f"'{field_name}' contains an invalid URL: '{url}'"
            raise ConfigValueError(msg)
        if not parts.hostname.startswith(SERVICE_HOST_PREFIX):
            logger.warning("'%s' is not a %s.* host: '%s'", field_name, SERVICE_HOST_PREFIX, url)

    def _validate_positive(self, section_name: str, key_name: str) -> None:
        value: int | float = getattr(getattr(self.config, section_name), key_name)
        if value <= 0:
            msg: str = f"'{section_name}.{key_name}' must be greater than 0, got {value}"
            raise ConfigValueError(msg)


class _ConfigFormatter:
    """Converts INI string values to typed Python objects (bool, int, float, list, str)."""

    def __init__(self, config: Config, parser: ConfigParser) -> None:
        self.config: Config = config
        self.parser: ConfigParser = parser

    def apply_format(self, section: DataclassField[Any], key: DataclassField[Any]) -> Any:
        """Convert an INI value to the type of the field's current (default) value.

        bool/int/float fields are parsed directly; any other field is evaluated as a
        Python literal, so strings must be quoted and lists written as ``["a", "b"]``.

        Raises:
            ConfigValueError: If a value cannot be coerced to the expected type.
            ConfigFormatError: If literal evaluation fails due to invalid syntax.
            ConfigTypeError: If an unexpected type is encountered during coercion.
        """
        formatters: dict[
            type[bool | int | float], Callable[[DataclassField[Any], DataclassField[Any]], bool | int | float]
        ] = {
            bool: self.parse_as_boolean,
            int: self.parse_as_integer,
            float: self.parse_as_float,
        }

        formatter: Callable[[DataclassField[Any], DataclassField[Any]], bool | int | float] | None = formatters.get(
            type(getattr(getattr(self.config, section.name), key.name))
        )
        if formatter:
            try:
                return formatter(section, key)
            except ValueError as err:
                msg = f"Invalid value for {section.name}.{key.name}: {err}"
                raise ConfigValueError(msg) from err
            except TypeError as err:
                msg = f"Invalid value for {section.name}.{key.name}: {err}"
                raise ConfigTypeError(msg) from err

        value_str: str = self.parser[section.name][key.name]
        try:
            return ast.literal_eval(value_str)
        except ValueError as err:
            msg = f"Invalid literal for {section.name}.{key.name}: {value_str}"
            raise ConfigValueError(msg) from err
        except SyntaxError as err:
            msg = f"Invalid literal for {section.name}.{key.name}: {value_str}"
            raise ConfigFormatError(msg) from err

    def _strip_quotes(self, section: DataclassField[Any], key: DataclassField[Any]) -> str:
        value: str = self.parser.get(section.name, key.name)
        for char in ("'", '"'):
            value = value.removeprefix(char).removesuffix(char)
        return value

    def parse_as_float(self, section: DataclassField[Any], key: DataclassField[Any]) -> float:
        return float(self._strip_quotes(section, key))

    def parse_as_integer(self, section: DataclassField[Any], key: DataclassField[Any]) -> int:
        return int(float(self._strip_quotes(section, key)))

    def parse_as_boolean(self, section: DataclassField[Any], key: DataclassField[Any]) -> bool:
        return self.parser.getboolean(section.name, key.name)
