"""Central configuration helper for the ombudsman report archive."""

import logging
import os

_TRUE_VALUES = ("true", "1", "yes", "on")


class HelperConfig:
    """Reads all settings from environment variables. An empty variable counts as unset."""

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    ##########################################
    ################ GETTER ##################
    ##########################################

    @staticmethod
    def _get_raw(key: str) -> str | None:
        raw = os.getenv(key.upper())
        if raw is None or not raw.strip():
            return None
        return raw.strip()

    @staticmethod
    def _missing(key: str) -> ValueError:
        return ValueError(f"Environment variable '{key.upper()}' is not set.")

    def get_string_val(self, key: str, default: str | None = None) -> str:
        """Read a string environment variable.

        Args:
            key (str): Environment variable name (case-insensitive).
            default (str | None): Fallback value if the variable is not set.

        Returns:
            str: The stripped value or the default.

        Raises:
            ValueError: If the variable is not set and no default is provided.
        """
        raw = self._get_raw(key)
        if raw is not None:
            return raw
        if default is None:
            raise self._missing(key)
        return default

    def get_number_val(self, key: str, default: float | int | None = None) -> float | int:
        """Read a numeric environment variable. Accepts ints, decimals and exponent notation (4.5e9).

        Raises:
            ValueError: If the variable is not set and no default is provided,
                        or if the value is not a number.
        """
        raw = self._get_raw(key)
        if raw is None:
            if default is None:
                raise self._missing(key)
            return default
        try:
            return int(raw)
        except ValueError:
            pass
        try:
            return float(raw)
        except ValueError:
            raise ValueError(f"Environment variable '{key.upper()}' is not a valid number: '{raw}'.")

    def get_bool_val(self, key: str, default: bool | None = None) -> bool:
        """Read a boolean environment variable ("true", "1", "yes", "on" are true, anything else false)."""
        raw = self._get_raw(key)
        if raw is None:
            if default is None:
                raise self._missing(key)
            return default
        return raw.lower() in _TRUE_VALUES

    def get_list_val(self, key: str, default: list | None = None, separator: str = ",", element_type: type = str) -> list:
        """Read a list environment variable written as "[elem1,elem2,...]".

        Args:
            key (str): Environment variable name (case-insensitive).
            default (list | None): Fallback value if the variable is not set.
            separator (str): Delimiter between the elements.
            element_type (type): Type each element is cast to.

        Returns:
            list: The elements without blanks, [] for "[]".

        Raises:
            ValueError: If the variable is not set and no default is provided.
            ValueError: If the value is not wrapped in brackets or an element cannot be cast.
        """
        raw = self._get_raw(key)
        if raw is None:
            if default is None:
                raise self._missing(key)
            return default
        if not (raw.startswith("[") and raw.endswith("]")):
            raise ValueError(f"Environment variable '{key.upper()}' must be in the format '[elem1{separator}elem2{separator}...]'. Got: '{raw}'")

        elements = [v.strip() for v in raw[1:-1].split(separator) if v.strip()]
        try:
            return [element_type(elem) for elem in elements]
        except ValueError as e:
            raise ValueError(f"Environment variable '{key.upper()}' contains invalid elements: {e}. Type set to {element_type.__name__}. Got: '{raw}'")

    def get_path_val(self, key: str, default: str | None = None) -> str:
        """Read a filesystem path. Relative values (and defaults) are taken relative to the root dir.

        Raises:
            ValueError: If the variable is not set and no default is provided.
        """
        path = self.get_string_val(key, default=default)
        if os.path.isabs(path):
            return path
        return os.path.join(self.get_root_dir(), path)

    def get_root_dir(self) -> str:
        """Return the application root directory: ROOT_DIR, else the working directory."""
        return self._get_raw("ROOT_DIR") or os.getcwd()

    def get_logger(self) -> logging.Logger:
        """Return the application logger."""
        return self._logger
