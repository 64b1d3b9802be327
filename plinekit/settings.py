import ast
import math
from configparser import ConfigParser, ParsingError
from pathlib import Path
from typing import Any, List, Optional, Union

from .exceptions import InvalidParameterError
from .plinemath import REAL_PRECISION

Storable = Union[str, int, float, bool, list, tuple]


class Settings:
    """
    Tolerance settings persisted in an ini file. Each options class owns one section
    (`[offset]`, `[boolean]`). Values are held as strings until they are read back with
    the type of the attribute they restore.

    Usage:
        settings = Settings("plinekit.ini")
        options = OffsetOptions().load(settings)
        options.pos_equal_eps = 1e-6
        options.save(settings)
        settings.write_configuration()
    """

    def __init__(self, config_file=None, ignore_settings=False):
        self.config_file = Path(config_file) if config_file is not None else None
        self.sections = {}
        if self.config_file is not None and not ignore_settings:
            self.read_configuration()

    def __contains__(self, section):
        return section in self.sections

    def read_configuration(self, path=None):
        """
        Merge the sections of an ini file into the settings. A missing, unreadable or
        malformed file changes nothing.

        @param path: file to read, defaults to the settings file
        """
        path = path if path is not None else self.config_file
        if path is None:
            return
        parser = ConfigParser(interpolation=None)
        try:
            parser.read(path, encoding="utf-8")
        except (PermissionError, ParsingError):
            return
        for name in parser.sections():
            self.sections.setdefault(name, {}).update(parser.items(name))

    def write_configuration(self, path=None):
        """
        Write every section to an ini file, defaults to the settings file.
        """
        path = path if path is not None else self.config_file
        if path is None:
            return
        parser = ConfigParser(interpolation=None)
        parser.read_dict(self.sections)
        try:
            with open(path, "w", encoding="utf-8") as fp:
                parser.write(fp)
        except (PermissionError, FileNotFoundError):
            return

    def read_persistent(self, t: type, section: str, key: str, default: Storable = None) -> Any:
        """
        Stored value converted to type t.

        @param t: bool, int, float, str, list or tuple
        @param section: ini section
        @param key: option name
        @param default: returned when the key is missing or does not convert
        """
        value = self.sections.get(section, {}).get(key)
        if value is None:
            return default
        if t is bool:
            return value == "True"
        if t in (list, tuple):
            try:
                return t(ast.literal_eval(value))
            except (ValueError, SyntaxError):
                return default
        try:
            return t(value)
        except ValueError:
            return default

    def write_persistent(self, section: str, key: str, value: Storable):
        if isinstance(value, (str, int, float, bool, list, tuple)):
            self.sections.setdefault(section, {})[str(key)] = str(value)

    def read_persistent_attributes(self, section: str, obj: Any):
        """
        Restore the public attributes of obj from section, each read with the type of
        its current value. Attributes without a stored value keep their value.
        """
        for key, current in vars(obj).items():
            if key.startswith("_"):
                continue
            value = self.read_persistent(type(current), section, key)
            if value is not None:
                setattr(obj, key, value)

    def write_persistent_attributes(self, section: str, obj: Any):
        for key, value in vars(obj).items():
            if not key.startswith("_"):
                self.write_persistent(section, key, value)

    def delete_persistent(self, section: str, key: str):
        self.sections.get(section, {}).pop(key, None)

    def clear_persistent(self, section: str):
        self.sections.pop(section, None)

    def keylist(self, section: str) -> List[str]:
        return list(self.sections.get(section, ()))


class OffsetOptions:
    """
    Tolerances used by the offset engine.

    pos_equal_eps: two positions closer than this are the same position.
    slice_join_eps: slice end points closer than this are joined when stitching.
    offset_dist_eps: slack allowed when checking the distance of slices to the input.
    collapsed_area_eps: closed results with an absolute area below this are dropped.
    """

    section = "offset"

    def __init__(
        self,
        pos_equal_eps=REAL_PRECISION,
        slice_join_eps=1e-4,
        offset_dist_eps=1e-4,
        collapsed_area_eps=1e-5,
    ):
        self.pos_equal_eps = pos_equal_eps
        self.slice_join_eps = slice_join_eps
        self.offset_dist_eps = offset_dist_eps
        self.collapsed_area_eps = collapsed_area_eps

    def __repr__(self):
        return (
            f"OffsetOptions(pos_equal_eps={self.pos_equal_eps}, "
            f"slice_join_eps={self.slice_join_eps}, offset_dist_eps={self.offset_dist_eps}, "
            f"collapsed_area_eps={self.collapsed_area_eps})"
        )

    @classmethod
    def from_tolerance(cls, tolerance):
        return cls(tolerance, 10.0 * tolerance, 10.0 * tolerance, tolerance)

    def load(self, settings: Settings):
        settings.read_persistent_attributes(self.section, self)
        return self

    def save(self, settings: Settings):
        settings.write_persistent_attributes(self.section, self)


class BooleanOptions:
    """
    Tolerances used by the boolean engine.

    collapsed_area_eps: result loops with an absolute area below this are dropped.
    """

    section = "boolean"

    def __init__(self, pos_equal_eps=REAL_PRECISION, slice_join_eps=1e-4, collapsed_area_eps=1e-5):
        self.pos_equal_eps = pos_equal_eps
        self.slice_join_eps = slice_join_eps
        self.collapsed_area_eps = collapsed_area_eps

    def __repr__(self):
        return (
            f"BooleanOptions(pos_equal_eps={self.pos_equal_eps}, "
            f"slice_join_eps={self.slice_join_eps}, collapsed_area_eps={self.collapsed_area_eps})"
        )

    @classmethod
    def from_tolerance(cls, tolerance):
        return cls(tolerance, 10.0 * tolerance, tolerance)

    def load(self, settings: Settings):
        settings.read_persistent_attributes(self.section, self)
        return self

    def save(self, settings: Settings):
        settings.write_persistent_attributes(self.section, self)


def resolve_options(options_type, tolerance=None, options: Optional[Any] = None):
    """
    Options object for an engine call. Explicit options win, otherwise a tolerance builds
    scaled options, otherwise defaults.
    """
    if options is not None:
        return options
    if tolerance is not None:
        if not math.isfinite(tolerance) or tolerance <= 0:
            raise InvalidParameterError(f"tolerance must be a positive finite number, got {tolerance}")
        return options_type.from_tolerance(tolerance)
    return options_type()
