"""Configuration resolution.

Every tunable is declared once as an `Option`. `resolve()` turns the option
table, a stack of override layers and a set of probed host facts into an
immutable `Snapshot`. Precedence, lowest to highest:

    built-in default -> derivation rule -> buildorch.toml -> environment
    -> command line KEY=VALUE

An override only counts when it is present and non-empty. Later layers
replace earlier ones; nothing is merged. Resolution is pure: host probing
happens before, in `buildorch.platform.detection`.

Usage:
    layers = (file_layer, environment_layer(os.environ), cli_layer)
    match resolve(OPTIONS, layers, collect_host_facts(root)):
        case Ok(snapshot):
            print(snapshot.text("ARCH"))
        case Err(error):
            print(f"{error.option}: {error.message}")
"""

from __future__ import annotations

import re
import tomllib
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from types import MappingProxyType

from .result import Err, Ok, Result
from .structured import as_str_dict, get_table, scalar_text

__all__ = [
    "ConfigurationError",
    "HostFacts",
    "Option",
    "OptionKind",
    "OptionValue",
    "OverrideLayer",
    "Snapshot",
    "environment_layer",
    "load_options_file",
    "parse_assignments",
    "resolve",
]

OptionValue = str | bool | tuple[str, ...]

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off"})


@dataclass(frozen=True, slots=True)
class ConfigurationError:
    """An option could not be given a valid effective value."""

    option: str
    message: str
    hint: str | None = None


class OptionKind(Enum):
    """How an option's text is interpreted."""

    STRING = auto()
    BOOL = auto()
    LIST = auto()  # whitespace/comma separated, deduplicated
    FLAG = auto()  # true when the variable is present at all, even empty


@dataclass(frozen=True, slots=True)
class HostFacts:
    """Facts probed from the host before resolution.

    Attributes:
        go_arch: Architecture reported by the host toolchain (`go env GOARCH`)
        git_commit: Short commit hash of the checkout
        repo_info: Remote origin URL of the checkout
    """

    go_arch: str | None = None
    git_commit: str | None = None
    repo_info: str | None = None


Derivation = Callable[[Mapping[str, OptionValue], HostFacts], str | None]


@dataclass(frozen=True, slots=True)
class Option:
    """A single tunable.

    Attributes:
        name: Variable name, as seen in the environment and on the command line
        default: Built-in default text
        kind: How the resolved text is parsed
        help: One-line description
        mandatory: Resolution fails when the effective value is empty
        fixed: Overrides are ignored; the value always comes from
            `derive` (or `default`)
        derive: Computes a value from already-resolved options and host facts
        aliases: Other variable names accepted as overrides
        hint: Shown with the error when a mandatory option is empty
    """

    name: str
    default: str = ""
    kind: OptionKind = OptionKind.STRING
    help: str = ""
    mandatory: bool = False
    fixed: bool = False
    derive: Derivation | None = None
    aliases: tuple[str, ...] = ()
    hint: str | None = None

    @property
    def keys(self) -> tuple[str, ...]:
        return (self.name, *self.aliases)


@dataclass(frozen=True, slots=True)
class OverrideLayer:
    """A named set of KEY=VALUE overrides.

    Keys that match no declared option are dropped unless `passthrough` is
    set, in which case they land in the snapshot as plain strings.
    """

    name: str
    values: Mapping[str, str]
    passthrough: bool = False


def environment_layer(environ: Mapping[str, str]) -> OverrideLayer:
    return OverrideLayer(name="environment", values=dict(environ))


def _empty_values() -> Mapping[str, OptionValue]:
    return MappingProxyType({})


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Resolved, read-only configuration for one invocation.

    Keeps its inputs so that `with_overrides` can re-resolve derived options
    (e.g. GOARCH follows a substituted ARCH during release fan-out).
    """

    values: Mapping[str, OptionValue] = field(default_factory=_empty_values)
    options: tuple[Option, ...] = ()
    layers: tuple[OverrideLayer, ...] = ()
    host: HostFacts = field(default_factory=HostFacts)

    def __contains__(self, name: object) -> bool:
        return name in self.values

    def get(self, name: str) -> OptionValue:
        return self.values[name]

    def text(self, name: str) -> str:
        """Effective value rendered as text (lists space separated)."""
        return _render(self.values[name])

    def flag(self, name: str) -> bool:
        value = self.values[name]
        if isinstance(value, bool):
            return value
        return _render(value).lower() in _TRUE

    def items(self, name: str) -> tuple[str, ...]:
        value = self.values[name]
        if isinstance(value, tuple):
            return value
        return _split_list(_render(value))

    def as_env(self) -> dict[str, str]:
        """Environment variables exported to every action.

        Unset flags are left out, since a flag is read by presence.
        """
        flags = {o.name for o in self.options if o.kind is OptionKind.FLAG}
        return {
            name: _render(value)
            for name, value in self.values.items()
            if not (name in flags and value is False)
        }

    def assignments(self) -> list[str]:
        """KEY=VALUE arguments, in declaration order."""
        return [f"{name}={value}" for name, value in self.as_env().items()]

    @property
    def fingerprint(self) -> tuple[tuple[str, str], ...]:
        """Hashable identity of the effective values."""
        return tuple(sorted(self.as_env().items()))

    def with_overrides(self, overrides: Mapping[str, str]) -> Result[Snapshot, ConfigurationError]:
        """Re-resolve with `overrides` as the highest-precedence layer."""
        layer = OverrideLayer(name="override", values=dict(overrides), passthrough=True)
        return resolve(self.options, (*self.layers, layer), self.host)


def _render(value: OptionValue) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, tuple):
        return " ".join(value)
    return value


def _split_list(text: str) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for item in re.split(r"[\s,]+", text.strip()):
        if item:
            seen.setdefault(item, None)
    return tuple(seen)


def _lookup(option: Option, layers: Sequence[OverrideLayer]) -> str | None:
    """Find the highest-precedence override for an option."""
    for layer in reversed(layers):
        for key in option.keys:
            if key not in layer.values:
                continue
            raw = layer.values[key]
            if option.kind is OptionKind.FLAG:
                return "true"
            if raw.strip():
                return raw.strip()
    return None


def _parse(option: Option, raw: str) -> Result[OptionValue, ConfigurationError]:
    match option.kind:
        case OptionKind.STRING:
            return Ok(raw)
        case OptionKind.LIST:
            return Ok(_split_list(raw))
        case OptionKind.BOOL | OptionKind.FLAG:
            lowered = raw.strip().lower()
            if lowered in _TRUE:
                return Ok(True)
            if lowered in _FALSE or not lowered:
                return Ok(False)
            return Err(
                ConfigurationError(
                    option=option.name,
                    message=f"invalid boolean value: {raw!r}",
                    hint="use true/false, yes/no, on/off or 1/0",
                )
            )


def resolve(
    options: Sequence[Option],
    layers: Sequence[OverrideLayer],
    host: HostFacts,
) -> Result[Snapshot, ConfigurationError]:
    """Compute the effective value of every option.

    Options are resolved in declaration order; a derivation rule only sees
    options declared before it.

    Returns:
        Ok(Snapshot) on success
        Err(ConfigurationError) naming the first offending option
    """
    resolved: dict[str, OptionValue] = {}
    known: set[str] = set()

    for option in options:
        known.update(option.keys)
        raw = None if option.fixed else _lookup(option, layers)
        if raw is None and option.derive is not None:
            raw = option.derive(MappingProxyType(resolved), host)
        if raw is None:
            raw = option.default

        parsed = _parse(option, raw)
        if isinstance(parsed, Err):
            return parsed
        value = parsed.value

        if option.mandatory and not _render(value).strip():
            return Err(
                ConfigurationError(
                    option=option.name,
                    message=f"mandatory option {option.name} is empty",
                    hint=option.hint,
                )
            )
        resolved[option.name] = value

    for layer in layers:
        if not layer.passthrough:
            continue
        for key, raw in layer.values.items():
            if key not in known:
                resolved[key] = raw

    return Ok(
        Snapshot(
            values=MappingProxyType(resolved),
            options=tuple(options),
            layers=tuple(layers),
            host=host,
        )
    )


def parse_assignments(args: Sequence[str]) -> Result[dict[str, str], ConfigurationError]:
    """Parse command line KEY=VALUE arguments."""
    out: dict[str, str] = {}
    for arg in args:
        key, sep, value = arg.partition("=")
        key = key.strip()
        if not sep or not re.fullmatch(r"[A-Za-z_][A-Za-z0-9_]*", key):
            return Err(
                ConfigurationError(
                    option=arg,
                    message=f"expected KEY=VALUE, got {arg!r}",
                )
            )
        out[key] = value
    return Ok(out)


def load_options_file(path: Path) -> Result[OverrideLayer, ConfigurationError]:
    """Load the `[options]` table of a workspace file.

    A missing file yields an empty layer.
    """
    try:
        data_obj: object = tomllib.loads(path.read_bytes().decode("utf-8"))
    except FileNotFoundError:
        return Ok(OverrideLayer(name=str(path), values={}))
    except PermissionError:
        return Err(ConfigurationError(option=str(path), message="permission denied"))
    except (tomllib.TOMLDecodeError, UnicodeDecodeError) as e:
        return Err(ConfigurationError(option=str(path), message=f"invalid TOML: {e}"))

    data = as_str_dict(data_obj) or {}
    table = get_table(data, "options") or {}
    values: dict[str, str] = {}
    for key, value in table.items():
        text = scalar_text(value)
        if text is None:
            return Err(
                ConfigurationError(
                    option=key,
                    message=f"unsupported value in {path.name}: expected a scalar or array",
                )
            )
        values[key] = text
    return Ok(OverrideLayer(name=str(path), values=values))
