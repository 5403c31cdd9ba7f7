"""Suite configuration.

Handles:
- The :class:`SuiteOptions` dataclass with explicit defaults.
- Converting loose option mappings (keyword dicts, YAML profiles)
  into ``SuiteOptions`` with strict key and type checks.
- Validating option values before any benchmark runs.
- Loading option profiles from YAML files and layering CLI overrides.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Mapping

log = logging.getLogger("frelon")


class ConfigurationError(ValueError):
    """Unknown, mistyped or out-of-range configuration.

    Always raised before any benchmark body executes.
    """


# ---------------------------------------------------------------------------
# SuiteOptions
# ---------------------------------------------------------------------------


@dataclass
class SuiteOptions:
    """Options controlling one suite run."""

    pass_count: int = 5  # Repeated passes over every benchmark
    quiet: bool = False  # Suppress all report output
    target_duration_ms: float = 1500  # Measured time per benchmark per pass
    prime_duration_ms: float = 50  # Minimum probe duration during calibration

    # Log-ratio persistence (skipped when either file is missing)
    record_results: bool = True
    results_file: str = "dist/benchmark-results.json"
    version_file: str = "pyproject.toml"

    @property
    def target_duration_ns(self) -> float:
        return self.target_duration_ms * 1e6

    @property
    def prime_duration_ns(self) -> float:
        return self.prime_duration_ms * 1e6

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dict keyed by option name."""
        return asdict(self)


# Accepted Python types per option.  bool is a subclass of int, so it
# is rejected explicitly for numeric options in _type_matches().
_OPTION_TYPES: dict[str, tuple[type, ...]] = {
    "pass_count": (int,),
    "quiet": (bool,),
    "target_duration_ms": (int, float),
    "prime_duration_ms": (int, float),
    "record_results": (bool,),
    "results_file": (str,),
    "version_file": (str,),
}


def _type_matches(key: str, value: Any) -> bool:
    expected = _OPTION_TYPES[key]
    if isinstance(value, bool) and bool not in expected:
        return False
    return isinstance(value, expected)


def _type_names(key: str) -> str:
    return " or ".join(t.__name__ for t in _OPTION_TYPES[key])


def options_from_mapping(
    data: Mapping[str, Any],
    *,
    base: SuiteOptions | None = None,
) -> SuiteOptions:
    """Build SuiteOptions from a mapping of option name -> value.

    Keys missing from *data* (or mapped to None) keep the value from
    *base*, or the dataclass default.

    Raises:
        ConfigurationError: If a key is unknown or a value's type does
            not match the option's declared type.
    """
    known = {f.name for f in fields(SuiteOptions)}
    problems: list[str] = []

    for key in data:
        if key not in known:
            problems.append(f"  {key}: unknown option (valid: {', '.join(sorted(known))})")

    values = (base or SuiteOptions()).to_dict()
    for key in known:
        value = data.get(key)
        if value is None:
            continue
        if not _type_matches(key, value):
            problems.append(
                f"  {key}: expected {_type_names(key)}, got {type(value).__name__} ({value!r})"
            )
            continue
        values[key] = value

    if problems:
        raise ConfigurationError("Invalid suite options:\n" + "\n".join(problems))

    return SuiteOptions(**values)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@dataclass
class ValidationError:
    """A single option validation problem."""

    field: str
    message: str
    severity: str = "error"  # "error" or "warning"


def validate_options(options: SuiteOptions) -> list[ValidationError]:
    """Validate option values.

    Returns a list of validation errors.  Empty list means valid.
    """
    errors: list[ValidationError] = []

    for key in _OPTION_TYPES:
        value = getattr(options, key)
        if not _type_matches(key, value):
            errors.append(
                ValidationError(
                    field=key,
                    message=f"Expected {_type_names(key)}, got {type(value).__name__}.",
                )
            )
    if errors:
        # Range checks below assume well-typed values.
        return errors

    if options.pass_count < 1:
        errors.append(
            ValidationError(
                field="pass_count",
                message=f"Need at least one pass (got {options.pass_count}).",
            )
        )

    for key in ("target_duration_ms", "prime_duration_ms"):
        value = getattr(options, key)
        if not value > 0:
            errors.append(
                ValidationError(
                    field=key,
                    message=f"Duration must be positive (got {value}).",
                )
            )

    if options.record_results:
        for key in ("results_file", "version_file"):
            if not getattr(options, key).strip():
                errors.append(
                    ValidationError(
                        field=key,
                        message="File name must be non-empty when recording results.",
                    )
                )

    if (
        options.prime_duration_ms > 0
        and options.target_duration_ms > 0
        and options.prime_duration_ms > options.target_duration_ms
    ):
        errors.append(
            ValidationError(
                field="prime_duration_ms",
                message=(
                    f"Calibration probes ({options.prime_duration_ms} ms) run longer than "
                    f"the measured duration per pass ({options.target_duration_ms} ms)."
                ),
                severity="warning",
            )
        )

    return errors


def resolve_options(options: SuiteOptions | Mapping[str, Any] | None) -> SuiteOptions:
    """Convert and validate options, logging warnings.

    Raises:
        ConfigurationError: On any key, type or value error.
    """
    if options is None:
        resolved = SuiteOptions()
    elif isinstance(options, SuiteOptions):
        resolved = options
    else:
        resolved = options_from_mapping(options)

    errors = validate_options(resolved)
    for w in (e for e in errors if e.severity == "warning"):
        log.warning("Option warning: %s: %s", w.field, w.message)
    fatal = [e for e in errors if e.severity == "error"]
    if fatal:
        messages = [f"  {e.field}: {e.message}" for e in fatal]
        raise ConfigurationError("Invalid suite options:\n" + "\n".join(messages))
    return resolved


# ---------------------------------------------------------------------------
# YAML profiles
# ---------------------------------------------------------------------------


def load_profile(profile_path: Path) -> dict[str, Any]:
    """Load suite options from a YAML file.

    Profile format::

        pass_count: 3
        quiet: false
        target_duration_ms: 500
        prime_duration_ms: 20
        record_results: false

    Returns:
        The parsed YAML as a dict (an empty file gives an empty dict).
    """
    import yaml

    if not profile_path.exists():
        raise FileNotFoundError(f"Profile not found: {profile_path}")

    data = yaml.safe_load(profile_path.read_text())
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Profile must be a YAML mapping, got {type(data).__name__}")
    return data


def merge_options(
    base: SuiteOptions,
    profile_data: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> SuiteOptions:
    """Layer a profile and then CLI overrides on top of *base*.

    CLI values of None mean "not given" and leave the profile (or
    base) value in place.
    """
    options = base
    if profile_data:
        options = options_from_mapping(profile_data, base=options)
    if cli_overrides:
        options = options_from_mapping(cli_overrides, base=options)
    return options
