"""
options.py
-----------
Detection options. Defaults come from the recurring_detection block of
config.yaml; callers override per call with a dict or a DetectionOptions.
"""

from dataclasses import dataclass, fields, replace
from typing import Any, Mapping

from config.config_loader import get_recurring_detection_config


_INT_FIELDS = (
    "min_occurrences",
    "min_span_days",
    "max_span_days",
    "max_skipped_months",
    "day_flex_tolerance_days",
    "min_days_between_occurrences",
    "max_days_between_occurrences",
)


@dataclass(frozen=True)
class DetectionOptions:
    min_occurrences: int = 3
    min_span_days: int = 90
    max_span_days: int = 370
    max_skipped_months: int = 6
    day_flex_tolerance_days: int = 4
    min_days_between_occurrences: int = 27
    max_days_between_occurrences: int = 33
    grouping_substrings: tuple[str, ...] = ()

    @classmethod
    def from_config(cls) -> "DetectionOptions":
        """Defaults as configured in config.yaml."""
        cfg = dict(get_recurring_detection_config())
        known = {f.name for f in fields(cls)}
        options = cls(**{k: v for k, v in cfg.items() if k in known and k != "grouping_substrings"})
        return options._with_substrings(cfg.get("grouping_substrings") or ())

    @classmethod
    def resolve(cls, options: "DetectionOptions | Mapping[str, Any] | None" = None) -> "DetectionOptions":
        """
        Merge caller options over the configured defaults and validate.

        Raises:
            TypeError: options is not a mapping / DetectionOptions, or a value
                has the wrong type.
            ValueError: unknown option name or out-of-range value.
        """
        if options is None:
            resolved = cls.from_config()
        elif isinstance(options, DetectionOptions):
            resolved = options._with_substrings(options.grouping_substrings)
        elif isinstance(options, Mapping):
            known = {f.name for f in fields(cls)}
            unknown = sorted(set(options) - known)
            if unknown:
                raise ValueError(f"Unknown detection options: {unknown}. Available: {sorted(known)}")
            overrides = {k: v for k, v in options.items() if k != "grouping_substrings"}
            resolved = replace(cls.from_config(), **overrides)
            if "grouping_substrings" in options:
                resolved = resolved._with_substrings(options["grouping_substrings"])
        else:
            raise TypeError(
                f"Detection options must be a mapping or DetectionOptions, got {type(options).__name__}"
            )

        resolved.validate()
        return resolved

    def _with_substrings(self, substrings: Any) -> "DetectionOptions":
        if substrings is None:
            substrings = ()
        if isinstance(substrings, str) or not hasattr(substrings, "__iter__"):
            raise TypeError("grouping_substrings must be a list of strings")
        substrings = tuple(substrings)
        bad = [s for s in substrings if not isinstance(s, str)]
        if bad:
            raise TypeError(f"grouping_substrings must contain only strings, got {bad!r}")
        return replace(self, grouping_substrings=substrings)

    def validate(self) -> None:
        for name in _INT_FIELDS:
            value = getattr(self, name)
            # bool is an int subclass; reject it explicitly.
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError(f"Option '{name}' must be an integer, got {value!r}")
            if value < 0:
                raise ValueError(f"Option '{name}' must be >= 0, got {value}")

        if self.min_occurrences < 1:
            raise ValueError(f"Option 'min_occurrences' must be >= 1, got {self.min_occurrences}")
        if self.min_span_days > self.max_span_days:
            raise ValueError(
                f"min_span_days ({self.min_span_days}) exceeds max_span_days ({self.max_span_days})"
            )
        if self.min_days_between_occurrences > self.max_days_between_occurrences:
            raise ValueError(
                "min_days_between_occurrences "
                f"({self.min_days_between_occurrences}) exceeds max_days_between_occurrences "
                f"({self.max_days_between_occurrences})"
            )
