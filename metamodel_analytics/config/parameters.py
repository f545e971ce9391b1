"""Parameter record controlling feature comparison and VSM construction."""

from dataclasses import dataclass, asdict, fields, replace
from typing import Optional

from ..core import constants


@dataclass(frozen=True)
class Parameters:
    """Frozen set of options for one VSM build."""
    scope: str = "model"                   # model, fragment
    unit: str = "name"                     # name, type, name-type
    structure: str = "unigram"             # unigram, bigram, ntree
    weight: str = "raw"                    # raw, w1, w2
    idf: str = "none"                      # none, log, norm-log
    type_match: str = "strict"             # strict, relaxed
    synonym: str = "none"                  # none, full, reduced
    synonym_threshold: Optional[int] = None  # None, 60, 80, 100
    ngram_comparison: str = "fixed"        # fixed, linear-sliding
    context_match: str = "strict"          # strict, linear
    frequency: str = "sum"                 # sum, max
    vsm_mode: str = "quadratic"            # linear, quadratic
    relaxed_type_penalty: float = 0.5
    context_penalty: float = 0.5

    def __post_init__(self):
        errors = []
        checks = [
            ("scope", constants.SCOPES),
            ("unit", constants.UNITS),
            ("structure", constants.STRUCTURES),
            ("weight", constants.WEIGHT_SCHEMES),
            ("idf", constants.IDF_MODES),
            ("type_match", constants.TYPE_MATCHES),
            ("synonym", constants.SYNONYM_MODES),
            ("synonym_threshold", constants.SYNONYM_THRESHOLDS),
            ("ngram_comparison", constants.NGRAM_COMPARISONS),
            ("context_match", constants.CONTEXT_MATCHES),
            ("frequency", constants.FREQUENCIES),
            ("vsm_mode", constants.VSM_MODES),
        ]
        for name, allowed in checks:
            if getattr(self, name) not in allowed:
                errors.append(f"Invalid {name} {getattr(self, name)!r}. Must be one of: {list(allowed)}")

        for name, label in (("relaxed_type_penalty", "Relaxed type penalty"), ("context_penalty", "Context penalty")):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or not 0.0 <= value <= 1.0:
                errors.append(f"{label} must be a number between 0 and 1, got {value!r}")

        if errors:
            raise ValueError("Parameter validation failed:\n" + "\n".join(f"- {error}" for error in errors))

    @property
    def threshold_value(self) -> Optional[float]:
        """Synonym threshold as a fraction, or None when lookup is disabled."""
        if self.synonym_threshold is None:
            return None
        return self.synonym_threshold / 100.0

    @property
    def uses_synonyms(self) -> bool:
        return self.synonym != "none" and self.synonym_threshold is not None

    @property
    def serialization(self) -> str:
        return "json" if self.structure == "ntree" else "plain"

    def with_options(self, **changes) -> "Parameters":
        return replace(self, **changes)

    def identifier(self) -> str:
        """Stable id of the parameter combination, used in logs."""
        values = asdict(self)
        threshold = values.pop("synonym_threshold")
        values["synonym_threshold"] = "none" if threshold is None else str(threshold)
        return "_".join(str(values[key]) for key in sorted(values))

    @classmethod
    def from_dict(cls, data: dict) -> "Parameters":
        """
        Build a record from loose option values, e.g. CLI strings.

        Raises:
            ValueError: On unknown options or values that do not convert.
        """
        data = {key.replace('-', '_'): value for key, value in data.items()}
        unknown = sorted(set(data) - {field.name for field in fields(cls)})
        if unknown:
            raise ValueError(f"Unknown parameter options: {unknown}")
        for name in ("relaxed_type_penalty", "context_penalty"):
            if name in data:
                try:
                    data[name] = float(data[name])
                except (TypeError, ValueError):
                    raise ValueError(f"Invalid {name} {data[name]!r}: not a number")
        threshold = data.get("synonym_threshold")
        if isinstance(threshold, str):
            data["synonym_threshold"] = None if threshold.lower() == "none" else int(threshold)
        elif isinstance(threshold, float):
            data["synonym_threshold"] = int(round(threshold * 100)) if threshold <= 1.0 else int(threshold)
        return cls(**data)
