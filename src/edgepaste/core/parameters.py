"""Pipeline parameter model."""
from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any, Dict

from ..config.pipeline import (
    BLUR_KERNEL_RANGE,
    CANNY_THRESHOLD1_RANGE,
    CANNY_THRESHOLD2_RANGE,
    DEFAULT_BLUR_KERNEL_SIZE,
    DEFAULT_CANNY_THRESHOLD1,
    DEFAULT_CANNY_THRESHOLD2,
    DEFAULT_SCALE_FACTOR,
    SCALE_FACTOR_RANGE,
)
from ..vision.preprocess import clamp, effective_kernel_size


@dataclass(frozen=True)
class PipelineParameters:
    """The four user-tunable knobs of the edge pipeline.

    blur_kernel_size may be stored even; use effective_kernel_size when
    handing it to the blur step.
    """

    scale_factor: float = DEFAULT_SCALE_FACTOR
    blur_kernel_size: int = DEFAULT_BLUR_KERNEL_SIZE
    canny_threshold1: int = DEFAULT_CANNY_THRESHOLD1
    canny_threshold2: int = DEFAULT_CANNY_THRESHOLD2

    @classmethod
    def clamped(cls, **values: Any) -> "PipelineParameters":
        """Build parameters with every value forced into its allowed range."""
        base = cls()
        scale = float(values.get("scale_factor", base.scale_factor))
        kernel = int(values.get("blur_kernel_size", base.blur_kernel_size))
        t1 = int(values.get("canny_threshold1", base.canny_threshold1))
        t2 = int(values.get("canny_threshold2", base.canny_threshold2))
        return cls(
            scale_factor=round(clamp(scale, SCALE_FACTOR_RANGE[0], SCALE_FACTOR_RANGE[1]), 4),
            blur_kernel_size=clamp(kernel, BLUR_KERNEL_RANGE[0], BLUR_KERNEL_RANGE[1]),
            canny_threshold1=clamp(t1, CANNY_THRESHOLD1_RANGE[0], CANNY_THRESHOLD1_RANGE[1]),
            canny_threshold2=clamp(t2, CANNY_THRESHOLD2_RANGE[0], CANNY_THRESHOLD2_RANGE[1]),
        )

    @classmethod
    def from_config(cls, config_manager) -> "PipelineParameters":
        base = cls()
        return cls.clamped(
            scale_factor=config_manager.get_float("scale_factor", base.scale_factor),
            blur_kernel_size=config_manager.get_int("blur_kernel_size", base.blur_kernel_size),
            canny_threshold1=config_manager.get_int("canny_threshold1", base.canny_threshold1),
            canny_threshold2=config_manager.get_int("canny_threshold2", base.canny_threshold2),
        )

    def to_config(self, config_manager) -> None:
        for key, value in self.as_dict().items():
            config_manager.set(key, value)

    @property
    def effective_kernel_size(self) -> int:
        return effective_kernel_size(self.blur_kernel_size)

    def with_changes(self, **changes: Any) -> "PipelineParameters":
        """Return a clamped copy with the given fields replaced.

        Unknown field names raise TypeError like dataclasses.replace does.
        """
        known = {f.name for f in fields(self)}
        unknown = set(changes) - known
        if unknown:
            raise TypeError(f"Unknown pipeline parameter(s): {', '.join(sorted(unknown))}")
        merged = replace(self, **changes)
        return PipelineParameters.clamped(**merged.as_dict())

    def as_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}
