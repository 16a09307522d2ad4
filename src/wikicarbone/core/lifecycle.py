"""Fixed five-stage life cycle."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, List, Optional, Sequence, Tuple

from .step import Label, Step
from .units import Mass, zero_mass

STAGE_ORDER: Tuple[Label, ...] = (
    Label.MATERIAL_AND_SPINNING,
    Label.WEAVING_KNITTING,
    Label.ENNOBLEMENT,
    Label.MAKING,
    Label.DISTRIBUTION,
)

# (label, editable, default country)
DEFAULT_STAGES: Tuple[Tuple[Label, bool, str], ...] = (
    (Label.MATERIAL_AND_SPINNING, False, "CN"),
    (Label.WEAVING_KNITTING, True, "CN"),
    (Label.ENNOBLEMENT, True, "CN"),
    (Label.MAKING, True, "CN"),
    (Label.DISTRIBUTION, False, "FR"),
)


@dataclass(frozen=True)
class LifeCycle:
    steps: Tuple[Step, ...]

    def __post_init__(self):
        labels = tuple(s.label for s in self.steps)
        if labels != STAGE_ORDER:
            raise ValueError(
                f"Life cycle must hold exactly one step per stage in order {[l.value for l in STAGE_ORDER]}, "
                f"got {[l.value for l in labels]}"
            )

    @classmethod
    def default(cls) -> "LifeCycle":
        return cls(tuple(Step.create(label, editable, country) for label, editable, country in DEFAULT_STAGES))

    def __iter__(self) -> Iterator[Step]:
        return iter(self.steps)

    def __len__(self) -> int:
        return len(self.steps)

    def as_list(self) -> List[Step]:
        return list(self.steps)

    def get_step(self, label: Label) -> Optional[Step]:
        for step in self.steps:
            if step.label == label:
                return step
        return None

    def step_mass(self, label: Label) -> Mass:
        step = self.get_step(label)
        return step.mass if step is not None else zero_mass()

    def update_step(self, label: Label, f: Callable[[Step], Step]) -> "LifeCycle":
        return self.update_steps((label,), f)

    def update_steps(self, labels: Iterable[Label], f: Callable[[Step], Step]) -> "LifeCycle":
        targets = set(labels)
        return LifeCycle(tuple(f(s) if s.label in targets else s for s in self.steps))

    def map(self, f: Callable[[Step], Step]) -> "LifeCycle":
        return LifeCycle(tuple(f(s) for s in self.steps))

    def transport_pairs(self) -> Sequence[Tuple[Step, Step]]:
        """Consecutive (upstream, downstream) step pairs in stage order."""
        return list(zip(self.steps[:-1], self.steps[1:]))

    def countries(self) -> List[str]:
        return [s.country for s in self.steps]


__all__ = [
    "STAGE_ORDER",
    "DEFAULT_STAGES",
    "LifeCycle",
]
