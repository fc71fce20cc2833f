"""Five-grade (五格法・新字体・霊数なし) arithmetic over resolved stroke breakdowns."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict

from gokaku.services.stroke_resolver import NameBreakdown

# Output key -> FiveGrades attribute
GRADE_FIELDS: Dict[str, str] = {
    "tenkaku": "heaven",
    "jinkaku": "human",
    "chikaku": "earth",
    "gaikaku": "external",
    "soukaku": "total",
}


@dataclass(frozen=True)
class FiveGrades:
    heaven: int  # 天格: surname total
    earth: int  # 地格: given-name total
    human: int  # 人格: last surname char + first given char
    total: int  # 総格: heaven + earth
    external: int  # 外格: total - human, floored at zero

    def as_fortune_fields(self) -> Dict[str, int]:
        """Return the grades under their traditional output keys."""
        return {key: getattr(self, attr) for key, attr in GRADE_FIELDS.items()}

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


def compute_five_grades(surname: NameBreakdown, given: NameBreakdown) -> FiveGrades:
    """Compute the five grades from first principles.

    Unknown counts contribute zero. An empty surname (the generator dropped
    the prefix) gives heaven = 0 and no surname contribution to human; an empty
    given name is symmetric.
    """
    heaven = surname.total
    earth = given.total
    human = surname.last_count + given.first_count
    total = heaven + earth
    external = max(total - human, 0)
    return FiveGrades(heaven=heaven, earth=earth, human=human, total=total, external=external)
