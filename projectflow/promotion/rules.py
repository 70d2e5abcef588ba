"""
Promotion rules, keyed by (degree, from_semester, to_semester).

Transitions without an entry use the generic rule: no prerequisites, no
carry-forward, no track initialization.
"""

from dataclasses import dataclass

from projectflow.academics.models import Degree


@dataclass(frozen=True)
class PromotionRule:
    name: str
    # Finalized group with an allocated faculty and a project for the from-semester
    requires_group_project: bool = False
    # Finalized track selection; internship track needs a verified pass
    requires_track: bool = False
    # Members keep their group into the next semester; the group is locked
    carry_forward: bool = False
    # Create the next semester's coursework selection after a verified internship
    auto_initialize_track: bool = False


GENERIC_RULE = PromotionRule("generic")

RULES: dict[tuple[str, int, int], PromotionRule] = {
    (Degree.BTECH, 5, 6): PromotionRule(
        "group_project",
        requires_group_project=True,
        carry_forward=True,
    ),
    (Degree.BTECH, 7, 8): PromotionRule(
        "track_choice",
        requires_track=True,
        auto_initialize_track=True,
    ),
    (Degree.MTECH, 3, 4): PromotionRule(
        "track_choice",
        requires_track=True,
    ),
}


def get_rule(degree: str, from_semester: int, to_semester: int) -> PromotionRule:
    return RULES.get((degree, from_semester, to_semester), GENERIC_RULE)
