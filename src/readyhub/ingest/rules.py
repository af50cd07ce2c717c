"""Filename classification rules for the roster export feed.

Each rule maps a filename substring to a ``(category, key)`` slot in the
payload. Rules are scanned in list order; ``priority`` only decides the
order in which matched files are written to the store.

Changing this table is a code change, not a runtime setting.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from readyhub.db.models import CATEGORIES


@dataclass(frozen=True)
class ClassificationRule:
    """One entry of the classification table.

    Attributes:
        match_token: Substring that must occur in the filename.
        category: ``"config"`` or ``"data"``.
        key: Payload key the file's content is stored under.
        exclude_tokens: If any of these occurs in the filename, the rule
            does not apply even though ``match_token`` does.
        priority: Unique write-order rank (ascending).
    """

    match_token: str
    category: str
    key: str
    exclude_tokens: frozenset[str] = field(default_factory=frozenset)
    priority: int = 0

    def __post_init__(self) -> None:
        if not self.match_token:
            raise ValueError("match_token must not be empty")
        if self.category not in CATEGORIES:
            raise ValueError(
                f"category must be one of {CATEGORIES}, got {self.category!r}"
            )
        if not self.key:
            raise ValueError("key must not be empty")

    @property
    def compound_key(self) -> str:
        return f"{self.category}|{self.key}"


def _rule(
    match_token: str,
    category: str,
    key: str,
    priority: int,
    exclude: tuple[str, ...] = (),
) -> ClassificationRule:
    return ClassificationRule(
        match_token=match_token,
        category=category,
        key=key,
        exclude_tokens=frozenset(exclude),
        priority=priority,
    )


# Scan order matters: a generic token listed before its more specific
# sibling must exclude that sibling explicitly.
RULES: tuple[ClassificationRule, ...] = (
    # ---- Professional-learning configuration ----
    _rule("PL_Paths", "config", "paths", 1),
    _rule("PL_Groups", "config", "groups", 2),
    _rule("PL_TaskGroupAssignments", "config", "taskGroupAssignments", 3),
    _rule("PL_Tasks", "config", "tasks", 4),
    _rule("Achievements", "config", "achievementTypes", 5, exclude=("Mbr",)),
    # ---- Members ----
    _rule("Member", "data", "members", 10, exclude=("PL_Member",)),
    _rule("MbrContact", "data", "contacts", 11),
    _rule("MbrAddresses", "data", "addresses", 12),
    _rule("MbrAchievements", "data", "achievements", 13),
    _rule("MbrTasks", "data", "memberTasks", 14),
    _rule("PL_MemberPathCredit", "data", "memberPathCredit", 15),
    _rule("PL_MemberTaskCredit", "data", "memberTaskCredit", 16),
    _rule("SeniorLevel", "data", "seniorLevels", 17),
    _rule("SeniorAwards", "data", "seniorAwards", 18),
    _rule("Certifications", "data", "certifications", 19),
    _rule("DownGrades", "data", "downgrades", 20),
    # ---- Units ----
    _rule("Organization", "data", "organization", 30),
    _rule("OrgContact", "data", "orgContacts", 31),
    _rule("OrgAddresses", "data", "orgAddresses", 32),
    _rule("OrgMeetings", "data", "orgMeetings", 33),
    _rule("Commanders", "data", "commanders", 34),
    # ---- Duty positions ----
    _rule("DutyPosition", "data", "dutyPositions", 40, exclude=("Cadet",)),
    _rule("CadetDutyPositions", "data", "cadetDutyPositions", 41),
    # ---- Cadet programs ----
    _rule("CadetAchv", "data", "cadetAchievements", 50, exclude=("Aprs",)),
    _rule("CadetAchvAprs", "data", "cadetAchievementApprovals", 51),
    _rule("CadetRank", "data", "cadetRanks", 52),
    _rule("CadetActivities", "data", "cadetActivities", 53),
    _rule("CadetPhyFitTest", "data", "cadetFitness", 54),
    _rule("CadetHFZInformation", "data", "cadetHfz", 55),
    _rule("CadetAwards", "data", "cadetAwards", 56),
    _rule("OFlight", "data", "orientationFlights", 57),
    # ---- Specialty tracks ----
    _rule("SpecTrack", "data", "specialtyTracks", 60, exclude=("Current",)),
    _rule("SpecTrackCurrent", "data", "specialtyTracksCurrent", 61),
    # ---- Emergency services ----
    _rule("ESQualifications", "data", "esQualifications", 70),
    _rule("ESTraining", "data", "esTraining", 71),
)

# Keys whose absence after reassembly is reported (the payload is still served).
REQUIRED_KEYS: tuple[str, ...] = (
    "data|members",
    "data|organization",
    "data|dutyPositions",
    "config|paths",
)
