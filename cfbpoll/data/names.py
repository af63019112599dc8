"""Team name normalization.

Upstream sources disagree on capitalization, so every name-keyed lookup goes
through normalize_team_key before insertion and before lookup.
"""


def normalize_team_key(name: str | None) -> str:
    """
    Normalize a team name for case-insensitive matching.

    Args:
        name: Team name as reported (may be None)

    Returns:
        Stripped, casefolded key ("" for None)
    """
    if not name:
        return ""
    return name.strip().casefold()


def same_team(a: str | None, b: str | None) -> bool:
    """True if both names refer to the same team, ignoring case."""
    return bool(a) and normalize_team_key(a) == normalize_team_key(b)
