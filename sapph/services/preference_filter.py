"""Decide whether a candidate profile satisfies a viewer's matching preferences.

Filtering is opt-in: a preference only constrains results once the viewer
has set a non-default, non-empty value for it, and a candidate that lacks
the data a check needs is kept. Opt-out answers were already translated to
"absent" by the model layer, so they fall under the same rule.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable, Optional

from ..models.profile import Coordinates, MatchingPreferences, Profile
from ..utils.dates import age_from_dob
from ..utils.geo import geodesic_distance_miles

__all__ = ["passes_filters"]


def _overlaps(wanted: Iterable[str], offered: Iterable[str]) -> bool:
    wanted_set = set(wanted)
    return any(option in wanted_set for option in offered)


def _age_ok(candidate: Profile, preferences: MatchingPreferences, today: Optional[date]) -> bool:
    age_range = preferences.age_range
    if age_range is None or not age_range.narrows_default:
        return True
    age = age_from_dob(candidate.dob, today=today)
    if age is None:
        return True
    return age_range.min <= age <= age_range.max


def _list_ok(wanted: list, offered: list) -> bool:
    if not wanted or not offered:
        return True
    return _overlaps(wanted, offered)


def _choice_ok(wanted: list, value: Optional[str]) -> bool:
    if not wanted or value is None:
        return True
    return value in wanted


def _distance_ok(
    candidate: Profile,
    preferences: MatchingPreferences,
    viewer_coords: Optional[Coordinates],
) -> bool:
    limit = preferences.distance
    candidate_coords = candidate.coordinates
    if limit is None or viewer_coords is None or candidate_coords is None:
        return True
    miles = geodesic_distance_miles(
        viewer_coords.latitude,
        viewer_coords.longitude,
        candidate_coords.latitude,
        candidate_coords.longitude,
    )
    return miles <= limit


def passes_filters(
    candidate: Profile,
    preferences: Optional[MatchingPreferences],
    viewer_coords: Optional[Coordinates] = None,
    *,
    today: Optional[date] = None,
) -> bool:
    if preferences is None:
        return True
    return (
        _age_ok(candidate, preferences, today)
        and _choice_ok(preferences.gender, candidate.gender_identity)
        and _list_ok(preferences.relationship_goals, candidate.connection_goals)
        and _list_ok(preferences.relationship_style, candidate.relationship_style)
        and _list_ok(preferences.sex_preferences, candidate.sex_preferences)
        and _choice_ok(preferences.family_plans, candidate.children)
        and _distance_ok(candidate, preferences, viewer_coords)
    )
