from __future__ import annotations

from sapph.models.profile import AgeRange, MatchingPreferences, Profile


def test_opt_out_answers_become_absent() -> None:
    profile = Profile.from_document(
        "u1",
        {
            "full_name": "Robin",
            "gender_identity": "Prefer not to say",
            "children": "Prefer not to share",
            "connection_goals": ["Prefer not to say", "Long-term", "Long-term"],
            "sex_preferences": "Prefer not to share",
        },
    )
    assert profile.gender_identity is None
    assert profile.children is None
    assert profile.connection_goals == ["Long-term"]
    assert profile.sex_preferences == []


def test_stored_goal_key_reads_as_relationship_goals() -> None:
    prefs = MatchingPreferences.model_validate(
        {"connection_goals": ["Friendship", "Prefer not to say"], "interests": ["Hiking"]}
    )
    assert prefs.relationship_goals == ["Friendship"]
    assert prefs.model_extra == {"interests": ["Hiking"]}
    assert prefs.model_dump(by_alias=True)["connection_goals"] == ["Friendship"]


def test_stored_goal_key_wins_over_legacy_key() -> None:
    prefs = MatchingPreferences.model_validate(
        {"relationship_goals": ["Friendship"], "connection_goals": ["Long-term"]}
    )
    assert prefs.relationship_goals == ["Long-term"]
    assert "relationship_goals" not in prefs.model_dump(by_alias=True)

    legacy_only = MatchingPreferences.model_validate({"relationship_goals": ["Marriage"]})
    assert legacy_only.relationship_goals == ["Marriage"]


def test_age_range_fills_defaults_and_orders_bounds() -> None:
    assert AgeRange.model_validate({"min": None, "max": 40}).min == 18
    swapped = AgeRange(min=50, max=30)
    assert (swapped.min, swapped.max) == (30, 50)
    assert not AgeRange().narrows_default
    assert AgeRange(min=18, max=60).narrows_default


def test_non_positive_distance_is_no_preference() -> None:
    assert MatchingPreferences(distance=0).distance is None
    assert MatchingPreferences(distance="25").distance == 25.0


def test_discoverable_needs_onboarding_and_name() -> None:
    assert Profile(id="a", full_name="A", onboarding_completed=True).is_discoverable
    assert not Profile(id="b", full_name="  ", onboarding_completed=True).is_discoverable
    assert not Profile(id="c", full_name="C", onboarding_completed="true").is_discoverable
    assert not Profile(id="d", full_name="D").is_discoverable


def test_bad_coordinates_are_dropped() -> None:
    profile = Profile(id="a", latitude="120", longitude=10)
    assert profile.latitude is None
    assert profile.coordinates is None
    located = Profile(id="b", latitude="40.1", longitude=-73.9)
    assert located.coordinates is not None
    assert located.coordinates.latitude == 40.1


def test_unknown_profile_fields_are_kept() -> None:
    profile = Profile.from_document("u2", {"bio": "hi", "matching_preferences": "garbage"})
    assert profile.model_extra == {"bio": "hi"}
    assert profile.matching_preferences is None
