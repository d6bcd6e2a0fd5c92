import pytest

from dynval.config import COMPONENTS, get_profile, iter_profiles


def test_get_profile_is_case_insensitive():
    profile = get_profile("Market_Age")
    assert profile.name == "market_age"
    assert profile.components == ("market", "age")


def test_get_profile_missing_raises():
    with pytest.raises(KeyError):
        get_profile("vibes")


@pytest.mark.parametrize("profile", list(iter_profiles()), ids=lambda p: p.name)
def test_profile_weights_are_convex(profile):
    assert set(profile.weights) <= set(COMPONENTS)
    assert sum(profile.weights.values()) == pytest.approx(1.0, abs=1e-9)
    assert all(weight > 0 for weight in profile.weights.values())
    assert profile.weights["market"] == max(profile.weights.values())
