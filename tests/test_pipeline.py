import pytest

from studyjams.errors import HTTPError, InvalidURL, NetworkTimeout, NotEnrolled, PrivateProfile
from studyjams.pipeline import STATUS_ACCESSIBLE, STATUS_ERROR, STATUS_PRIVATE, ProfileScorer

from .conftest import EMPTY_HTML, NOW, PROFILE_ID, PROFILE_URL, StubFetcher


def test_calculate(scorer, stub_fetcher):
    report = scorer.calculate(f"cloudskillsboost.google/public_profiles/{PROFILE_ID}", now=NOW)

    assert stub_fetcher.calls == [PROFILE_URL]
    assert report.profile_url == PROFILE_URL
    assert report.result.total_points == 528
    assert report.user_name == "Jane Doe"

    data = report.to_dict()
    assert data["success"] is True
    assert data["enrolled"] is True
    assert data["participant"] == {
        "name": "Jane Doe",
        "batch": "Cloud Study Jams 2025",
        "enrollmentDate": "2025-10-15T00:00:00.000Z",
    }
    assert data["totalPoints"] == 528


def test_invalid_url_is_rejected_before_fetch(scorer, stub_fetcher):
    with pytest.raises(InvalidURL):
        scorer.calculate("https://example.com/profile/123")
    assert stub_fetcher.calls == []


def test_not_enrolled_is_rejected_before_fetch(scorer, stub_fetcher):
    with pytest.raises(NotEnrolled):
        scorer.calculate("https://www.cloudskillsboost.google/public_profiles/stranger")
    assert stub_fetcher.calls == []


def test_private_profile_propagates(roster, default_rules):
    scorer = ProfileScorer(roster, default_rules, fetcher=StubFetcher(errors=[PrivateProfile()]))
    with pytest.raises(PrivateProfile):
        scorer.calculate(PROFILE_URL)


@pytest.mark.parametrize(
    "fetcher, status",
    [
        (StubFetcher(), STATUS_ACCESSIBLE),
        (StubFetcher(errors=[PrivateProfile(reason="redirect")]), STATUS_PRIVATE),
        (StubFetcher(errors=[NetworkTimeout("Request timeout")]), STATUS_ERROR),
        (StubFetcher(errors=[HTTPError(404, "Not Found")]), STATUS_ERROR),
        (StubFetcher(markup=EMPTY_HTML), STATUS_ERROR),
    ],
)
def test_check_profile(roster, default_rules, fetcher, status):
    scorer = ProfileScorer(roster, default_rules, fetcher=fetcher)
    # No enrollment gate on the accessibility check
    check = scorer.check_profile("https://www.cloudskillsboost.google/public_profiles/anyone")
    assert check.status == status
    assert check.accessible is (status == STATUS_ACCESSIBLE)
    assert check.to_dict()["success"] is True


def test_check_profile_empty_message(roster, default_rules):
    scorer = ProfileScorer(roster, default_rules, fetcher=StubFetcher(markup=EMPTY_HTML))
    assert scorer.check_profile(PROFILE_URL).message == "Profile appears to be empty or invalid"


def test_from_settings(tmp_path):
    from studyjams.config import Settings

    scorer = ProfileScorer.from_settings(Settings(config_dir=tmp_path, timeout=7))
    assert len(scorer.roster) == 0
    assert len(scorer.allow_list) == 0
    assert scorer.fetcher.timeout == 7
