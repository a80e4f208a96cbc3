"""
Pytest configuration and fixtures for tests
"""
from datetime import datetime, timezone

import pytest
import requests

from studyjams import const
from studyjams.extractor import extract
from studyjams.normalizer import normalize_title
from studyjams.models import (
    AllowList,
    AllowListEntry,
    ItemKind,
    NormalizedCompletionItem,
    NormalizedProfile,
    ParticipantRecord,
    ScoringRule,
)
from studyjams.pipeline import ProfileScorer
from studyjams.roster import RosterStore

PROFILE_ID = "0d1f7f8e-5a3b-4c2d-9e6f-1a2b3c4d5e6f"
PROFILE_URL = f"https://www.cloudskillsboost.google/public_profiles/{PROFILE_ID}"
NOW = datetime(2025, 10, 20, tzinfo=timezone.utc)

PROFILE_HTML = """
<html>
<head><title>Jane Doe | Google Cloud Skills Boost</title></head>
<body>
  <h1 class="ql-display-small">Jane Doe</h1>
  <div class="profile-location">Pune, India</div>
  <div class="member-since">Member since 2023</div>
  <div class="profile-badges">
    <div class="profile-badge">
      <a class="badge-image" href="/course_templates/641"><img src="https://cdn.example.com/gke.png"></a>
      <span class="ql-title-medium l-mts">Kubernetes Engine: Advanced Deployments</span>
      <span class="ql-body-medium l-mbs">Earned Oct 10, 2025 EDT</span>
      <ql-button modal="dialog-1">Learn more</ql-button>
    </div>
    <div class="profile-badge">
      <a class="badge-image" href="/course_templates/554"><img src="https://cdn.example.com/gcs.png"></a>
      <span class="ql-title-medium l-mts">Get Started with Cloud Storage</span>
      <span class="ql-body-medium l-mbs">Earned Sep 1, 2025 EDT</span>
      <ql-button modal="dialog-2">Learn more</ql-button>
    </div>
    <div class="profile-badge">
      <a class="badge-image" href="/games/6559"><img src="https://cdn.example.com/hero.png"></a>
      <span class="ql-title-medium l-mts">Cloud Hero</span>
      <span class="ql-body-medium l-mbs">Earned Oct 12, 2025 EDT</span>
      <ql-button modal="dialog-3">Learn more</ql-button>
    </div>
    <div class="profile-badge">
      <span class="ql-body-medium l-mbs">Earned Oct 12, 2025 EDT</span>
      <ql-button modal="dialog-4">Learn more</ql-button>
    </div>
  </div>
  <ql-dialog id="dialog-1">
    <p>Deploy workloads on GKE.</p>
    <ql-button href="/course_templates/641">Learn more</ql-button>
  </ql-dialog>
  <ql-dialog id="dialog-2">
    <ql-button href="/course_templates/554">Learn more</ql-button>
  </ql-dialog>
  <ql-dialog id="dialog-3">
    <p>Play the Cloud Hero game.</p>
    <ql-button href="/games/cloud-hero">Learn more</ql-button>
  </ql-dialog>
</body>
</html>
"""

EMPTY_HTML = "<html><head><title>Google Cloud Skills Boost</title></head><body><div></div></body></html>"

PRIVATE_HTML = """
<html><head><title>Google Cloud Skills Boost</title></head>
<body><div class="alert">This profile is private.</div></body></html>
"""


def make_item(
    title,
    kind=ItemKind.BADGE,
    category=const.CATEGORY_GENERAL,
    difficulty=const.DIFFICULTY_INTERMEDIATE,
    completed=True,
    date=None,
    url="",
):
    return NormalizedCompletionItem(
        kind=kind,
        original_title=title,
        normalized_title=normalize_title(title),
        category=category,
        difficulty=difficulty,
        is_completed=completed,
        completion_date=date,
        source_url=url,
    )


def make_response(url, status=200, text="", reason="OK"):
    r = requests.Response()
    r.status_code = status
    r._content = text.encode("utf-8")
    r.url = url
    r.reason = reason
    r.encoding = "utf-8"
    return r


class StubFetcher:
    """Stands in for ProfileFetcher: serves fixed markup or raises."""

    def __init__(self, markup=PROFILE_HTML, errors=()):
        self.markup = markup
        self.errors = list(errors)
        self.calls = []

    def fetch_profile(self, profile_url):
        self.calls.append(profile_url)
        if self.errors:
            error = self.errors.pop(0)
            if error is not None:
                raise error
        return extract(self.markup, profile_url=profile_url)


@pytest.fixture
def default_rules():
    return ScoringRule.from_dict(const.DEFAULT_SCORING_CONFIG)


@pytest.fixture
def participant():
    return ParticipantRecord(
        id="participant-001",
        display_name="Jane Doe",
        profile_identifier=PROFILE_ID,
        profile_url=PROFILE_URL,
        enrollment_date="2025-10-15T00:00:00.000Z",
        batch_label="Cloud Study Jams 2025",
    )


@pytest.fixture
def roster(participant):
    return RosterStore([participant])


@pytest.fixture
def stub_fetcher():
    return StubFetcher()


@pytest.fixture
def scorer(roster, default_rules, stub_fetcher):
    return ProfileScorer(roster=roster, rules=default_rules, fetcher=stub_fetcher)


@pytest.fixture
def program_allow_list():
    """19 badges + 1 game, like the Study Jams program list."""
    entries = [AllowListEntry(canonical_name=f"Badge {i}", kind=ItemKind.BADGE) for i in range(1, 20)]
    entries.append(AllowListEntry(canonical_name="Test Game", kind=ItemKind.GAME))
    return AllowList(entries=tuple(entries), badge_count=19, game_count=1)


@pytest.fixture
def empty_profile():
    return NormalizedProfile()
