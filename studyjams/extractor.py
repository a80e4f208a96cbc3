"""
Extract user info, badges and games from a public profile page.

The HTML structure of Cloud Skills Boost is not under our control, so every
field is looked up through a short list of selectors and degrades to an
empty string when nothing matches. The only hard failure is a private
profile.

Badges and games are rendered with the same ``.profile-badge`` card. The
card carries no kind marker; its ``ql-button[modal]`` points at a dialog
whose action link goes to ``/games/...`` for games. Classification is done
in two passes: collect the dialog ids that belong to games, then walk the
cards again and tag each one.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Set

from bs4 import BeautifulSoup

from . import const
from .errors import PrivateProfile
from .models import (
    ItemKind,
    ProfileStats,
    ProfileStatus,
    RawCompletionItem,
    RawProfileRecord,
    RawUserInfo,
)
from .urls import absolute_url

logger = logging.getLogger(__name__)


@dataclass
class _CandidateCard:
    """A ``.profile-badge`` node before its kind is known."""

    node: object
    panel_id: Optional[str] = None
    panel: Optional[object] = None
    panel_href: str = ""


def _text(el) -> str:
    if el is None:
        return ""
    return el.get_text(separator=" ", strip=True)


def _has_class_fragment(*fragments):
    def match(tag) -> bool:
        classes = tag.get("class") or []
        return tag.name == "span" and any(f in c for c in classes for f in fragments)

    return match


def _first_text(soup, selectors) -> str:
    for selector in selectors:
        el = soup.select_one(selector)
        value = _text(el)
        if value:
            return value
    return ""


def private_reason(soup) -> Optional[str]:
    """Return why the page looks private, or None when it looks public.

    Any single signal is enough.
    """
    body = soup.body or soup
    body_text = body.get_text(separator=" ").lower()
    for phrase in const.PRIVATE_PHRASES:
        if phrase in body_text:
            return f"page text: {phrase!r}"

    for selector in const.PRIVATE_SELECTORS:
        if soup.select_one(selector) is not None:
            return f"privacy marker: {selector}"

    title = _text(soup.title).lower()
    for marker in const.PRIVATE_TITLE_MARKERS:
        if marker in title:
            return f"page title: {marker!r}"

    # A name with no badge markup is not a signal.
    return None


def extract_user_info(soup) -> RawUserInfo:
    return RawUserInfo(
        name=_first_text(soup, const.NAME_SELECTORS),
        location=_first_text(soup, const.LOCATION_SELECTORS),
        join_date=_first_text(soup, const.JOIN_DATE_SELECTORS),
    )


def _collect_cards(soup) -> List[_CandidateCard]:
    cards = []
    for node in soup.select(".profile-badge"):
        card = _CandidateCard(node=node)
        button = node.select_one("ql-button[modal]")
        if button is not None:
            card.panel_id = button.get("modal") or None
        if card.panel_id:
            card.panel = soup.find(id=card.panel_id)
        if card.panel is not None:
            link = card.panel.select_one("ql-button[href]") or card.panel.select_one("a[href]")
            if link is not None:
                card.panel_href = link.get("href") or ""
        cards.append(card)
    return cards


def _card_title(node) -> str:
    title_el = node.select_one(".ql-title-medium")
    if title_el is None:
        title_el = node.find(_has_class_fragment("ql-title"))
    return _text(title_el)


def _card_earned_text(node) -> str:
    earned_el = node.select_one(".ql-body-medium")
    if earned_el is None:
        earned_el = node.find(_has_class_fragment("ql-body", "l-mbs"))
    return _text(earned_el)


def _build_item(card: _CandidateCard, kind: ItemKind) -> Optional[RawCompletionItem]:
    node = card.node
    title = _card_title(node)
    if not title:
        return None

    earned = _card_earned_text(node)
    image = node.select_one(".badge-image img")
    image_url = (image.get("src") or "") if image is not None else ""

    if kind is ItemKind.GAME:
        item_url = card.panel_href
        description = _text(card.panel.find("p")) if card.panel is not None else ""
    else:
        link = node.select_one(".badge-image")
        item_url = (link.get("href") or "") if link is not None else ""
        description = ""

    return RawCompletionItem(
        kind=kind,
        title=title,
        description_text=description,
        completion_marker_text=earned,
        earned_or_completed_text=earned,
        image_url=image_url,
        item_url=absolute_url(item_url),
    )


def classify_profile(soup, badges, games) -> ProfileStatus:
    if private_reason(soup):
        return ProfileStatus.PRIVATE
    if badges or games:
        return ProfileStatus.VALID
    if soup.select_one("ql-display-name") is not None or _first_text(soup, const.NAME_SELECTORS):
        return ProfileStatus.VALID
    page_text = (soup.body or soup).get_text(separator=" ").lower()
    if any(marker in page_text for marker in const.PROFILE_CONTENT_MARKERS):
        return ProfileStatus.VALID
    return ProfileStatus.EMPTY


def extract(markup: str, profile_url: str = "") -> RawProfileRecord:
    """Parse profile markup into a ``RawProfileRecord``.

    Raises ``PrivateProfile`` when any private-profile signal is present.
    Everything else missing from the page becomes an empty field.
    """
    soup = BeautifulSoup(markup or "", "html.parser")

    reason = private_reason(soup)
    if reason:
        logger.info("Profile %s is private (%s)", profile_url or "<markup>", reason)
        raise PrivateProfile("Profile is private", reason=reason)

    cards = _collect_cards(soup)

    # First pass: dialogs whose action link goes to a game
    game_panels: Set[str] = {
        card.panel_id for card in cards if card.panel_id and "/games/" in card.panel_href
    }

    # Second pass: tag every card
    badges: List[RawCompletionItem] = []
    games: List[RawCompletionItem] = []
    for card in cards:
        kind = ItemKind.GAME if card.panel_id in game_panels else ItemKind.BADGE
        item = _build_item(card, kind)
        if item is None:
            continue
        (games if kind is ItemKind.GAME else badges).append(item)

    stats = ProfileStats(
        total_badges=len(badges),
        total_games=len(games),
        completed_badges=sum(1 for b in badges if b.is_completed),
        completed_games=sum(1 for g in games if g.is_completed),
    )
    logger.debug("Found %d badges and %d games", len(badges), len(games))

    return RawProfileRecord(
        user_info=extract_user_info(soup),
        badges=badges,
        games=games,
        stats=stats,
        status=classify_profile(soup, badges, games),
        profile_url=profile_url,
    )
