"""Sponsor lineup loading and parsing.

Booked sponsor slots live in a JSON file (a list of slots, or an object with
a ``slots`` list). Each slot names the issue date, newsletter type, slot
type (``main``, ``company-raising`` or ``company-hiring``) and the sponsor
record. Free-text funding and hiring copy is parsed into structured fields
where possible; anything that cannot be parsed stays as the raw text.
"""

import json
import logging
import re
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from runway.models.content import (
    CompanyHiring,
    CompanyRaising,
    FundingDetails,
    NewsletterType,
    SponsorInfo,
    SponsorLineup,
    Unparsed,
)

logger = logging.getLogger(__name__)

_ROUND_RE = re.compile(
    r"\b(pre-seed|seed|series\s+[a-h]\+?|bridge|growth round|ipo)\b", re.IGNORECASE
)
_AMOUNT_RE = re.compile(
    r"\$\s?(\d+(?:[.,]\d+)?)\s?(k|m|b|thousand|million|billion)?\b", re.IGNORECASE
)
_INVESTORS_RE = re.compile(
    r"(?:led by|investors?:|backed by|with participation from)\s+([^.;\n]+)",
    re.IGNORECASE,
)
_AMOUNT_SUFFIX = {
    "k": "K",
    "thousand": "K",
    "m": "M",
    "million": "M",
    "b": "B",
    "billion": "B",
}


def _normalize_round(value: str) -> str:
    value = " ".join(value.split())
    if value.lower().startswith("series"):
        return "Series " + value.split(" ", 1)[1].upper()
    if value.lower() == "ipo":
        return "IPO"
    return "-".join(part.capitalize() for part in value.split("-"))


def _split_names(value: str) -> List[str]:
    parts = re.split(r",|\band\b|&", value)
    return [p.strip() for p in parts if p.strip()]


def parse_funding_info(text: Optional[str]) -> Union[FundingDetails, Unparsed]:
    """Extract round, amount and investors from funding copy.

    Returns :class:`Unparsed` when neither a round nor an amount is found.
    """
    text = text or ""
    round_match = _ROUND_RE.search(text)
    amount_match = _AMOUNT_RE.search(text)

    if not round_match and not amount_match:
        return Unparsed(raw=text)

    amount = None
    if amount_match:
        number, suffix = amount_match.groups()
        amount = f"${number}{_AMOUNT_SUFFIX.get((suffix or '').lower(), '')}"

    investors: List[str] = []
    for match in _INVESTORS_RE.finditer(text):
        for name in _split_names(match.group(1)):
            if name not in investors:
                investors.append(name)

    return FundingDetails(
        round=_normalize_round(round_match.group(1)) if round_match else None,
        amount=amount,
        investors=investors,
    )


def _labelled(text: str, *labels: str) -> Optional[str]:
    for label in labels:
        match = re.search(rf"^\s*{label}\s*:\s*(.+)$", text, re.IGNORECASE | re.MULTILINE)
        if match:
            return match.group(1).strip()
    return None


def parse_hiring_info(text: Optional[str]) -> Dict[str, Any]:
    """Pick ``Roles:``, ``Location:`` and ``Stack:`` lines out of hiring copy.

    Fields that are not present are left empty rather than guessed. The
    remaining lines become the description.
    """
    text = text or ""
    roles = _labelled(text, "roles?", "open roles", "positions?")
    location = _labelled(text, "location")
    stack = _labelled(text, "stack", "tech stack")

    description_lines = [
        line.strip()
        for line in text.splitlines()
        if line.strip()
        and not re.match(
            r"^\s*(roles?|open roles|positions?|location|stack|tech stack)\s*:",
            line,
            re.IGNORECASE,
        )
    ]

    return {
        "roles": _split_names(roles) if roles else [],
        "location": location,
        "stack": stack,
        "description": " ".join(description_lines),
    }


def _parse_date(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"Ignoring invalid sponsor date: {value}")
        return None


def sponsor_from_record(record: Dict[str, Any]) -> SponsorInfo:
    link = record.get("link", "")
    return SponsorInfo(
        id=str(record.get("id", record.get("name", ""))),
        name=record.get("name") or record.get("company_name", ""),
        logo=record.get("logo") or record.get("custom_image_url") or "",
        link=link,
        description=record.get("description") or record.get("custom_copy") or "",
        cta_text=record.get("cta_text", "Learn More"),
        cta_link=record.get("cta_link") or link,
        image_url=record.get("image_url"),
        start_date=_parse_date(record.get("start_date")),
        end_date=_parse_date(record.get("end_date")),
    )


def company_raising_from_record(record: Dict[str, Any]) -> CompanyRaising:
    copy = record.get("custom_copy") or record.get("funding") or ""
    return CompanyRaising(
        id=str(record.get("id", record.get("name", ""))),
        name=record.get("company_name") or record.get("name", ""),
        funding=parse_funding_info(copy),
        description=record.get("description") or copy,
        link=record.get("link", ""),
        logo=record.get("logo") or record.get("custom_image_url"),
    )


def company_hiring_from_record(record: Dict[str, Any]) -> CompanyHiring:
    parsed = parse_hiring_info(record.get("custom_copy"))
    roles = record.get("roles") or parsed["roles"]
    return CompanyHiring(
        id=str(record.get("id", record.get("name", ""))),
        name=record.get("company_name") or record.get("name", ""),
        roles=list(roles),
        location=record.get("location") or parsed["location"],
        stack=record.get("stack") or parsed["stack"],
        description=record.get("description") or parsed["description"],
        link=record.get("link", ""),
        logo=record.get("logo") or record.get("custom_image_url"),
    )


def build_lineup(
    slots: List[Dict[str, Any]], issue_date: date, newsletter_type: NewsletterType
) -> SponsorLineup:
    """Collect the slots booked for one issue into a lineup."""
    if isinstance(issue_date, datetime):
        issue_date = issue_date.date()
    newsletter_type = NewsletterType(newsletter_type)
    lineup = SponsorLineup()

    for slot in slots:
        if str(slot.get("date", ""))[:10] != issue_date.isoformat():
            continue
        if slot.get("newsletter_type") != newsletter_type.value:
            continue

        record = slot.get("sponsor") or {}
        slot_type = slot.get("slot_type")
        if slot_type == "main":
            lineup.main_sponsor = sponsor_from_record(record)
        elif slot_type == "company-raising":
            lineup.companies_raising.append(company_raising_from_record(record))
        elif slot_type == "company-hiring":
            lineup.companies_hiring.append(company_hiring_from_record(record))
        else:
            logger.warning(f"Unknown sponsor slot type: {slot_type}")

    return lineup


def load_sponsor_lineup(
    path: Optional[str], issue_date: date, newsletter_type: NewsletterType
) -> SponsorLineup:
    """Load the lineup for one issue; empty when no file is configured."""
    if not path:
        return SponsorLineup()

    sponsors_path = Path(path)
    if not sponsors_path.exists():
        logger.warning(f"Sponsors file not found: {sponsors_path}")
        return SponsorLineup()

    data = json.loads(sponsors_path.read_text(encoding="utf-8"))
    slots = data.get("slots", []) if isinstance(data, dict) else data
    lineup = build_lineup(slots, issue_date, newsletter_type)

    logger.info(
        f"Sponsor lineup: main={'yes' if lineup.main_sponsor else 'no'}, "
        f"raising={len(lineup.companies_raising)}, hiring={len(lineup.companies_hiring)}"
    )
    return lineup
