"""Disposable-domain and message-content heuristics for contact submissions."""

import re
from typing import List, NamedTuple, Optional

from contact_service.shared.config import get_spam_uppercase_ratio


DISPOSABLE_DOMAINS = {
    "mailinator.com", "10minutemail.com", "tempmail.com", "temp-mail.org",
    "trashmail.com", "guerrillamail.com", "guerrillamail.net", "sharklasers.com",
    "yopmail.com", "dispostable.com", "getnada.com", "fakeinbox.com",
    "throwawaymail.com", "maildrop.cc", "mailnesia.com", "mintemail.com",
    "emailondeck.com", "moakt.com", "spamgourmet.com", "tempail.com",
    "discard.email", "mohmal.com", "burnermail.io", "mytemp.email",
}

SPAM_KEYWORDS = [
    "viagra", "cialis", "casino", "lottery", "jackpot", "crypto", "bitcoin",
    "forex", "payday loan", "free money", "earn money fast", "make money online",
    "work from home", "click here", "buy now", "limited time offer",
    "seo services", "backlinks", "rank your website", "porn", "xxx",
]

MAX_LINKS = 2
LINK_PATTERN = re.compile(r'https?://', re.IGNORECASE)
KEYWORD_PATTERNS = {kw: re.compile(rf"\b{re.escape(kw)}\b") for kw in SPAM_KEYWORDS}


class ContentVerdict(NamedTuple):
    """Result of analyzing a message body. `reasons` is empty for clean content."""
    reasons: List[str]

    @property
    def is_spam(self) -> bool:
        return bool(self.reasons)


def is_disposable_domain(domain: str) -> bool:
    if not domain:
        return False
    return domain.strip().lower() in DISPOSABLE_DOMAINS


def uppercase_ratio(text: str) -> float:
    """Fraction of all characters that are uppercase letters."""
    if not text:
        return 0.0
    return sum(1 for ch in text if ch.isupper()) / len(text)


def analyze_content(message: str, max_uppercase_ratio: Optional[float] = None) -> ContentVerdict:
    """
    Flag a message as spam if it contains a spam keyword, more than
    MAX_LINKS links, or too many uppercase letters.
    """
    if max_uppercase_ratio is None:
        max_uppercase_ratio = get_spam_uppercase_ratio()

    reasons = []
    lowered = message.lower()

    matched = [kw for kw, pattern in KEYWORD_PATTERNS.items() if pattern.search(lowered)]
    if matched:
        reasons.append(f"keywords: {', '.join(matched)}")

    link_count = len(LINK_PATTERN.findall(message))
    if link_count > MAX_LINKS:
        reasons.append(f"too many links ({link_count})")

    ratio = uppercase_ratio(message)
    if ratio > max_uppercase_ratio:
        reasons.append(f"uppercase ratio {ratio:.2f}")

    return ContentVerdict(reasons)
