"""Brazilian phone extraction and confidence scoring.

Pure functions only: the engine turns bio text and profile links into
normalised E.164 numbers, each tagged with a confidence level and the set of
sources that produced it. Nothing here touches the network.
"""

import re
from dataclasses import dataclass
from typing import Iterable
from urllib.parse import parse_qsl, unquote, urlsplit

from instaleads.models.phone import PhoneConfidence, PhoneDetail, PhoneExtraction


PHONE_CANDIDATE_RE = re.compile(r"\+?\d[\d\s().-]{7,}\d")
_NON_DIGIT_RE = re.compile(r"\D")
_URL_PROTOCOL_RE = re.compile(r"^https?://", re.IGNORECASE)

MAX_URL_DEPTH = 2
DECODE_PASSES = 2


@dataclass(frozen=True)
class PhoneCandidate:
    """A raw digit run plus where it came from."""

    raw: str
    source: str
    confidence: PhoneConfidence


def decode_repeatedly(value: str, passes: int = DECODE_PASSES) -> str:
    """Percent-decode up to `passes` times, stopping once decoding is a no-op."""
    current = value
    for _ in range(passes):
        decoded = unquote(current)
        if decoded == current:
            break
        current = decoded
    return current


def to_brazil_e164(raw: str) -> str | None:
    """
    Normalise a raw digit run to a Brazilian E.164 number.

    Examples:
        "(11) 91234-5678" -> "+5511912345678"
        "+55 011 1234-5678" -> "+551112345678"
        "12345" -> None
    """
    digits = _NON_DIGIT_RE.sub("", raw or "")
    if not digits:
        return None

    if digits.startswith("55"):
        digits = digits[2:]

    if len(digits) in (11, 12) and digits.startswith("0"):
        digits = digits[1:]

    if len(digits) not in (10, 11):
        return None

    ddd, subscriber = digits[:2], digits[2:]

    if ddd.startswith("0") or not 11 <= int(ddd) <= 99:
        return None
    if len(subscriber) not in (8, 9) or subscriber.startswith("0"):
        return None

    return f"+55{ddd}{subscriber}"


def format_pt_br(e164: str) -> str:
    """Render `+55DDNNNNNNNNN` as `+55 (DD) NNNNN-NNNN` (or 4-4 for landlines)."""
    national = _NON_DIGIT_RE.sub("", e164)[2:]
    ddd, subscriber = national[:2], national[2:]

    if len(subscriber) == 9:
        return f"+55 ({ddd}) {subscriber[:5]}-{subscriber[5:]}"
    return f"+55 ({ddd}) {subscriber[:4]}-{subscriber[4:]}"


def candidates_from_text(
    text: str,
    source: str,
    confidence: PhoneConfidence,
) -> list[PhoneCandidate]:
    """Harvest digit runs from the raw text and its percent-decoded form."""
    if not text:
        return []

    variants = [text]
    decoded = decode_repeatedly(text)
    if decoded != text:
        variants.append(decoded)

    return [
        PhoneCandidate(match, source, confidence)
        for variant in variants
        for match in PHONE_CANDIDATE_RE.findall(variant)
    ]


def _normalize_url(value: str) -> str:
    trimmed = value.strip()
    if trimmed.startswith("wa.me/") and not _URL_PROTOCOL_RE.match(trimmed):
        return f"https://{trimmed}"
    return trimmed


def _is_wa_me_host(host: str) -> bool:
    return host == "wa.me" or host.endswith(".wa.me")


def _is_whatsapp_host(host: str) -> bool:
    return _is_wa_me_host(host) or "whatsapp.com" in host


def candidates_from_url(
    raw_url: str,
    source_prefix: str,
    depth: int = 0,
) -> list[PhoneCandidate]:
    """
    Harvest candidates from a link, unwrapping redirect wrappers.

    Query values that look like URLs (or mention wa.me) are re-parsed up to
    MAX_URL_DEPTH levels deep, so `l.instagram.com/?u=https%3A%2F%2Fwa.me%2F55...`
    still yields the wa.me path.
    """
    if not raw_url or depth > MAX_URL_DEPTH:
        return []

    decoded = decode_repeatedly(raw_url)
    found = candidates_from_text(decoded, f"{source_prefix}_raw_text", PhoneConfidence.MEDIUM)

    try:
        parts = urlsplit(_normalize_url(decoded))
        host = (parts.hostname or "").lower()
        params = parse_qsl(parts.query, keep_blank_values=False)
    except ValueError:
        return found

    if not host:
        return found

    if _is_wa_me_host(host):
        found.append(PhoneCandidate(
            parts.path.replace("/", ""),
            f"{source_prefix}_wa_path",
            PhoneConfidence.HIGH,
        ))

    phone_param = next((value for key, value in params if key == "phone"), None)
    if phone_param:
        if _is_whatsapp_host(host):
            found.append(PhoneCandidate(phone_param, f"{source_prefix}_wa_phone_param", PhoneConfidence.HIGH))
        else:
            found.append(PhoneCandidate(phone_param, f"{source_prefix}_phone_param", PhoneConfidence.MEDIUM))

    for _, value in params:
        decoded_value = decode_repeatedly(value)
        found.extend(candidates_from_text(
            decoded_value, f"{source_prefix}_query_text", PhoneConfidence.MEDIUM
        ))
        if "http" in decoded_value or "wa.me" in decoded_value:
            found.extend(candidates_from_url(decoded_value, f"{source_prefix}_nested", depth + 1))

    return found


def merge_candidates(candidates: Iterable[PhoneCandidate]) -> list[PhoneDetail]:
    """
    Normalise and deduplicate candidates by E.164.

    Merging keeps the highest confidence and the union of sources. Invalid
    numbers are dropped silently. Output is sorted by E.164.
    """
    merged: dict[str, tuple[PhoneConfidence, set[str]]] = {}

    for candidate in candidates:
        e164 = to_brazil_e164(candidate.raw)
        if e164 is None:
            continue

        if e164 not in merged:
            merged[e164] = (candidate.confidence, {candidate.source})
            continue

        confidence, sources = merged[e164]
        if candidate.confidence.weight > confidence.weight:
            confidence = candidate.confidence
        sources.add(candidate.source)
        merged[e164] = (confidence, sources)

    return [
        PhoneDetail(
            phone_pt_br=format_pt_br(e164),
            phone_e164=e164,
            confidence=confidence,
            sources=sorted(sources),
        )
        for e164, (confidence, sources) in sorted(merged.items())
    ]


def pick_primary(details: list[PhoneDetail]) -> PhoneDetail | None:
    """Highest confidence, then most sources, then smallest E.164."""
    if not details:
        return None
    return min(
        details,
        key=lambda d: (-d.confidence.weight, -len(d.sources), d.phone_e164),
    )


def extract_brazil_phones(
    bio: str | None = None,
    link: str | None = None,
    bio_links: Iterable[str | None] = (),
) -> PhoneExtraction:
    """
    Run the full extraction over a profile's bio, main link and bio links.

    Args:
        bio: Free-text biography (low confidence)
        link: Primary external link
        bio_links: Additional link URLs, tagged bio_link_1, bio_link_2, ...

    Returns:
        PhoneExtraction with all numbers and the primary pick
    """
    candidates: list[PhoneCandidate] = []

    if bio:
        candidates.extend(candidates_from_text(bio, "bio_text", PhoneConfidence.LOW))

    if link:
        candidates.extend(candidates_from_url(link, "profile_link"))
        candidates.extend(candidates_from_text(link, "profile_link_text", PhoneConfidence.MEDIUM))

    for index, url in enumerate(bio_links, start=1):
        if not url:
            continue
        prefix = f"bio_link_{index}"
        candidates.extend(candidates_from_url(url, prefix))
        candidates.extend(candidates_from_text(url, f"{prefix}_text", PhoneConfidence.MEDIUM))

    details = merge_candidates(candidates)
    primary = pick_primary(details)

    return PhoneExtraction(
        phones_pt_br=[d.phone_pt_br for d in details],
        phones_e164=[d.phone_e164 for d in details],
        phones_details=details,
        primary_phone_pt_br=primary.phone_pt_br if primary else None,
        primary_phone_e164=primary.phone_e164 if primary else None,
        primary_phone_confidence=primary.confidence if primary else None,
    )
