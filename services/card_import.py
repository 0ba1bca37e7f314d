# services/card_import.py
"""Bulk card import into one pack from JSON rows or an uploaded CSV/JSON file."""
from __future__ import annotations

import csv
import io
import json
import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

from sqlalchemy.exc import IntegrityError

from extensions import db
from models import Pack
from utils.errors import AppError, ValidationError

from .catalog import adjust_pack_total, build_card, card_number_taken, normalize_keys

logger = logging.getLogger(__name__)

STATUS_CREATED = "created"
STATUS_SKIPPED = "skipped"
STATUS_ERROR = "error"


class HeaderValidationError(ValidationError):
    """Raised when required columns are missing from an import file."""

    def __init__(self, details: List[str]):
        super().__init__("Missing required column(s): " + "; ".join(details))
        self.details = details


# Ordered header variants (first match wins).
EXPECTED = {
    "card_number": ["card number", "card_number", "cardnumber", "number", "code", "#"],
    "name": ["card name", "card_name", "name", "card"],
    "card_type": ["card type", "card_type", "cardtype", "type"],
    "frame_color": ["frame color", "frame_color", "framecolor", "frame"],
    "set_code": ["set code", "set_code", "setcode", "set"],
    "set_position": ["set position", "set_position", "setposition", "position"],
    "rarity": ["rarity"],
    "attribute": ["attribute", "attr"],
    "monster_type": ["monster type", "monster_type", "monstertype", "race"],
    "monster_abilities": ["monster abilities", "monster_abilities", "abilities"],
    "level": ["level", "lvl"],
    "rank": ["rank"],
    "link_rating": ["link rating", "link_rating", "link"],
    "link_arrows": ["link arrows", "link_arrows", "arrows"],
    "pendulum_scale": ["pendulum scale", "pendulum_scale", "scale"],
    "atk": ["atk", "attack"],
    "def": ["def", "defense", "defence"],
    "spell_type": ["spell type", "spell_type"],
    "trap_type": ["trap type", "trap_type"],
    "card_text": ["card text", "card_text", "text", "description", "desc"],
    "pendulum_effect": ["pendulum effect", "pendulum_effect"],
    "language": ["language", "lang"],
    "ban_status": ["ban status", "ban_status", "banlist"],
    "konami_id": ["konami id", "konami_id", "konamiid", "passcode"],
    "name_jp": ["name jp", "name_jp"],
    "image_url": ["image url", "image_url", "image"],
    "image_url_small": ["image url small", "image_url_small", "thumbnail"],
}
REQUIRED_COLUMNS = {
    "card_number": "Card number",
    "name": "Card name",
    "card_type": "Card type",
    "frame_color": "Frame color",
}


@dataclass
class RowResult:
    index: int
    card_number: Optional[str]
    status: str
    card_id: Optional[int] = None
    message: Optional[str] = None


@dataclass
class ImportReport:
    pack_id: int
    results: List[RowResult] = field(default_factory=list)

    def count(self, status: str) -> int:
        return sum(1 for row in self.results if row.status == status)

    def summary(self) -> Dict[str, int]:
        return {
            "created": self.count(STATUS_CREATED),
            "skipped": self.count(STATUS_SKIPPED),
            "errors": self.count(STATUS_ERROR),
        }

    def to_dict(self) -> Dict[str, Any]:
        data = self.summary()
        data["pack_id"] = self.pack_id
        data["results"] = [asdict(row) for row in self.results]
        return data


def _normalize_headers(headers: Optional[Iterable[str]]) -> Dict[str, str]:
    if not headers:
        raise HeaderValidationError([
            "No headers found. Include columns such as 'Card Number', 'Name', 'Card Type', 'Frame Color'."
        ])
    lower_to_original = {h.strip().lower(): h for h in headers if isinstance(h, str)}
    mapping: Dict[str, str] = {}
    for name, variants in EXPECTED.items():
        for variant in variants:
            if variant in lower_to_original:
                mapping[name] = lower_to_original[variant]
                break
    missing = []
    for req, label in REQUIRED_COLUMNS.items():
        if req not in mapping:
            missing.append(f"{label} (accepted: {', '.join(EXPECTED[req])})")
    if missing:
        raise HeaderValidationError(missing)
    return mapping


def rows_from_csv(text: str) -> List[Dict[str, Any]]:
    """Parse CSV text into normalized row dicts (blank cells dropped)."""
    content = text.lstrip("\ufeff")
    sample = content[:4096]
    try:
        delimiter = csv.Sniffer().sniff(sample, delimiters=[",", ";", "\t", "|"]).delimiter
    except csv.Error:
        delimiter = ","
    reader = csv.DictReader(io.StringIO(content), delimiter=delimiter)
    mapping = _normalize_headers(reader.fieldnames)
    rows: List[Dict[str, Any]] = []
    for raw in reader:
        row = {}
        for name, column in mapping.items():
            value = (raw.get(column) or "").strip()
            if value:
                row[name] = value
        if row:
            rows.append(row)
    return rows


def rows_from_json(text: str) -> List[Dict[str, Any]]:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Invalid JSON file: {exc.msg}") from exc
    if isinstance(payload, Mapping):
        payload = payload.get("cards")
    if not isinstance(payload, list):
        raise ValidationError("cards must be a list")
    return list(payload)


def rows_from_upload(filename: str, data: bytes) -> List[Dict[str, Any]]:
    """Decode an uploaded ``.csv`` or ``.json`` file into rows."""
    text = data.decode("utf-8-sig", errors="replace")
    lowered = (filename or "").lower()
    if lowered.endswith(".json"):
        return rows_from_json(text)
    if lowered.endswith(".csv") or lowered.endswith(".txt"):
        return rows_from_csv(text)
    raise ValidationError("Unsupported file type; upload a .csv or .json file", field="file")


def import_cards(pack: Pack, rows: List[Any]) -> ImportReport:
    """Create the cards in ``rows`` under ``pack`` and commit once.

    Each row runs in its own savepoint: rows whose card_number already exists
    are skipped, invalid rows are reported as errors, and neither aborts the
    batch. The pack counter grows by the number of rows created.
    """
    if not isinstance(rows, list):
        raise ValidationError("cards must be a list", field="cards")
    report = ImportReport(pack_id=pack.id)

    for index, raw in enumerate(rows):
        if not isinstance(raw, Mapping):
            report.results.append(RowResult(index, None, STATUS_ERROR, message="Row must be an object"))
            continue
        data = normalize_keys(raw)
        card_number = str(data.get("card_number") or "").strip() or None
        if card_number is None:
            report.results.append(RowResult(index, None, STATUS_ERROR, message="card_number is required"))
            continue
        if card_number_taken(card_number):
            report.results.append(RowResult(index, card_number, STATUS_SKIPPED, message="Card already exists"))
            continue
        try:
            with db.session.begin_nested():
                card = build_card(data, pack)
                db.session.add(card)
            report.results.append(RowResult(index, card_number, STATUS_CREATED, card_id=card.id))
        except AppError as exc:
            report.results.append(RowResult(index, card_number, STATUS_ERROR, message=exc.message))
        except IntegrityError as exc:
            logger.warning("Import row %s (%s) rejected: %s", index, card_number, exc.orig)
            report.results.append(RowResult(index, card_number, STATUS_ERROR, message="Constraint violation"))

    adjust_pack_total(pack.id, report.count(STATUS_CREATED))
    db.session.commit()
    logger.info(
        "Imported cards into pack %s: %s",
        pack.set_code,
        report.summary(),
    )
    return report


__all__ = [
    "EXPECTED",
    "HeaderValidationError",
    "ImportReport",
    "RowResult",
    "import_cards",
    "rows_from_csv",
    "rows_from_json",
    "rows_from_upload",
]
