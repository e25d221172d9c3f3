from __future__ import annotations

import re
import unicodedata
from datetime import date
from uuid import uuid4

_ONLY_DIGITS = re.compile(r"\D+")
_NOT_PLATE = re.compile(r"[^A-Z0-9]+")
_NOT_SLUG = re.compile(r"[^a-z0-9]+")

BRAZILIAN_STATES = (
    "AC", "AL", "AP", "AM", "BA", "CE", "DF", "ES", "GO", "MA",
    "MT", "MS", "MG", "PA", "PB", "PR", "PE", "PI", "RJ", "RN",
    "RS", "RO", "RR", "SC", "SP", "SE", "TO", "DNIT",
)


def normalize_digits(value: str | None) -> str:
    return _ONLY_DIGITS.sub("", value or "")


def normalize_cnpj(value: str | None) -> str:
    return normalize_digits(value)


def normalize_plate(value: str | None) -> str:
    return _NOT_PLATE.sub("", (value or "").upper())


def normalize_plates(values) -> list[str]:
    seen: list[str] = []
    for value in values or []:
        plate = normalize_plate(value)
        if plate and plate not in seen:
            seen.append(plate)
    return seen


def normalize_state(value: str | None) -> str:
    return (value or "").strip().upper()


def slugify(raw: str | None, max_length: int = 60) -> str:
    text = unicodedata.normalize("NFD", raw or "desconhecido")
    text = "".join(ch for ch in text if not unicodedata.combining(ch)).lower()
    return _NOT_SLUG.sub("-", text).strip("-")[:max_length] or "desconhecido"


def generate_request_number(draft: bool = False, today: date | None = None) -> str:
    year = (today or date.today()).year
    prefix = "RASC" if draft else "AET"
    return f"{prefix}-{year}-{uuid4().hex[:8].upper()}"
