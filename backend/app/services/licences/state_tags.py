"""
Codec das listas de tags por UF gravadas em licence_requests.

Formatos persistidos (precisam continuar idênticos aos dados já gravados):

    status:  "UF:STATUS", "UF:STATUS:VALIDADE", "UF:STATUS::EMISSAO",
             "UF:STATUS:VALIDADE:EMISSAO"      (datas em YYYY-MM-DD)
    arquivo: "UF:URL"
    AET:     "UF:NUMERO"
    CNPJ:    "UF:CNPJ"
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable

SEPARATOR = ":"


@dataclass(frozen=True)
class StatusRecord:
    state: str
    status: str
    valid_until: date | None = None
    issued_at: date | None = None


def parse_tag_date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        # registros antigos podem trazer datetime ISO completo; só a data interessa
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def format_tag_date(value: date | str | None) -> str:
    if value is None:
        return ""
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


def decode(tags: Iterable[str] | None) -> dict[str, StatusRecord]:
    records: dict[str, StatusRecord] = {}
    for tag in tags or []:
        if not isinstance(tag, str):
            continue
        parts = tag.split(SEPARATOR)
        if len(parts) < 2 or not parts[0] or not parts[1]:
            continue
        state, status = parts[0], parts[1]
        valid_until = parse_tag_date(parts[2]) if len(parts) > 2 else None
        issued_at = parse_tag_date(parts[3]) if len(parts) > 3 else None
        # a última tag da UF prevalece
        records[state] = StatusRecord(state, status, valid_until, issued_at)
    return records


def encode(
    state: str,
    status: str,
    valid_until: date | str | None = None,
    issued_at: date | str | None = None,
) -> str:
    tag = f"{state}{SEPARATOR}{status}"
    valid_text = format_tag_date(valid_until)
    issued_text = format_tag_date(issued_at)
    if valid_text and issued_text:
        return f"{tag}{SEPARATOR}{valid_text}{SEPARATOR}{issued_text}"
    if valid_text:
        return f"{tag}{SEPARATOR}{valid_text}"
    if issued_text:
        return f"{tag}{SEPARATOR}{SEPARATOR}{issued_text}"
    return tag


def upsert(tags: Iterable[str] | None, state: str, new_tag: str) -> list[str]:
    """Troca a primeira tag da UF pela nova e descarta repetidas da mesma UF."""
    prefix = f"{state}{SEPARATOR}"
    result: list[str] = []
    replaced = False
    for tag in tags or []:
        if isinstance(tag, str) and tag.startswith(prefix):
            if not replaced:
                result.append(new_tag)
                replaced = True
            continue
        result.append(tag)
    if not replaced:
        result.append(new_tag)
    return result


def value_tag(state: str, value: str) -> str:
    return f"{state}{SEPARATOR}{value}"


def tag_value(tags: Iterable[str] | None, state: str) -> str | None:
    """Valor de uma tag "UF:valor"; o valor pode conter ":" (URLs)."""
    prefix = f"{state}{SEPARATOR}"
    value = None
    for tag in tags or []:
        if isinstance(tag, str) and tag.startswith(prefix):
            value = tag[len(prefix):]
    return value or None


def tag_values(tags: Iterable[str] | None) -> dict[str, str]:
    values: dict[str, str] = {}
    for tag in tags or []:
        if not isinstance(tag, str) or SEPARATOR not in tag:
            continue
        state, value = tag.split(SEPARATOR, 1)
        if state and value:
            values[state] = value
    return values
