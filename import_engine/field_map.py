"""
import_engine.field_map - Spreadsheet header → logical field mapping.

Headers are normalised first (see normalize_header), so only the
lower-case, accent-free, underscore form needs listing here.  When a
row carries several aliases of the same field, the first non-empty
one in the tuple wins.
"""

from __future__ import annotations

import re

from schema.normalizers import strip_accents

# Logical field  →  accepted (normalised) header names, by priority
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "full_name":   ("nome_completo", "nome"),
    "birth_date":  ("data_nascimento", "nascimento"),
    "sex":         ("sexo",),
    "cpf":         ("cpf",),
    "nis":         ("nis",),
    "school_name": ("escola", "nome_escola"),
    "inep":        ("inep",),
    "class_name":  ("turma",),
    "period":      ("periodo",),
    "school_year": ("ano_letivo",),
}

# Column label shown to the user in error messages
FIELD_LABELS: dict[str, str] = {
    field: aliases[0] for field, aliases in FIELD_ALIASES.items()
}

REQUIRED_FIELDS = (
    "full_name", "birth_date", "school_name",
    "class_name", "period", "school_year",
)


def normalize_header(header) -> str:
    """'Data de Nascimento ' → 'data_de_nascimento', 'Período' → 'periodo'."""
    if header is None:
        return ""
    text = strip_accents(str(header).strip().lower())
    return re.sub(r"[^a-z0-9_]", "_", text)
