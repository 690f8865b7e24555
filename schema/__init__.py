"""
schema - Enrollment vocabulary and field rules.

Public API:
    normalizers.parse_date / is_valid_date
    normalizers.normalize_sex / normalize_period
    normalizers.clean_cpf / is_valid_cpf
"""

from schema.normalizers import (                    # noqa: F401
    SEX_VALUES,
    PERIOD_VALUES,
    parse_date,
    is_valid_date,
    normalize_sex,
    normalize_period,
    clean_cpf,
    is_valid_cpf,
    strip_accents,
)
