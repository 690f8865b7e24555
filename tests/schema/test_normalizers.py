from datetime import date

import pytest

from schema.normalizers import (
    parse_date, is_valid_date, normalize_sex, normalize_period,
    clean_cpf, is_valid_cpf,
)


def test_parse_date_accepts_dd_mm_yyyy():
    assert parse_date("15/03/2010") == date(2010, 3, 15)
    assert parse_date(" 01/12/2015 ") == date(2015, 12, 1)


def test_parse_date_checks_calendar():
    """Leap days only exist in leap years; April has 30 days."""
    assert parse_date("29/02/2020") == date(2020, 2, 29)
    assert not is_valid_date("29/02/2021")
    assert not is_valid_date("31/04/2015")


@pytest.mark.parametrize("value", ["2010-03-15", "15/3/2010", "15/03/10", "", "abc"])
def test_parse_date_rejects_other_formats(value):
    with pytest.raises(ValueError):
        parse_date(value)


def test_normalize_sex():
    assert normalize_sex("m") == "Masculino"
    assert normalize_sex("FEMININO") == "Feminino"
    assert normalize_sex(" F ") == "Feminino"
    assert normalize_sex("x") is None
    assert normalize_sex("") is None
    assert normalize_sex(None) is None


def test_normalize_period_synonyms():
    for value in ("M", "manha", "Manhã", "MANHÃ"):
        assert normalize_period(value) == "Manhã"
    assert normalize_period("t") == "Tarde"
    assert normalize_period("Integral") == "Integral"
    assert normalize_period("noite") == "Noite"
    assert normalize_period("Invalido") is None
    assert normalize_period(None) is None


def test_clean_cpf_strips_punctuation():
    assert clean_cpf("529.982.247-25") == "52998224725"
    assert clean_cpf(None) == ""


def test_cpf_checksum():
    assert is_valid_cpf("529.982.247-25")
    assert is_valid_cpf("11144477735")
    assert not is_valid_cpf("52998224724")      # wrong check digit
    assert not is_valid_cpf("11111111111")      # all digits equal
    assert not is_valid_cpf("1234567890")       # too short
    assert not is_valid_cpf("")
