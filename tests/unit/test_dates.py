import pytest
from datetime import datetime

import pytz

from event_scrapers.data_quality.dates import (
    UNSPECIFIED_DATE,
    current_year,
    month_number,
    normalize_date,
    normalize_date_time,
    split_date_time,
)

YEAR = 2024


@pytest.mark.parametrize("raw, expected", [
    ("16 de Dez às 22:00", ("16/12/2024", "22:00")),
    ("5 de Mar", ("05/03/2024", None)),
    ("16 de Dez a 31 de Dez", ("16/12 a 31/12/2024", None)),
    ("28 de Fev a 2 de Mar às 20:00", ("28/02 a 02/03/2024", "20:00")),
    ("Sáb, 7 de Set às 19:30", ("07/09/2024", "19:30")),
    ("16 de Dez at 20h", ("16/12/2024", "20h")),
    ("16 de Dez - 31 de Dez", ("16/12/2024", None)),
    ("16 de Dezembro a 31 de Dezembro às 21:00", ("16/12/2024", "21:00")),
])
def test_normalize_date_time_shapes(raw, expected):
    assert normalize_date_time(raw, year=YEAR) == expected


def test_unrecognized_text_passes_through():
    assert normalize_date("Em breve", year=YEAR) == "Em breve"
    assert normalize_date_time("Hoje às 21:00", year=YEAR) == ("Hoje", "21:00")


@pytest.mark.parametrize("empty", [None, "", "   "])
def test_empty_date_gets_sentinel(empty):
    assert normalize_date(empty, year=YEAR) == UNSPECIFIED_DATE
    assert normalize_date_time(empty, year=YEAR) == (UNSPECIFIED_DATE, None)


def test_unknown_month_defaults_to_january():
    assert normalize_date("16 de Xyz", year=YEAR) == "16/01/2024"


def test_month_lookup_is_case_sensitive():
    assert month_number("Dez") == "12"
    assert month_number("dez") == "01"
    assert normalize_date("3 de dez", year=YEAR) == "03/01/2024"


def test_all_portuguese_abbreviations():
    abbreviations = ["Jan", "Fev", "Mar", "Abr", "Mai", "Jun", "Jul", "Ago", "Set", "Out", "Nov", "Dez"]
    assert [month_number(a) for a in abbreviations] == [f"{n:02d}" for n in range(1, 13)]


def test_split_without_joiner_has_no_time():
    assert split_date_time("16 de Dez") == ("16 de Dez", None)
    assert split_date_time(None) == ("", None)


def test_year_defaults_to_current_year_in_timezone():
    expected = datetime.now(pytz.timezone("America/Bahia")).year
    assert current_year("America/Bahia") == expected
    assert normalize_date("1 de Jan") == f"01/01/{current_year()}"
