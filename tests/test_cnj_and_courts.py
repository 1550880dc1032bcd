import pytest

from painel.scraper import cnj, courts


def test_extract_and_clean_cnj_from_formatted_text():
    text = "Processo nº 0001234-56.2024.8.26.0100 distribuído"
    assert cnj.extract_and_clean_cnj(text) == "00012345620248260100"


@pytest.mark.parametrize(
    "text",
    [
        "",
        None,
        "123-45",
        "0001234-56.2024.8.26.01000",
    ],
)
def test_extract_and_clean_cnj_rejects_wrong_length(text):
    assert cnj.extract_and_clean_cnj(text) is None


def test_format_cnj_groups_digits():
    assert cnj.format_cnj("00012345620248260100") == "0001234-56.2024.8.26.0100"


def test_format_cnj_leaves_other_input_untouched():
    assert cnj.format_cnj("12345") == "12345"


@pytest.mark.parametrize(
    "number, expected",
    [
        ("00012345620248240001", "TJSC"),
        ("0001234-56.2024.8.26.0100", "TJSP"),
        ("00012345620244030001", "TRF3"),
        ("00012345620245150001", "TRT15"),
        ("00012345620249990001", "Tribunal 999"),
        ("1234567890123", None),
    ],
)
def test_get_tribunal_from_cnj(number, expected):
    assert courts.get_tribunal_from_cnj(number) == expected


def test_court_code_needs_fourteen_digits():
    assert courts.court_code_from_cnj("12345678901234") == "890"
    assert courts.court_code_from_cnj("1234567890123") is None


def test_count_courts_skips_unknown_and_short_items():
    text = "\n".join(
        [
            "00012345620248260100",
            "0001234-56.2024.8.26.0200, 00012345620248190001",
            "00012345620249990001",
            "123",
        ]
    )

    result = courts.count_courts(text)

    assert result == {"counts": {"TJSP": 2, "TJRJ": 1}, "total": 3}


def test_count_courts_empty_text():
    assert courts.count_courts("") == {"counts": {}, "total": 0}
