from recipe_journal.app.services.quantity_parser import parse_quantity_value


def test_parse_quantity_valid():
    assert parse_quantity_value("1") == 1.0
    assert parse_quantity_value("0.5") == 0.5
    assert parse_quantity_value("1/2") == 0.5
    assert parse_quantity_value("1 1/2") == 1.5
    assert parse_quantity_value(" 3 ") == 3.0


def test_parse_quantity_unicode_fractions():
    assert parse_quantity_value("½") == 0.5
    assert parse_quantity_value("2½") == 2.5
    assert parse_quantity_value("1 ½") == 1.5
    assert parse_quantity_value("¾") == 0.75


def test_parse_quantity_invalid():
    assert parse_quantity_value(None) is None
    assert parse_quantity_value("") is None
    assert parse_quantity_value("   ") is None
    assert parse_quantity_value("1/0") is None
    assert parse_quantity_value("abc") is None
    assert parse_quantity_value("inf") is None
    assert parse_quantity_value("nan") is None
