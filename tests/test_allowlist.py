from pathlib import Path

from stall_passport.allowlist import load_allowlist, parse_allowlist


def test_parse_normalizes_and_skips_noise():
    emails = parse_allowlist(["email", "  Ann@X.com ", "", "bob@x.com", "not an email"])
    assert emails == frozenset({"ann@x.com", "bob@x.com"})


def test_parse_csv_rows_take_email_field():
    emails = parse_allowlist(['Name,Email,Ticket', '"Ann Lee","ANN@x.com",A1'])
    assert emails == frozenset({"ann@x.com"})


def test_load_from_file(tmp_path: Path):
    path = tmp_path / "emails.txt"
    path.write_text("ann@x.com\r\nbob@x.com\r\n", encoding="utf-8")
    assert load_allowlist(str(path)) == frozenset({"ann@x.com", "bob@x.com"})


def test_missing_source_yields_empty_allowlist(tmp_path: Path):
    assert load_allowlist(str(tmp_path / "missing.txt")) == frozenset()
