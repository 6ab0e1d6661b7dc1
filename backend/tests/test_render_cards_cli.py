import json

from scripts import render_cards


def _write_csv(path, body):
    path.write_text(body, encoding="utf-8")
    return path


def test_cli_writes_pdf(tmp_path, offline_settings, capsys):
    csv_path = _write_csv(tmp_path / "students.csv", "Student ID,Name,Class\n1,Ada,M.1\n2,Bo,M.1\n,NoCode,M.1\n")
    template = tmp_path / "template.json"
    template.write_text(json.dumps({"school_name": "Test School", "background_url": ""}), encoding="utf-8")

    code = render_cards.main([
        "--csv", str(csv_path),
        "--template", str(template),
        "--out", str(tmp_path / "media"),
        "--scale", "1",
        "--offline",
    ])

    assert code == 0
    pdf = tmp_path / "media" / "exports" / "student-id-cards.pdf"
    assert pdf.read_bytes().startswith(b"%PDF")
    out = capsys.readouterr().out
    assert "rows=[2]" in out


def test_cli_without_usable_rows_fails(tmp_path):
    csv_path = _write_csv(tmp_path / "students.csv", "Name\nAda\n")
    assert render_cards.main(["--csv", str(csv_path), "--out", str(tmp_path)]) == 1
