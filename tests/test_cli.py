import json

from merkle_airdrop.cli import main
from merkle_airdrop.files import load_distribution_json, read_csv_entries, write_sample_csv

ROOT_3 = "0x79d3636d1d7959426e3e164d8db58bc42e1b6113fd27e2d592602f4ba8c698f6"
A2 = "0x2222222222222222222222222222222222222222"


def build_sample(tmp_path):
    csv_path = tmp_path / "sample.csv"
    out_json = tmp_path / "merkle.json"
    out_csv = tmp_path / "claims.csv"
    assert main(["sample", "--out", str(csv_path)]) == 0
    assert main(["build", "--csv", str(csv_path), "--out-json", str(out_json), "--out-csv", str(out_csv)]) == 0
    return out_json, out_csv


def test_read_csv_with_and_without_header(tmp_path):
    with_header = tmp_path / "a.csv"
    with_header.write_text("Address,Amount\n0x" + "a" * 40 + ",5\n\n")
    assert read_csv_entries(str(with_header)) == [{"Address": "0x" + "a" * 40, "Amount": "5"}]

    bare = tmp_path / "b.csv"
    bare.write_text("0x" + "a" * 40 + ",5\n0x" + "b" * 40 + "\n")
    assert read_csv_entries(str(bare)) == [["0x" + "a" * 40, "5"], ["0x" + "b" * 40]]

    empty = tmp_path / "c.csv"
    empty.write_text("\n")
    assert read_csv_entries(str(empty)) == []


def test_sample_csv_round_trips_through_reader(tmp_path):
    path = tmp_path / "s.csv"
    write_sample_csv(str(path))
    rows = read_csv_entries(str(path))
    assert [r["amount"] for r in rows] == ["1000", "2500", "5000"]


def test_build_writes_golden_root(tmp_path, capsys):
    out_json, out_csv = build_sample(tmp_path)
    assert ROOT_3 in capsys.readouterr().out

    master = load_distribution_json(str(out_json))
    assert master["merkleRoot"] == ROOT_3
    assert master["tokenTotal"] == "8500"
    assert master["claims"][A2]["index"] == 1

    lines = out_csv.read_text().splitlines()
    assert lines[0] == "address,amount,index,proof"
    assert len(lines) == 4


def test_proof_and_verify_commands(tmp_path, capsys):
    out_json, _ = build_sample(tmp_path)
    capsys.readouterr()

    assert main(["proof", "--json", str(out_json), "--address", A2.upper().replace("0X", "0x")]) == 0
    printed = json.loads(capsys.readouterr().out)
    assert printed["amount"] == "2500"
    assert len(printed["proof"]) == 2

    assert main(["verify", "--json", str(out_json), "--address", A2, "--amount", "2500"]) == 0
    assert "Valid proof: True" in capsys.readouterr().out

    assert main(["verify", "--json", str(out_json), "--address", A2, "--amount", "2501"]) == 1
    assert "Amount mismatch" in capsys.readouterr().out

    assert main(["proof", "--json", str(out_json), "--address", "0x" + "9" * 40]) == 1


def test_verify_detects_tampered_file(tmp_path, capsys):
    out_json, _ = build_sample(tmp_path)
    master = json.loads(out_json.read_text())
    master["merkleRoot"] = "0x" + "00" * 32
    out_json.write_text(json.dumps(master))
    assert main(["verify", "--json", str(out_json), "--address", A2, "--amount", "2500"]) == 1
    assert "Valid proof: False" in capsys.readouterr().out


def test_build_decimals_and_bad_rows(tmp_path, capsys):
    csv_path = tmp_path / "r.csv"
    csv_path.write_text(
        "address,amount\n"
        "0x" + "a" * 40 + ",1.5\n"
        "0xbad,2\n"
        "0x" + "b" * 40 + ",-5\n"
    )
    out_json = tmp_path / "m.json"
    args = ["build", "--csv", str(csv_path), "--decimals", "18",
            "--out-json", str(out_json), "--out-csv", str(tmp_path / "c.csv")]
    assert main(args) == 0
    master = load_distribution_json(str(out_json))
    assert master["claims"]["0x" + "a" * 40]["amount"] == "1500000000000000000"
    assert master["claims"]["0x" + "b" * 40]["amount"] == "0"

    assert main(args + ["--strict"]) == 1


def test_build_refuses_over_limit_and_empty(tmp_path):
    build_sample(tmp_path)
    csv_path = tmp_path / "sample.csv"
    assert main(["build", "--csv", str(csv_path), "--max-recipients", "2",
                 "--out-json", str(tmp_path / "x.json"), "--out-csv", str(tmp_path / "x.csv")]) == 1

    empty = tmp_path / "empty.csv"
    empty.write_text("address,amount\n")
    assert main(["build", "--csv", str(empty),
                 "--out-json", str(tmp_path / "y.json"), "--out-csv", str(tmp_path / "y.csv")]) == 1
    assert not (tmp_path / "y.json").exists()


def test_normalize_command_prints_report(tmp_path, capsys):
    csv_path = tmp_path / "d.csv"
    csv_path.write_text("0x" + "a" * 40 + ",1\n0x" + "A" * 40 + ",2\n")
    assert main(["normalize", "--csv", str(csv_path)]) == 0
    report = json.loads(capsys.readouterr().out)
    assert report["duplicatesRemoved"] == 1
    assert report["recipients"] == [{"address": "0x" + "a" * 40, "amount": "2"}]


def test_missing_input_file_exits_nonzero(tmp_path):
    assert main(["proof", "--json", str(tmp_path / "nope.json"), "--address", A2]) == 1


def test_lookup_accepts_unprefixed_and_checksummed_addresses(tmp_path, capsys):
    out_json, _ = build_sample(tmp_path)
    capsys.readouterr()

    assert main(["proof", "--json", str(out_json), "--address", "2" * 40]) == 0
    assert json.loads(capsys.readouterr().out)["address"] == A2

    assert main(["verify", "--json", str(out_json), "--address", "2" * 40, "--amount", "2500"]) == 0
    assert "Valid proof: True" in capsys.readouterr().out

    assert main(["proof", "--json", str(out_json), "--address", "0x5aaeb6053F3E94C9b9A09f33669435E7Ef1BeAed"]) == 1
    assert main(["proof", "--json", str(out_json), "--address", "0x1234"]) == 1


def test_read_csv_keeps_quoted_newlines(tmp_path):
    path = tmp_path / "q.csv"
    path.write_text(
        'address,amount,note\n'
        '0x' + 'a' * 40 + ',5,"first line\nsecond line"\n'
        ',,\n'
        '0x' + 'b' * 40 + ',6,plain\n'
    )
    rows = read_csv_entries(str(path))
    assert len(rows) == 2
    assert rows[0]["note"] == "first line\nsecond line"
    assert rows[1]["amount"] == "6"
