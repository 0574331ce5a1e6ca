"""
CLI Unit Tests
Tests for merkle_cli (build, prove, verify, demo, config)

All commands are driven through main(argv) with files under tmp_path.
"""
import json

import pytest

from core.crypto.hashing import Hasher, to_hex
from core.merkle import MerkleProof, build_tree_from_records
from fixtures import TRANSFER_RECORDS, make_records, write_records_file
from merkle_cli.inputs import InputError, load_records
from merkle_cli.main import (
    EXIT_RUNTIME_ERROR,
    EXIT_SUCCESS,
    EXIT_VERIFICATION_FAILED,
    create_parser,
    main,
)


@pytest.fixture
def records_file(tmp_path):
    return write_records_file(tmp_path / "records.txt", TRANSFER_RECORDS)


@pytest.fixture
def transfer_root_hex():
    return to_hex(build_tree_from_records(TRANSFER_RECORDS).root)


class TestParser:
    """Tests for argument parsing."""

    def test_no_command_prints_help(self, capsys):
        assert main([]) == EXIT_RUNTIME_ERROR
        assert "usage" in capsys.readouterr().out.lower()

    def test_prove_requires_index(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["prove", "records.txt"])

    def test_unknown_algorithm_rejected(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["--algorithm", "md6", "demo"])


class TestBuildCommand:
    """Tests for `merkle-ledger build`."""

    def test_build_json(self, records_file, transfer_root_hex, capsys):
        assert main(["build", str(records_file), "--json"]) == EXIT_SUCCESS
        out = json.loads(capsys.readouterr().out)
        assert out["root"] == transfer_root_hex
        assert out["height"] == 3
        assert out["leaf_count"] == 4
        assert "layers" not in out

    def test_build_layers(self, records_file, capsys):
        assert main(["build", str(records_file), "--json", "--layers"]) == EXIT_SUCCESS
        out = json.loads(capsys.readouterr().out)
        assert [len(layer) for layer in out["layers"]] == [4, 2, 1]

    def test_build_human(self, records_file, transfer_root_hex, capsys):
        assert main(["build", str(records_file)]) == EXIT_SUCCESS
        assert f"root: {transfer_root_hex}" in capsys.readouterr().out

    def test_build_with_algorithm(self, records_file, capsys):
        assert main(["--algorithm", "blake2b", "build", str(records_file), "--json"]) == EXIT_SUCCESS
        out = json.loads(capsys.readouterr().out)
        assert out["algorithm"] == "blake2b"
        assert out["root"] == to_hex(build_tree_from_records(TRANSFER_RECORDS, Hasher("blake2b")).root)

    def test_build_json_input(self, tmp_path, capsys):
        items = [{"from": "Bob", "to": "Alice", "amount": 12}, "plain"]
        path = write_records_file(tmp_path / "records.json", items, input_format="json")
        assert main(["build", str(path), "--input-format", "json", "--json"]) == EXIT_SUCCESS
        assert json.loads(capsys.readouterr().out)["leaf_count"] == 2

    def test_build_empty_file(self, tmp_path, capsys):
        path = tmp_path / "empty.txt"
        path.write_text("")
        assert main(["build", str(path)]) == EXIT_RUNTIME_ERROR
        assert "empty" in capsys.readouterr().err.lower()

    def test_build_missing_file(self, tmp_path, capsys):
        assert main(["build", str(tmp_path / "nope.txt")]) == EXIT_RUNTIME_ERROR
        assert "not found" in capsys.readouterr().err


class TestProveVerifyCommands:
    """Tests for `merkle-ledger prove` and `merkle-ledger verify`."""

    @pytest.mark.parametrize("proof_format", ["binary", "json"])
    def test_prove_then_verify(self, tmp_path, records_file, transfer_root_hex, capsys, proof_format):
        proof_path = tmp_path / f"proof.{proof_format}"
        rc = main([
            "prove", str(records_file), "--index", "2",
            "--out", str(proof_path), "--format", proof_format,
        ])
        assert rc == EXIT_SUCCESS
        assert proof_path.exists()
        capsys.readouterr()

        rc = main([
            "verify", str(proof_path), "--root", transfer_root_hex,
            "--format", proof_format, "--json",
        ])
        out = json.loads(capsys.readouterr().out)
        assert rc == EXIT_SUCCESS
        assert out["ok"] is True
        assert out["steps"] == 2
        assert out["index"] == 2

    def test_prove_stdout_is_json(self, records_file, transfer_root_hex, capsys):
        assert main(["prove", str(records_file), "--index", "0"]) == EXIT_SUCCESS
        proof = MerkleProof.from_dict(json.loads(capsys.readouterr().out))
        assert to_hex(proof.root) == transfer_root_hex

    def test_prove_index_out_of_range(self, records_file, capsys):
        assert main(["prove", str(records_file), "--index", "4"]) == EXIT_RUNTIME_ERROR
        assert "out of range" in capsys.readouterr().err

    def test_verify_wrong_root(self, tmp_path, records_file, capsys):
        proof_path = tmp_path / "proof.bin"
        main(["prove", str(records_file), "--index", "1", "--out", str(proof_path)])
        capsys.readouterr()

        other_root = to_hex(build_tree_from_records(make_records(4)).root)
        rc = main(["verify", str(proof_path), "--root", other_root, "--json"])
        out = json.loads(capsys.readouterr().out)
        assert rc == EXIT_VERIFICATION_FAILED
        assert out["ok"] is False
        assert out["error"]["code"] == "ROOT_MISMATCH"

    def test_verify_tampered_proof(self, tmp_path, records_file, transfer_root_hex, capsys):
        proof_path = tmp_path / "proof.bin"
        main(["prove", str(records_file), "--index", "1", "--out", str(proof_path)])
        capsys.readouterr()

        data = bytearray(proof_path.read_bytes())
        data[10] ^= 0x01  # first byte of the leaf digest
        proof_path.write_bytes(bytes(data))

        rc = main(["verify", str(proof_path), "--root", transfer_root_hex, "--json"])
        out = json.loads(capsys.readouterr().out)
        assert rc == EXIT_VERIFICATION_FAILED
        assert out["error"]["code"] == "MERKLE_PROOF_INVALID"

    def test_verify_root_without_prefix(self, tmp_path, records_file, transfer_root_hex, capsys):
        proof_path = tmp_path / "proof.bin"
        main(["prove", str(records_file), "--index", "3", "--out", str(proof_path)])
        capsys.readouterr()
        assert main(["verify", str(proof_path), "--root", transfer_root_hex[2:]]) == EXIT_SUCCESS
        assert "verified: true" in capsys.readouterr().out

    def test_verify_corrupt_file(self, tmp_path, transfer_root_hex, capsys):
        proof_path = tmp_path / "proof.bin"
        proof_path.write_bytes(b"garbage")
        assert main(["verify", str(proof_path), "--root", transfer_root_hex]) == EXIT_RUNTIME_ERROR
        assert "Error loading proof" in capsys.readouterr().err

    def test_verify_bad_root_hex(self, tmp_path, capsys):
        proof_path = tmp_path / "proof.bin"
        proof_path.write_bytes(b"")
        assert main(["verify", str(proof_path), "--root", "xyz"]) == EXIT_RUNTIME_ERROR
        assert "invalid --root" in capsys.readouterr().err


class TestDemoCommand:
    """Tests for `merkle-ledger demo`."""

    def test_demo_json(self, capsys):
        assert main(["demo", "--json"]) == EXIT_SUCCESS
        report = json.loads(capsys.readouterr().out)
        assert report["verified"] is True
        assert report["tree"]["height"] == 3
        assert len(report["proof"]["steps"]) == 2
        assert [t["label"] for t in report["transactions"]][2] == "Jake→Bob:7"

    def test_demo_human(self, capsys):
        assert main(["demo", "--index", "0"]) == EXIT_SUCCESS
        out = capsys.readouterr().out
        assert "Bob→Alice:12" in out
        assert "verified: true" in out

    def test_demo_bad_index(self, capsys):
        assert main(["demo", "--index", "9"]) == EXIT_RUNTIME_ERROR
        assert "--index" in capsys.readouterr().err


class TestConfigCommand:
    """Tests for `merkle-ledger config`."""

    def test_init_and_show(self, tmp_path, capsys):
        path = tmp_path / "merkle-ledger.json"
        assert main(["config", "--init", "--path", str(path)]) == EXIT_SUCCESS
        assert path.exists()
        capsys.readouterr()

        assert main(["--config", str(path), "config", "--show"]) == EXIT_SUCCESS
        shown = json.loads(capsys.readouterr().out)
        assert shown["hash_algorithm"] == "sha256"

    def test_init_refuses_overwrite(self, tmp_path, capsys):
        path = tmp_path / "merkle-ledger.json"
        path.write_text("{}")
        assert main(["config", "--init", "--path", str(path)]) == EXIT_RUNTIME_ERROR
        assert path.read_text() == "{}"

    def test_non_string_log_level(self, tmp_path, capsys):
        path = tmp_path / "cfg.json"
        path.write_text(json.dumps({"log_level": 10}))
        assert main(["--config", str(path), "demo"]) == EXIT_RUNTIME_ERROR
        assert "log_level" in capsys.readouterr().err

    def test_log_file_from_config(self, tmp_path, capsys):
        log_path = tmp_path / "merkle.log"
        path = tmp_path / "cfg.json"
        path.write_text(json.dumps({"log_level": "DEBUG", "log_file": str(log_path)}))

        assert main(["--config", str(path), "demo", "--json"]) == EXIT_SUCCESS
        assert "Built Merkle tree" in log_path.read_text()

    def test_unwritable_log_file(self, tmp_path, capsys):
        path = tmp_path / "cfg.json"
        path.write_text(json.dumps({"log_file": str(tmp_path / "no" / "such" / "dir.log")}))
        assert main(["--config", str(path), "demo"]) == EXIT_RUNTIME_ERROR
        assert "log file" in capsys.readouterr().err

    def test_missing_config_file(self, tmp_path, capsys):
        assert main(["--config", str(tmp_path / "missing.json"), "demo"]) == EXIT_RUNTIME_ERROR
        assert "Error loading configuration" in capsys.readouterr().err


class TestLoadRecords:
    """Tests for record file parsing."""

    def test_trailing_newline_ignored(self, tmp_path):
        path = write_records_file(tmp_path / "r.txt", [b"a", b"b"])
        assert load_records(str(path)) == [b"a", b"b"]

    def test_unicode_line_separators_stay_in_record(self, tmp_path):
        """Only "\\n" ends a record; U+2028 and friends are record content."""
        path = tmp_path / "r.txt"
        path.write_bytes("a\u2028b\nc\x0bd\x1ce\u0085f\n".encode("utf-8"))
        assert load_records(str(path)) == [
            "a\u2028b".encode("utf-8"),
            "c\x0bd\x1ce\u0085f".encode("utf-8"),
        ]

    def test_crlf_and_lone_cr(self, tmp_path):
        path = tmp_path / "r.txt"
        path.write_bytes(b"a\r\nb\rc\n")
        assert load_records(str(path)) == [b"a", b"b\rc"]

    def test_no_trailing_newline(self, tmp_path):
        path = tmp_path / "r.txt"
        path.write_bytes(b"a\nb")
        assert load_records(str(path)) == [b"a", b"b"]

    def test_blank_lines_are_records(self, tmp_path):
        path = tmp_path / "r.txt"
        path.write_bytes(b"a\n\nb\n")
        assert load_records(str(path)) == [b"a", b"", b"b"]

    def test_invalid_utf8(self, tmp_path):
        path = tmp_path / "r.txt"
        path.write_bytes(b"\xff\xfe\n")
        with pytest.raises(InputError):
            load_records(str(path))

    def test_build_counts_separator_record_once(self, tmp_path, capsys):
        path = tmp_path / "r.txt"
        path.write_bytes("a\u2028b\nc\n".encode("utf-8"))
        assert main(["build", str(path), "--json"]) == EXIT_SUCCESS
        out = json.loads(capsys.readouterr().out)
        assert out["leaf_count"] == 2
        assert out["root"] == to_hex(
            build_tree_from_records(["a\u2028b".encode("utf-8"), b"c"]).root
        )

    def test_json_must_be_array(self, tmp_path):
        path = tmp_path / "r.json"
        path.write_text('{"a": 1}')
        with pytest.raises(InputError):
            load_records(str(path), "json")

    def test_invalid_json_record(self, tmp_path):
        path = tmp_path / "r.json"
        path.write_text("[1, 2]")
        with pytest.raises(InputError):
            load_records(str(path), "json")
