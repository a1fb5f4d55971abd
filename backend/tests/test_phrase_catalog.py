import importlib.util
from pathlib import Path

from adscreen.services.phrase_catalog import (
    DEFAULT_FORBIDDEN_PHRASES,
    load_phrase_rules,
    read_phrase_file,
    validate_phrase_entries,
)


def test_default_list_is_clean():
    entries = [rule.model_dump(exclude_none=True) for rule in DEFAULT_FORBIDDEN_PHRASES]
    assert validate_phrase_entries(entries) == []


def test_validation_reports_each_problem():
    entries = [
        {"phrase": "완치", "risk_level": "high"},
        {"phrase": " 완치 ", "risk_level": "low"},
        {"phrase": "  "},
        {"phrase": "할인", "risk_level": "extreme"},
        {"phrase": "후기", "reference_id": "ML99-99"},
        "plain string",
    ]
    reasons = [(issue.index, issue.reason) for issue in validate_phrase_entries(entries)]
    assert reasons == [
        (1, "duplicate of entry 0"),
        (2, "blank phrase"),
        (3, "invalid risk_level: 'extreme'"),
        (4, "unknown reference_id: ML99-99"),
        (5, "entry is not a mapping"),
    ]


def test_bare_list_files_are_read(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- phrase: 무료\n  risk_level: medium\n", encoding="utf-8")
    assert read_phrase_file(path) == [{"phrase": "무료", "risk_level": "medium"}]


def test_missing_or_invalid_entries_fall_back_or_skip(tmp_path):
    assert len(load_phrase_rules(str(tmp_path / "nope.yaml"))) == len(DEFAULT_FORBIDDEN_PHRASES)
    path = tmp_path / "mixed.yaml"
    path.write_text(
        "phrases:\n  - phrase: 무료\n  - phrase: 쿠폰\n    risk_level: extreme\n",
        encoding="utf-8",
    )
    assert [r.phrase for r in load_phrase_rules(str(path))] == ["무료"]


def _load_check_script():
    script = Path(__file__).resolve().parents[2] / "scripts" / "check_phrase_list.py"
    spec = importlib.util.spec_from_file_location("check_phrase_list", script)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_check_script_exit_codes(tmp_path, capsys):
    check = _load_check_script()
    assert check.main([]) == 0

    bad = tmp_path / "bad.yaml"
    bad.write_text("- phrase: 완치\n- phrase: 완치\n", encoding="utf-8")
    assert check.main([str(bad)]) == 1
    assert "duplicate of entry 0" in capsys.readouterr().out
    assert check.main([str(bad), "--warn-only"]) == 0
