import json

from adscreen.models.schemas import AnalysisResult, ForbiddenPhraseRequest
from adscreen.services.analysis_store import AnalysisStore
from adscreen.services.phrase_catalog import DEFAULT_FORBIDDEN_PHRASES


def _result(result_id, risk_level, created_at):
    return AnalysisResult(
        id=result_id,
        ad_name=result_id,
        created_at=created_at,
        pass_score=50,
        risk_level=risk_level,
        analysis_source="ocr",
        ai_rationale="r",
    )


def test_phrase_list_is_seeded_from_defaults(store):
    rules = store.list_forbidden_rules()
    assert [r.phrase for r in rules] == [r.phrase for r in DEFAULT_FORBIDDEN_PHRASES]
    assert store.phrases_path.exists()


def test_phrase_list_is_seeded_from_yaml(tmp_path):
    seed = tmp_path / "phrases.yaml"
    seed.write_text(
        "phrases:\n"
        "  - phrase: 완치\n"
        "    risk_level: high\n"
        "    reference_id: ML56-02\n"
        "  - phrase: 상담\n",
        encoding="utf-8",
    )
    store = AnalysisStore(str(tmp_path / "store"), phrase_seed_path=str(seed))
    rules = store.list_forbidden_rules()
    assert [(r.phrase, r.risk_level) for r in rules] == [("완치", "high"), ("상담", "low")]


def test_forbidden_phrase_crud(store):
    record = store.add_forbidden_phrase(ForbiddenPhraseRequest(phrase="기적", risk_level="high"))
    assert any(r.phrase == "기적" for r in store.list_forbidden_rules())

    updated = store.update_forbidden_phrase(
        record.id, ForbiddenPhraseRequest(phrase="기적의 치료", risk_level="medium")
    )
    assert updated.phrase == "기적의 치료"
    assert updated.risk_level == "medium"
    assert store.list_forbidden_records()[0].id == record.id

    assert store.update_forbidden_phrase("missing", ForbiddenPhraseRequest(phrase="x", risk_level="low")) is None
    assert store.delete_forbidden_phrase(record.id).id == record.id
    assert store.delete_forbidden_phrase(record.id) is None
    assert all(r.phrase != "기적의 치료" for r in store.list_forbidden_rules())


def test_results_newest_first_and_metrics(store):
    store.save_result(_result("AN-old", "high", "2026-01-01T00:00:00+00:00"))
    store.save_result(_result("AN-new", "low", "2026-02-01T00:00:00+00:00"))
    store.save_result(_result("AN-mid", "high", "2026-01-15T00:00:00+00:00"))

    assert [r.id for r in store.list_results()] == ["AN-new", "AN-mid", "AN-old"]
    metrics = store.compute_metrics()
    assert metrics.total_analyses == 3
    assert metrics.high_risk_count == 2
    assert metrics.low_risk_count == 1
    assert [item.value for item in metrics.risk_distribution] == [2, 0, 1]


def test_corrupt_records_are_skipped(store):
    store.save_result(_result("AN-ok", "low", "2026-01-01T00:00:00+00:00"))
    (store.results_dir / "AN-bad.json").write_text("{not json", encoding="utf-8")
    (store.results_dir / "AN-shape.json").write_text(json.dumps({"id": "AN-shape"}), encoding="utf-8")
    assert [r.id for r in store.list_results()] == ["AN-ok"]
    assert store.load_result("") is None


def test_writes_leave_no_temp_files(store):
    store.save_result(_result("AN-1", "low", "2026-01-01T00:00:00+00:00"))
    store.append_audit_log("something", "admin@example.com")
    assert not list(store.base_dir.rglob("*.tmp"))
