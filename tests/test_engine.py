from pathlib import Path

from moveaudit.config import AuditConfig
from moveaudit.core.engine import AuditEngine, code_snippet
from moveaudit.core.models import Confidence, Finding, Severity

FIXTURES = Path(__file__).parent / "fixtures"
PROJECT = FIXTURES / "project"


def _audit(engine, source: str, rule_id: str | None = None) -> list[Finding]:
    findings = engine.audit_lines(source.split("\n"), "test.move")
    if rule_id is None:
        return findings
    return [f for f in findings if f.rule_id == rule_id]


def _finding(severity: Severity, title: str) -> Finding:
    return Finding(
        rule_id="T", severity=severity, category="Test", title=title,
        description="d", line_number=1, code_snippet="s", recommendation="r",
        file_name="f.move",
    )


# --- access control ---

def test_withdraw_without_check_is_flagged(engine):
    source = "\n".join([
        "module m::m {",
        "    public fun withdraw(pool: &mut Pool, ctx: &mut TxContext) {",
        "        let c = coin::take(&mut pool.balance, 10, ctx);",
        "        transfer::public_transfer(c, ctx.sender());",
        "    }",
        "}",
    ])
    findings = _audit(engine, source, "ACC-001")
    assert len(findings) == 1
    f = findings[0]
    assert f.line_number == 2
    assert f.severity == Severity.HIGH
    assert f.category == "Access Control"
    assert f.description.endswith(": withdraw")


def test_withdraw_with_capability_is_not_flagged(engine):
    source = "\n".join([
        "public fun withdraw(_: &AdminCap, pool: &mut Pool, ctx: &mut TxContext) {",
        "    transfer::public_transfer(coin::take(&mut pool.balance, 1, ctx), ctx.sender());",
        "}",
    ])
    assert _audit(engine, source, "ACC-001") == []


def test_withdraw_with_owner_assert_is_not_flagged(engine):
    source = "\n".join([
        "public fun withdraw(pool: &mut Pool, ctx: &mut TxContext) {",
        "    assert!(ctx.sender() == pool.owner, E_NOT_OWNER);",
        "    transfer::public_transfer(coin::take(&mut pool.balance, 1, ctx), ctx.sender());",
        "}",
    ])
    assert _audit(engine, source, "ACC-001") == []


def test_getter_is_whitelisted_but_input_validation_fires(engine):
    source = "\n".join([
        "public fun get_balance(id: u64): u64 {",
        "    balance_of(id)",
        "}",
    ])
    assert _audit(engine, source, "ACC-001") == []
    validation = _audit(engine, source, "VAL-001")
    assert len(validation) == 1
    assert validation[0].line_number == 1


def test_admin_pass_flags_unprotected_setter(engine):
    source = "\n".join([
        "public fun set_fee(config: &mut Config, fee: u64) {",
        "    config.fee = fee;",
        "}",
    ])
    findings = _audit(engine, source, "ADM-001")
    assert len(findings) == 1
    assert findings[0].severity == Severity.CRITICAL
    assert findings[0].title == "Unprotected Administrative Function"
    assert findings[0].description.endswith(": " + source.split("\n")[0].strip())


def test_admin_pass_accepts_capability(engine):
    source = "\n".join([
        "public fun set_fee(_: &AdminCap, config: &mut Config, fee: u64) {",
        "    config.fee = fee;",
        "}",
    ])
    assert _audit(engine, source, "ADM-001") == []


def test_admin_withdraw_is_reported_by_both_heuristics(engine):
    source = "\n".join([
        "public fun admin_withdraw(pool: &mut Pool, ctx: &mut TxContext) {",
        "    transfer::public_transfer(coin::take(&mut pool.balance, 1, ctx), ctx.sender());",
        "}",
    ])
    ids = [f.rule_id for f in _audit(engine, source)]
    assert "ACC-001" in ids
    assert "ADM-001" in ids


# --- checks-effects-interactions ---

def test_state_change_after_emit_is_anchored_on_assignment(engine):
    source = "\n".join([
        "event::emit(Foo{ amount });",
        "let a = 1;",
        "pool.balance = 0;",
        "pool.total = 0;",
    ])
    findings = _audit(engine, source, "CEI-001")
    assert len(findings) == 1
    assert findings[0].line_number == 3
    assert findings[0].severity == Severity.MEDIUM
    assert findings[0].description.endswith(": pool.balance = 0;")


def test_state_change_outside_window_is_ignored(engine):
    lines = ["transfer::public_transfer(c, to);"] + ["let a = 1;"] * 9 + ["pool.balance = 0;"]
    assert _audit(engine, "\n".join(lines), "CEI-001") == []


def test_equality_comparison_is_not_a_state_change(engine):
    source = "\n".join([
        "event::emit(Foo{ amount });",
        "if (pool.total == 0) { abort E_EMPTY };",
    ])
    assert _audit(engine, source, "CEI-001") == []


# --- reentrancy ---

def test_unguarded_external_call_is_flagged(engine):
    source = "let out = external_pool::call_swap(pool, amount);"
    findings = _audit(engine, source, "REE-001")
    assert len(findings) == 1
    assert findings[0].severity == Severity.HIGH
    assert findings[0].line_number == 1


def test_guard_within_window_suppresses_reentrancy(engine):
    source = "\n".join([
        "assert!(!pool.locked, E_LOCKED);",
        "let out = external_pool::call_swap(pool, amount);",
    ])
    assert _audit(engine, source, "REE-001") == []


# --- integer operations ---

def test_unchecked_addition(engine):
    findings = _audit(engine, "x = a + b", "INT-001")
    assert len(findings) == 1
    assert findings[0].severity == Severity.MEDIUM
    assert findings[0].title == "Unchecked Addition"


def test_addition_followed_by_assert_on_same_statement(engine):
    assert _audit(engine, "x = a + b; assert!(x >= a, 1);", "INT-001") == []
    assert _audit(engine, "total = amount + fee; assert!(total >= amount, E_OVERFLOW);", "INT-001") == []


def test_reserve_ratio_division(engine):
    findings = _audit(engine, "let price = reserve_x / reserve_y;")
    ids = [f.rule_id for f in findings]
    assert "ECO-001" in ids
    eco = [f for f in findings if f.rule_id == "ECO-001"][0]
    # first capture group is quoted
    assert eco.description.endswith(": reserve_x")


def test_multiple_rules_fire_on_one_line(engine):
    ids = [f.rule_id for f in _audit(engine, "let y = x * 1000;")]
    assert ids == ["INT-003", "BP-002"]


def test_magic_number_on_const_line_is_ignored(engine):
    assert _audit(engine, "const MAX: u64 = 1000;", "BP-002") == []


def test_magic_number_has_low_confidence(engine):
    findings = _audit(engine, "let y = 1000;", "BP-002")
    assert findings[0].confidence == Confidence.LOW


def test_default_confidence_is_medium(engine):
    assert _audit(engine, "x = a + b", "INT-001")[0].confidence == Confidence.MEDIUM


# --- ordering and aggregation ---

def test_scanner_findings_precede_pass_findings(engine):
    source = "\n".join([
        "public fun set_fee(config: &mut Config, fee: u64) {",
        "    config.fee = fee;",
        "}",
    ])
    ids = [f.rule_id for f in _audit(engine, source)]
    assert ids == ["VAL-001", "ADM-001"]


def test_build_result_counts_and_sorts_stably(engine):
    findings = [
        _finding(Severity.LOW, "low-1"),
        _finding(Severity.CRITICAL, "crit-1"),
        _finding(Severity.MEDIUM, "med-1"),
        _finding(Severity.LOW, "low-2"),
        _finding(Severity.HIGH, "high-1"),
        _finding(Severity.CRITICAL, "crit-2"),
    ]
    result = engine.build_result(findings, 3)

    assert [f.title for f in result.findings] == ["crit-1", "crit-2", "high-1", "med-1", "low-1", "low-2"]
    assert result.summary.total_findings == 6
    assert sum(result.summary.severity_counts.values()) == 6
    assert result.summary.severity_counts[Severity.INFO] == 0
    assert set(result.summary.severity_counts) == set(Severity)
    assert result.summary.critical_issues == 3
    assert result.summary.files_audited == 3


def test_severity_threshold_drops_lower_findings(corpus):
    engine = AuditEngine(corpus, AuditConfig(severity_threshold=Severity.HIGH))
    findings = [_finding(Severity.LOW, "l"), _finding(Severity.HIGH, "h"), _finding(Severity.MEDIUM, "m")]
    result = engine.build_result(findings, 1)
    assert [f.title for f in result.findings] == ["h"]
    assert result.summary.total_findings == 1
    assert sum(result.summary.severity_counts.values()) == 1


def test_category_filter_limits_rules(corpus):
    engine = AuditEngine(corpus, AuditConfig(enabled_categories=["Reentrancy"]))
    source = "\n".join([
        "x = a + b",
        "let out = external_pool::call_swap(pool, amount);",
    ])
    ids = {f.rule_id for f in engine.audit_lines(source.split("\n"), "t.move")}
    assert ids == {"REE-001"}


def test_category_filter_keeps_whole_buffer_passes(corpus):
    engine = AuditEngine(corpus, AuditConfig(enabled_categories=["Governance"]))
    source = "\n".join([
        "public fun set_fee(pool: &mut Pool, fee: u64) {",
        "    pool.fee = fee + 1;",
        "}",
    ])
    ids = {f.rule_id for f in engine.audit_lines(source.split("\n"), "t.move")}
    assert "ADM-001" in ids
    assert "INT-001" not in ids
    assert "ACC-001" not in ids


# --- snippets ---

def test_snippet_is_clipped_at_start():
    lines = [f"line{i}" for i in range(10)]
    snippet = code_snippet(lines, 0).split("\n")
    assert len(snippet) == 3
    assert snippet[0] == "→    1: line0"
    assert snippet[1] == "     2: line1"


def test_snippet_full_window():
    lines = [f"line{i}" for i in range(10)]
    snippet = code_snippet(lines, 5).split("\n")
    assert len(snippet) == 5
    marked = [s for s in snippet if s.startswith("→")]
    assert marked == ["→    6: line5"]
    assert snippet[0].endswith("4: line3")
    assert snippet[-1].endswith("8: line7")


def test_snippet_single_line_buffer():
    assert code_snippet(["only"], 0) == "→    1: only"


# --- files and directories ---

def test_audit_file_on_fixture(engine):
    findings = engine.audit_file(PROJECT / "sources" / "vault.move")
    by_rule = {}
    for f in findings:
        by_rule.setdefault(f.rule_id, []).append(f.line_number)

    assert by_rule["ACC-001"] == [14]
    assert by_rule["VAL-001"] == [14, 21]
    assert by_rule["ADM-001"] == [21]
    # the transfer and the emit both precede the same write
    assert by_rule["CEI-001"] == [18, 18]
    assert all(f.file_name.endswith("vault.move") for f in findings)


def test_audit_missing_file_yields_no_findings(engine, tmp_path, caplog):
    findings = engine.audit_file(tmp_path / "missing.move")
    assert findings == []
    assert "could not read" in caplog.text


def test_audit_directory(engine):
    result = engine.audit_directory(PROJECT)
    assert result.summary.files_audited == 2
    assert result.summary.total_findings == len(result.findings)
    assert sum(result.summary.severity_counts.values()) == result.summary.total_findings
    counts = result.summary.severity_counts
    assert result.summary.critical_issues == counts[Severity.CRITICAL] + counts[Severity.HIGH]
    ranks = [f.severity.rank for f in result.findings]
    assert ranks == sorted(ranks)
    assert result.warnings == []


def test_audit_directory_without_sources_warns(engine, tmp_path):
    result = engine.audit_directory(tmp_path)
    assert result.summary.files_audited == 0
    assert result.findings == []
    assert len(result.warnings) == 1
    assert "sources" in result.warnings[0]


def test_audit_directory_exclude(corpus):
    engine = AuditEngine(corpus, AuditConfig(exclude_patterns=["nested/*"]))
    result = engine.audit_directory(PROJECT)
    assert result.summary.files_audited == 1
    assert all(f.file_name.endswith("vault.move") for f in result.findings)


def test_parallel_audit_matches_sequential(corpus):
    sequential = AuditEngine(corpus, AuditConfig(jobs=1)).audit_directory(PROJECT)
    parallel = AuditEngine(corpus, AuditConfig(jobs=4)).audit_directory(PROJECT)
    assert parallel.to_dict() == sequential.to_dict()


def test_audit_is_idempotent(engine):
    first = engine.audit_directory(PROJECT).to_dict()
    second = engine.audit_directory(PROJECT).to_dict()
    assert first == second


def test_unreadable_file_in_directory_is_skipped(engine, tmp_path):
    sources = tmp_path / "sources"
    sources.mkdir()
    (sources / "ok.move").write_text("x = a + b\n")
    (sources / "bad.move").write_bytes(b"\xff\xfe\x00bad")
    result = engine.audit_directory(tmp_path)
    assert result.summary.files_audited == 2
    assert [f.rule_id for f in result.findings] == ["INT-001"]
    assert len(result.warnings) == 1
    assert "bad.move" in result.warnings[0]
