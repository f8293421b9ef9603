from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from tickusage.store import DecodeError, decode_user, iter_user_docs, validate_users


def _write_jsonl(path: Path, rows: list) -> Path:
    path.write_text("\n".join(json.dumps(r) for r in rows) + "\n", encoding="utf-8")
    return path


def test_iter_user_docs_decodes_fields(users_jsonl: Path) -> None:
    docs = list(iter_user_docs(users_jsonl))
    assert [d.id for d in docs] == ["u1", "u2", "u3", "u4", "u5"]

    u1 = docs[0]
    assert u1.num_routes == 12
    assert u1.num_imports == 3
    assert u1.last_import_time == datetime(2020, 5, 1, 12, 0, tzinfo=timezone.utc)
    assert u1.counts.num_ticks == 3

    # missing fields decode to zero values
    u4 = docs[3]
    assert u4.num_routes == 0
    assert u4.num_imports == 0
    assert u4.last_import_time is None
    assert u4.counts.num_ticks == 0


def test_decode_rejects_wrong_type() -> None:
    with pytest.raises(DecodeError, match=r"Failed decoding users/u9: numRoutes"):
        decode_user({"id": "u9", "numRoutes": "lots", "counts": {}})


def test_decode_rejects_bad_tick_count() -> None:
    with pytest.raises(DecodeError, match=r"users/u9/stats/counts: dateTicks/20200101"):
        decode_user({"id": "u9", "counts": {"dateTicks": {"20200101": 1.5}}})


def test_decode_requires_counts_document() -> None:
    with pytest.raises(DecodeError, match=r"users/u9/stats/counts: document does not exist"):
        decode_user({"id": "u9", "numRoutes": 1})


def test_decode_rejects_bad_timestamp() -> None:
    with pytest.raises(DecodeError, match=r"users/u9: lastImportTime"):
        decode_user({"id": "u9", "lastImportTime": "2020-13-45T00:00:00", "counts": {}})


def test_iter_user_docs_reports_line(tmp_path: Path) -> None:
    p = _write_jsonl(tmp_path / "users.jsonl", [{"id": "a", "counts": {}}, {"numRoutes": 1, "counts": {}}])
    with pytest.raises(DecodeError) as ei:
        list(iter_user_docs(p))
    msg = str(ei.value)
    assert msg.startswith(f"{p}:2: Failed decoding users/?")
    assert "'id' is a required property" in msg


def test_iter_user_docs_invalid_json(tmp_path: Path) -> None:
    p = tmp_path / "users.jsonl"
    p.write_text('{"id": "a", "counts": {}}\n{not json\n', encoding="utf-8")
    with pytest.raises(DecodeError, match=r":2: invalid JSON"):
        list(iter_user_docs(p))


def test_validate_users_collects_all_problems(tmp_path: Path) -> None:
    p = _write_jsonl(
        tmp_path / "users.jsonl",
        [
            {"id": "ok", "counts": {}},
            {"id": "b", "numImports": -1.5, "counts": {}},
            {"id": "c"},
        ],
    )
    problems = validate_users(p)
    assert len(problems) == 2
    assert problems[0].startswith(f"{p}:2: users/b: numImports")
    assert problems[1] == f"{p}:3: users/c/stats/counts: document does not exist"


def test_validate_users_clean_file(users_jsonl: Path) -> None:
    assert validate_users(users_jsonl) == []


def _write_bad_utf8(path: Path) -> Path:
    path.write_bytes(b'{"id": "ok", "counts": {}}\n{"id": "\xff\xfe", "counts": {}}\n')
    return path


def test_iter_user_docs_invalid_utf8(tmp_path: Path) -> None:
    p = _write_bad_utf8(tmp_path / "users.jsonl")
    with pytest.raises(DecodeError, match=r":2: invalid UTF-8"):
        list(iter_user_docs(p))


def test_validate_users_invalid_utf8(tmp_path: Path) -> None:
    p = _write_bad_utf8(tmp_path / "users.jsonl")
    problems = validate_users(p)
    assert len(problems) == 1
    assert problems[0].startswith(f"{p}:2: invalid UTF-8")
