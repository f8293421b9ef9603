from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

import jsonschema

_SCHEMA_DIR = Path(__file__).resolve().parent / "schema"


class DecodeError(ValueError):
    pass


def _load_validator(name: str) -> jsonschema.Draft202012Validator:
    schema = json.loads((_SCHEMA_DIR / name).read_text(encoding="utf-8"))
    return jsonschema.Draft202012Validator(schema)


_USER_VALIDATOR = _load_validator("user.schema.json")
_COUNTS_VALIDATOR = _load_validator("counts.schema.json")


@dataclass(frozen=True)
class CountsDoc:
    date_ticks: Dict[str, int] = field(default_factory=dict)

    @property
    def num_ticks(self) -> int:
        return sum(self.date_ticks.values())


@dataclass(frozen=True)
class UserDoc:
    id: str
    num_routes: int
    num_imports: int
    last_import_time: Optional[datetime]
    counts: CountsDoc


def _schema_errors(validator: jsonschema.Draft202012Validator, obj: Any) -> List[str]:
    errors = sorted(validator.iter_errors(obj), key=lambda e: list(e.path))
    return [
        f"{'/'.join(str(p) for p in err.path) or '<root>'}: {err.message}"
        for err in errors
    ]


def _parse_time(s: Optional[str]) -> Optional[datetime]:
    if s is None:
        return None
    # fromisoformat() only accepts a trailing "Z" on newer interpreters
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    return datetime.fromisoformat(s)


def _check_doc(obj: Any) -> Tuple[str, List[str]]:
    """
    Returns (document path, errors) for the first document of the line
    that fails to decode; errors is empty when both documents are valid.
    """
    uid = obj.get("id") if isinstance(obj, dict) else None
    user_path = f"users/{uid}" if isinstance(uid, str) and uid else "users/?"

    errs = _schema_errors(_USER_VALIDATOR, obj)
    if not errs:
        try:
            _parse_time(obj.get("lastImportTime"))
        except ValueError as e:
            errs = [f"lastImportTime: {e}"]
    if errs:
        return user_path, errs

    counts_path = f"{user_path}/stats/counts"
    if "counts" not in obj:
        return counts_path, ["document does not exist"]
    return counts_path, _schema_errors(_COUNTS_VALIDATOR, obj["counts"])


def decode_user(obj: Any) -> UserDoc:
    doc_path, errs = _check_doc(obj)
    if errs:
        raise DecodeError(f"Failed decoding {doc_path}: {'; '.join(errs)}")

    counts = obj["counts"]
    return UserDoc(
        id=obj["id"],
        num_routes=int(obj.get("numRoutes", 0)),
        num_imports=int(obj.get("numImports", 0)),
        last_import_time=_parse_time(obj.get("lastImportTime")),
        counts=CountsDoc(
            date_ticks={str(k): int(v) for k, v in counts.get("dateTicks", {}).items()},
        ),
    )


def _iter_json_lines(path: Path) -> Iterator[Tuple[int, Any]]:
    # decode per line so a bad byte is reported on the line it sits on
    with path.open("rb") as f:
        for line_no, raw in enumerate(f, start=1):
            try:
                line = raw.decode("utf-8").strip()
            except UnicodeDecodeError as e:
                raise DecodeError(f"{path}:{line_no}: invalid UTF-8: {e}") from e
            if not line:
                continue
            try:
                obj = json.loads(line)
            except json.JSONDecodeError as e:
                raise DecodeError(f"{path}:{line_no}: invalid JSON: {e}") from e
            yield line_no, obj


def iter_user_docs(path: Path | str) -> Iterator[UserDoc]:
    """
    Reads a users export: one JSON object per line, each a user document
    with its stats/counts document embedded under "counts".
    """
    path = Path(path)
    for line_no, obj in _iter_json_lines(path):
        try:
            doc = decode_user(obj)
        except DecodeError as e:
            raise DecodeError(f"{path}:{line_no}: {e}") from e
        yield doc


def validate_users(path: Path | str) -> List[str]:
    """Returns every decode problem in the file, one message per document."""
    path = Path(path)
    problems: List[str] = []
    try:
        for line_no, obj in _iter_json_lines(path):
            doc_path, errs = _check_doc(obj)
            for err in errs:
                problems.append(f"{path}:{line_no}: {doc_path}: {err}")
    except DecodeError as e:
        # undecodable line stops the scan; later lines can't be trusted
        problems.append(str(e))
    return problems
