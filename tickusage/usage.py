from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

from tickusage.config import UsageConfig
from tickusage.histogram import Histogram, TextSink
from tickusage.store import UserDoc


@dataclass
class UsageReport:
    num_users: int
    imports: Histogram
    routes: Histogram
    ticks: Histogram


def collect_usage(docs: Iterable[UserDoc], cfg: Optional[UsageConfig] = None) -> UsageReport:
    cfg = cfg or UsageConfig()
    report = UsageReport(
        num_users=0,
        imports=cfg.imports.build(),
        routes=cfg.routes.build(),
        ticks=cfg.ticks.build(),
    )
    for doc in docs:
        report.num_users += 1
        report.routes.add(doc.num_routes)
        report.imports.add(doc.num_imports)
        report.ticks.add(doc.counts.num_ticks)
    return report


def write_report(r: UsageReport, sink: TextSink, cfg: Optional[UsageConfig] = None) -> None:
    cfg = cfg or UsageConfig()
    sink.write(f"Users: {r.num_users}\n")
    for title, hist in (("Imports", r.imports), ("Routes", r.routes), ("Ticks", r.ticks)):
        sink.write(f"\n{title}:\n")
        hist.render(sink, label_width=cfg.label_width, bar_width=cfg.bar_width)


def format_report(r: UsageReport, cfg: Optional[UsageConfig] = None) -> str:
    buf = io.StringIO()
    write_report(r, buf, cfg)
    return buf.getvalue()


def report_to_dict(r: UsageReport) -> Dict[str, Any]:
    return {
        "users": r.num_users,
        "imports": r.imports.to_dict(),
        "routes": r.routes.to_dict(),
        "ticks": r.ticks.to_dict(),
    }
