"""Saved reports, kept in process memory."""

import itertools
import logging
import time

from healthequity.services.utils import now_iso

logger = logging.getLogger(__name__)


class ReportStore:
    def __init__(self):
        self._reports: list[dict] = []
        self._seq = itertools.count(1)

    def list(self) -> list[dict]:
        return list(self._reports)

    def save(self, title: str, report_type: str, data) -> dict:
        report_id = f"report_{int(time.time() * 1000)}_{next(self._seq)}"
        report = {
            "id": report_id,
            "title": title,
            "type": report_type,
            "data": data,
            "createdAt": now_iso(),
            "downloadUrl": f"/api/reports/{report_id}/download",
        }
        self._reports.append(report)
        logger.info(f"Saved report {report_id} ({report_type}): {title}")
        return report

    def clear(self):
        self._reports.clear()


store = ReportStore()
