"""Certificate document rendering.

The issuer only knows the CertificateRenderer protocol: hand it a
certificate, get back a storage path.  HtmlCertificateRenderer is the
implementation shipped with the service; it writes a self-contained
HTML page per certificate under CERTIFICATE_STORAGE_DIR.  Any failure
(disk full, permission denied) surfaces as an OSError and the issuer
turns it into CertificateRenderError.
"""

from __future__ import annotations

import html
from pathlib import Path
from typing import Protocol, runtime_checkable

from lms_progress.core.clock import format_epoch
from lms_progress.models.certificate import Certificate, CertificateType


@runtime_checkable
class CertificateRenderer(Protocol):
    def render(self, certificate: Certificate) -> str:
        """Produce the document and return its storage path."""
        ...

    def exists(self, path: str) -> bool:
        """True when a previously rendered document is still available."""
        ...

    def open_path(self, path: str) -> Path:
        """Filesystem location for serving a rendered document."""
        ...


_TITLES = {
    CertificateType.VIRTUAL: "Certificate of Participation",
    CertificateType.COMPLETE: "Certificate of Completion",
}

_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head><meta charset="utf-8"><title>{title} {number}</title></head>
<body>
  <h1>{title}</h1>
  <p class="course">{course}</p>
  <p class="student">Student #{student_id}</p>
  <p class="date">Issued {issued}</p>
  <table>
    <tr><th>Course progress</th><td>{progress:.2f}%</td></tr>
    <tr><th>Final score</th><td>{final_score:.2f}</td></tr>
    <tr><th>Modules completed</th><td>{modules_completed} / {total_modules}</td></tr>
  </table>
  <p class="number">{number}</p>
</body>
</html>
"""


class HtmlCertificateRenderer:
    def __init__(self, storage_dir: str | Path) -> None:
        self._root = Path(storage_dir)

    def render(self, certificate: Certificate) -> str:
        relative = f"certificates/{certificate.certificate_number}.html"
        target = self._root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        meta = certificate.metadata
        target.write_text(
            _TEMPLATE.format(
                title=_TITLES[certificate.type],
                number=html.escape(certificate.certificate_number),
                course=html.escape(str(meta.get("course_title", ""))),
                student_id=certificate.student_id,
                issued=format_epoch(certificate.issued_at, "%Y-%m-%d"),
                progress=certificate.course_progress,
                final_score=certificate.final_score,
                modules_completed=meta.get("modules_completed", 0),
                total_modules=meta.get("total_modules", 0),
            ),
            encoding="utf-8",
        )
        return relative

    def exists(self, path: str) -> bool:
        return (self._root / path).is_file()

    def open_path(self, path: str) -> Path:
        return self._root / path
