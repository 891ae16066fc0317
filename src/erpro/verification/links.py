"""
Link verifier for generated source lists.

Probes every document link found in a text with a bounded-time HEAD
request, classifies the outcome and annotates the text in place with a
status marker per link plus a trailing summary block.

Many investor relations sites refuse HEAD requests or drop connections
from unknown clients. Those links come back unverifiable, not dead.
"""

from __future__ import annotations

import asyncio
import mimetypes
import re
from dataclasses import dataclass, field
from types import TracebackType

import httpx

from erpro.exceptions import ProbeError
from erpro.logging import get_logger
from erpro.types import LinkCheck, LinkStatus
from erpro.verification.extract import extract_links

logger = get_logger(__name__)

USER_AGENT = "EquityResearchPro/0.1 (link verification)"

# Per-probe timeout in seconds
PROBE_TIMEOUT = 5.0

SUMMARY_HEADER = "### \U0001F50D Link Verification Report"
SUMMARY_SEPARATOR = "\n\n---\n"

VERIFIED_MARKER = "✅"
INVALID_MARKER = "⚠️"
DEAD_MARKER = "❌"

# An occurrence already followed by one of these has been annotated
_MARKED = re.compile(rf"[ \t]*(?:{VERIFIED_MARKER}|\u26a0|{DEAD_MARKER})")


def expected_media_type(suffix: str) -> str:
    """Media type fragment a response must declare for ``suffix``.

    ".pdf" maps to "pdf", which matches "application/pdf" as well as
    "application/x-pdf".
    """
    guessed, _ = mimetypes.guess_type(f"file{suffix}", strict=False)
    if guessed:
        return guessed.split("/", 1)[1].lower()
    return suffix.lstrip(".").lower()


@dataclass
class VerificationReport:
    """Outcome of one verification pass over a text."""

    annotated_text: str
    checks: list[LinkCheck] = field(default_factory=list)

    def count(self, status: LinkStatus) -> int:
        return sum(1 for c in self.checks if c.status == status)

    @property
    def has_issues(self) -> bool:
        """Whether any link was confirmed broken or of the wrong type."""
        return any(c.status in (LinkStatus.INVALID, LinkStatus.DEAD) for c in self.checks)


class LinkVerifier:
    """Concurrent reachability and content-type checks for document links.

    Features:
    - One HEAD request per unique URL, redirects followed
    - Independent timeout per probe; one slow host never stalls the others
    - Probe errors are recorded as unverifiable and never raised
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout: float = PROBE_TIMEOUT,
        user_agent: str = USER_AGENT,
    ) -> None:
        """Initialize the verifier.

        Args:
            client: HTTP client to probe with. Created and owned by the
                verifier when omitted.
            timeout: Per-probe timeout in seconds.
            user_agent: User-Agent header sent by an owned client.
        """
        self.timeout = timeout
        self.user_agent = user_agent
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> LinkVerifier:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                headers={"User-Agent": self.user_agent},
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if the verifier created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _probe(self, url: str) -> httpx.Response:
        try:
            return await asyncio.wait_for(self._get_client().head(url), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise ProbeError("Probe timed out", {"url": url, "timeout": self.timeout}) from e
        except Exception as e:
            raise ProbeError(f"Probe failed: {e}", {"url": url}) from e

    async def check(self, url: str, suffix: str = ".pdf") -> LinkCheck:
        """Probe a single URL and classify the outcome.

        Args:
            url: URL to probe.
            suffix: Suffix whose media type the response must declare.

        Returns:
            LinkCheck with the classified status.
        """
        try:
            response = await self._probe(url)
        except ProbeError as e:
            logger.debug("Link unverifiable", url=url, error=str(e))
            return LinkCheck(url=url, status=LinkStatus.UNVERIFIABLE, error=str(e))

        content_type = response.headers.get("content-type")
        if not response.is_success:
            status = LinkStatus.DEAD
        elif content_type and expected_media_type(suffix) in content_type.lower():
            status = LinkStatus.VERIFIED
        else:
            status = LinkStatus.INVALID

        return LinkCheck(
            url=url,
            status=status,
            status_code=response.status_code,
            content_type=content_type,
        )

    async def inspect(self, text: str, url_suffix: str = ".pdf") -> VerificationReport:
        """Probe every link in ``text`` and build the annotated text.

        Args:
            text: Text containing links.
            url_suffix: Suffix the links must end with.

        Returns:
            VerificationReport with per-link checks. When no links are
            found the text is returned unchanged with no checks.
        """
        urls = extract_links(text, url_suffix)
        if not urls:
            return VerificationReport(annotated_text=text)

        checks = list(await asyncio.gather(*(self.check(url, url_suffix) for url in urls)))

        report = VerificationReport(annotated_text=text, checks=checks)
        report.annotated_text = annotate(text, checks, url_suffix) + summarize(report, url_suffix)

        logger.info(
            "Verified links",
            total=len(checks),
            verified=report.count(LinkStatus.VERIFIED),
            invalid=report.count(LinkStatus.INVALID),
            dead=report.count(LinkStatus.DEAD),
            unverifiable=report.count(LinkStatus.UNVERIFIABLE),
        )
        return report

    async def verify(self, text: str, url_suffix: str = ".pdf") -> str:
        """Return ``text`` annotated with link statuses and a summary block."""
        report = await self.inspect(text, url_suffix)
        return report.annotated_text


def status_marker(status: LinkStatus, suffix: str = ".pdf") -> str | None:
    """Inline marker appended after a link, or None for no marker."""
    if status == LinkStatus.VERIFIED:
        return VERIFIED_MARKER
    if status == LinkStatus.INVALID:
        return f"{INVALID_MARKER} (Verified as Non-{suffix.lstrip('.').upper()})"
    if status == LinkStatus.DEAD:
        return f"{DEAD_MARKER} (Dead Link)"
    return None


def strip_summary(text: str) -> str:
    """Remove a summary block left by an earlier verification pass."""
    idx = text.find(SUMMARY_SEPARATOR + SUMMARY_HEADER)
    return text[:idx] if idx >= 0 else text


def annotate(text: str, checks: list[LinkCheck], suffix: str = ".pdf") -> str:
    """Append a status marker after every unmarked occurrence of each URL."""
    annotated = strip_summary(text)
    for check in checks:
        marker = status_marker(check.status, suffix)
        if marker is None:
            continue
        pattern = re.compile(rf"(?<![\w./-]){re.escape(check.url)}(?![\w/-])")

        def _mark(match: re.Match[str], marker: str = marker) -> str:
            if _MARKED.match(match.string, match.end()):
                return match.group(0)
            return f"{match.group(0)} {marker}"

        annotated = pattern.sub(_mark, annotated)
    return annotated


def summarize(report: VerificationReport, suffix: str = ".pdf") -> str:
    """Build the trailing summary block for a verification pass."""
    label = suffix.lstrip(".").upper()
    lines = [SUMMARY_SEPARATOR + SUMMARY_HEADER]
    unverifiable = report.count(LinkStatus.UNVERIFIABLE)

    if report.has_issues:
        lines.append(
            "- **Alert**: One or more links returned an error or incorrect content type. "
            "Please verify manually."
        )
    elif unverifiable > 0:
        lines.append(
            f"- **Note**: {unverifiable} link(s) could not be automatically verified. "
            "This usually reflects access restrictions or connection timeouts on the host "
            "rather than broken links; open them manually to confirm."
        )
    else:
        lines.append(
            f"- **Success**: All links were verified as valid {label} documents."
        )
    return "\n".join(lines) + "\n"
