"""Release page scraping and installer downloads."""

from __future__ import annotations

import logging
from pathlib import Path
import re
from threading import Lock

from bs4 import BeautifulSoup
import requests

from fontpatcher.core.cancellation import CancellationToken, ensure_token
from fontpatcher.core.exceptions import ProvisioningError

from .hub import HubRelease
from .version import EditorVersion


logger = logging.getLogger(__name__)

HUB_INSTALLER_URL = "https://public-cdn.cloud.unity3d.com/hub/prod/UnityHubSetup-x64.exe"
RELEASE_PAGE_URL = "https://unity.com/releases/editor/whats-new/{version}"

INSTALLER_URL_RE = re.compile(
    r"https://download\.unity3d\.com/download_unity/(?P<changeset>[a-f0-9]{12,40})"
    r"/Windows64EditorInstaller/UnitySetup64(?:-(?P<version>\d{4}\.\d+\.\d+[abfp]\d+))?\.exe",
    re.IGNORECASE,
)


def find_installer_links(html: str) -> list[str]:
    """Return Windows Editor installer URLs referenced by a release page.

    Anchors are inspected first; the raw markup is searched as well because
    the links are often embedded in inline script payloads.
    """
    links: list[str] = []
    soup = BeautifulSoup(html, "html.parser")
    for anchor in soup.find_all("a", href=True):
        match = INSTALLER_URL_RE.search(str(anchor["href"]))
        if match and match.group(0) not in links:
            links.append(match.group(0))
    for match in INSTALLER_URL_RE.finditer(html):
        if match.group(0) not in links:
            links.append(match.group(0))
    return links


def release_from_page(html: str, desired: EditorVersion) -> HubRelease | None:
    """Build a release for ``desired``'s train from a release page, if linked."""
    for url in find_installer_links(html):
        match = INSTALLER_URL_RE.match(url)
        if match is None:
            continue
        version = EditorVersion.try_parse(match.group("version")) or desired
        if not version.same_train(desired):
            continue
        return HubRelease(
            version=version,
            is_lts=version.is_lts_guess,
            changeset=match.group("changeset"),
            installer_url=url,
        )
    return None


class ReleaseArchive:
    """HTTP access to the public release pages and installer binaries."""

    _DEFAULT_USER_AGENT = "fontpatcher-provisioner"

    def __init__(
        self,
        *,
        session: requests.Session | None = None,
        timeout: float = 30.0,
        user_agent: str | None = None,
    ) -> None:
        self._session = session
        self._session_lock = Lock()
        self._timeout = timeout
        self._user_agent = user_agent or self._DEFAULT_USER_AGENT

    def _ensure_session(self) -> requests.Session:
        with self._session_lock:
            if self._session is None:
                session = requests.Session()
                session.headers["User-Agent"] = self._user_agent
                self._session = session
            return self._session

    def find_release(self, desired: EditorVersion) -> HubRelease | None:
        """Look up ``desired`` on the public release page; ``None`` on any failure."""
        text = str(desired)
        candidates = [RELEASE_PAGE_URL.format(version=text)]
        lowered = RELEASE_PAGE_URL.format(version=text.lower())
        if lowered != candidates[0]:
            candidates.append(lowered)

        client = self._ensure_session()
        for url in candidates:
            try:
                response = client.get(url, timeout=self._timeout)
            except requests.RequestException as exc:
                logger.debug("Release page %s unavailable: %s", url, exc)
                continue
            if response.status_code >= 400:
                logger.debug("Release page %s returned HTTP %s", url, response.status_code)
                continue
            release = release_from_page(response.text, desired)
            if release is not None:
                logger.debug("Release page %s links installer %s", url, release.installer_url)
                return release
        return None

    def download(
        self,
        url: str,
        destination: Path,
        *,
        cancel: CancellationToken | None = None,
        chunk_size: int = 1 << 20,
    ) -> Path:
        """Stream ``url`` into ``destination``."""
        token = ensure_token(cancel)
        client = self._ensure_session()
        destination.parent.mkdir(parents=True, exist_ok=True)
        logger.info("Downloading %s", url)
        try:
            with client.get(url, stream=True, timeout=self._timeout) as response:
                response.raise_for_status()
                with destination.open("wb") as handle:
                    for chunk in response.iter_content(chunk_size=chunk_size):
                        token.raise_if_cancelled()
                        if chunk:
                            handle.write(chunk)
        except requests.RequestException as exc:
            destination.unlink(missing_ok=True)
            raise ProvisioningError(f"Failed to download {url}: {exc}") from exc
        return destination


__all__ = [
    "HUB_INSTALLER_URL",
    "INSTALLER_URL_RE",
    "RELEASE_PAGE_URL",
    "ReleaseArchive",
    "find_installer_links",
    "release_from_page",
]
