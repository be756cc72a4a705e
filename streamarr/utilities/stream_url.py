"""Stream URL template and standardization.

Every stored or resolved URL is rewritten onto one canonical template:

    https://{domain}:{port}/{path}/{id}.m3u8

so records written against a retired CDN host keep working. URLs that do
not end in "/<digits>.m3u8" are returned unchanged.
"""

import logging
import re
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)

STREAM_ID_PATTERN = re.compile(r"/(\d+)\.m3u8$")


class _IdTranslator(Protocol):
    def translate_stream_id(self, stream_id: int, from_version: int) -> int | None: ...


@dataclass(frozen=True)
class StreamUrlTemplate:
    """Canonical upstream URL layout."""

    domain: str = "vpt.pixelsport.to"
    port: int = 443
    path: str = "psportsgate/psportsgate100"
    legacy_domains: tuple[str, ...] = ("vp.pixelsport.to",)

    @classmethod
    def from_config(cls, config) -> "StreamUrlTemplate":
        return cls(
            domain=config.stream_url_domain,
            port=config.stream_url_port,
            path=config.stream_url_path,
            legacy_domains=tuple(config.legacy_stream_domains),
        )

    def _build(self, domain: str, stream_id: int) -> str:
        return f"https://{domain}:{self.port}/{self.path}/{stream_id}.m3u8"

    def fallback_url(self, stream_id: int) -> str:
        """Canonical URL for a stream ID."""
        return self._build(self.domain, stream_id)

    def standardize(self, url: str) -> str:
        """Rewrite a URL onto the canonical template.

        Idempotent. Unrecognized formats (and non-strings) come back as given.
        """
        if not isinstance(url, str):
            return url
        stream_id = extract_stream_id(url)
        if stream_id is None:
            return url
        return self.fallback_url(stream_id)

    def alternate_host_url(self, url: str) -> str | None:
        """Same stream on the first legacy host, for player-side failover.

        A URL already on a legacy host maps back to the canonical host.
        """
        stream_id = extract_stream_id(url) if isinstance(url, str) else None
        if stream_id is None or not self.legacy_domains:
            return None
        if any(f"//{legacy}" in url for legacy in self.legacy_domains):
            return self._build(self.domain, stream_id)
        return self._build(self.legacy_domains[0], stream_id)


def extract_stream_id(url: str) -> int | None:
    """Trailing numeric stream ID of a playlist URL, if any."""
    if not url:
        return None
    match = STREAM_ID_PATTERN.search(url.strip())
    return int(match.group(1)) if match else None


def migrate_stream_url(
    url: str,
    from_version: int,
    registry: _IdTranslator,
    template: StreamUrlTemplate,
) -> str | None:
    """Rewrite a URL recorded under an older mapping version.

    Returns:
        The standardized URL for the translated stream ID, the URL unchanged
        when it carries no stream ID, or None when the ID has no safe mapping.
    """
    stream_id = extract_stream_id(url)
    if stream_id is None:
        return url
    new_id = registry.translate_stream_id(stream_id, from_version)
    if new_id is None:
        return None
    if new_id != stream_id:
        logger.info(
            "[STREAM_URL] Migrated stream %d -> %d (mapping v%d)", stream_id, new_id, from_version
        )
    return template.fallback_url(new_id)
