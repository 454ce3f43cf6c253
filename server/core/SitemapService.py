"""Sitemap for the report archive: locale pages plus one entry per report file."""

from datetime import date, datetime, timezone
from urllib.parse import quote
from xml.sax.saxutils import escape

from shared.helper.HelperConfig import HelperConfig
from shared.metadata.LinkResolver import LinkResolver, MetadataSourceError
from shared.models.document import DocumentRecord

LOCALES = ("en", "zh-HK")
FALLBACK_LASTMOD = "2020-01-01"


def get_lastmod(record: DocumentRecord) -> str:
    """Return the sitemap lastmod date of a record.

    "Completed on" wins over "Declared on". A bare year maps to its last day,
    a year-month to the first of the month.
    """
    raw = record.completed_on or record.declared_on
    if not raw:
        return FALLBACK_LASTMOD
    raw = raw.strip()
    if len(raw) == 4:
        raw += "-12-31"
    elif len(raw) == 7:
        raw += "-01"
    try:
        return date.fromisoformat(raw[:10]).isoformat()
    except ValueError:
        return FALLBACK_LASTMOD


def encode_file_path(file_path: str) -> str:
    """Percent-encode each segment of a logical path, keeping the slashes."""
    return "/".join(quote(segment, safe="!~*'()") for segment in file_path.split("/"))


class SitemapService:
    """Builds sitemap.xml from the reports metadata table."""

    def __init__(self, helper_config: HelperConfig, link_resolver: LinkResolver) -> None:
        self.logging = helper_config.get_logger()
        self._link_resolver = link_resolver
        self._site_url = helper_config.get_string_val("SITE_URL", default="https://ombudsman-reports.vercel.app").rstrip("/")

    async def do_list_file_urls(self) -> list[tuple[str, str]]:
        """Return (absolute file URL, lastmod) for every report file, EN before TC before SC per row."""
        try:
            records = await self._link_resolver.do_load_records()
        except MetadataSourceError as e:
            self.logging.error("Error reading metadata for sitemap: %s", e)
            return []

        urls: list[tuple[str, str]] = []
        for record in records:
            lastmod = get_lastmod(record)
            for file_path in record.get_file_paths():
                urls.append((f"{self._site_url}/files/{encode_file_path(file_path)}", lastmod))
        return urls

    async def do_build_sitemap(self) -> str:
        """Render the complete sitemap XML document."""
        file_urls = await self.do_list_file_urls()
        today = datetime.now(timezone.utc).date().isoformat()

        parts = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9" xmlns:xhtml="http://www.w3.org/1999/xhtml">',
        ]
        for locale in LOCALES:
            parts.append("  <url>")
            parts.append(f"    <loc>{escape(self._site_url)}/{locale}</loc>")
            parts.append(f"    <lastmod>{today}</lastmod>")
            parts.append("    <changefreq>weekly</changefreq>")
            parts.append("    <priority>1.0</priority>")
            for alt_locale in LOCALES:
                parts.append(
                    f'    <xhtml:link rel="alternate" hreflang="{alt_locale}" href="{escape(self._site_url)}/{alt_locale}" />'
                )
            parts.append("  </url>")

        parts.append("  <url>")
        parts.append(f"    <loc>{escape(self._site_url)}</loc>")
        parts.append(f"    <lastmod>{today}</lastmod>")
        parts.append("    <changefreq>weekly</changefreq>")
        parts.append("    <priority>0.9</priority>")
        parts.append("  </url>")

        for url, lastmod in file_urls:
            parts.append("  <url>")
            parts.append(f"    <loc>{escape(url)}</loc>")
            parts.append(f"    <lastmod>{lastmod}</lastmod>")
            parts.append("    <changefreq>monthly</changefreq>")
            parts.append("    <priority>0.8</priority>")
            parts.append("  </url>")

        parts.append("</urlset>")
        self.logging.debug("Sitemap built with %d file entries.", len(file_urls))
        return "\n".join(parts) + "\n"
