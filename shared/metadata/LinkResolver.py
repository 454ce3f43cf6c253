"""Resolves logical report paths to their share links.

The metadata table is read fresh on every call; it is owned by the site's
content pipeline and may be replaced at any time.
"""

import asyncio
import csv
import io
import os

from pydantic import ValidationError

from shared.helper.HelperConfig import HelperConfig
from shared.models.document import DocumentRecord

DEFAULT_CSV_PATH = os.path.join("public", "reports_table.csv")


class MetadataSourceError(Exception):
    """The metadata table could not be read or parsed."""


class LinkResolver:
    """Looks up share links in the reports metadata CSV."""

    def __init__(self, helper_config: HelperConfig) -> None:
        self.logging = helper_config.get_logger()
        self._csv_path = helper_config.get_path_val("METADATA_CSV_PATH", default=DEFAULT_CSV_PATH)

    def get_csv_path(self) -> str:
        return self._csv_path

    ##########################################
    ################ LOADING #################
    ##########################################

    async def do_load_records(self) -> list[DocumentRecord]:
        """Read and parse the metadata table.

        Returns:
            list[DocumentRecord]: All well-formed rows in file order.

        Raises:
            MetadataSourceError: If the file cannot be read or parsed.
        """
        try:
            text = await asyncio.to_thread(self._read_text)
        except OSError as e:
            raise MetadataSourceError(f"Cannot read metadata table '{self._csv_path}': {e}") from e
        return self.parse_records(text)

    def _read_text(self) -> str:
        with open(self._csv_path, "r", encoding="utf-8-sig", newline="") as f:
            return f.read()

    def parse_records(self, text: str) -> list[DocumentRecord]:
        """Parse CSV text into records, skipping malformed rows with a warning.

        Raises:
            MetadataSourceError: If the CSV itself cannot be parsed.
        """
        records: list[DocumentRecord] = []
        reader = csv.DictReader(io.StringIO(text))
        try:
            for row in reader:
                if row.get(None):
                    self.logging.warning(
                        "Skipping metadata row %d: %d unexpected extra field(s).",
                        reader.line_num, len(row[None]),
                    )
                    continue
                try:
                    records.append(DocumentRecord.model_validate(row))
                except ValidationError as e:
                    self.logging.warning("Skipping malformed metadata row %d: %s", reader.line_num, e)
        except csv.Error as e:
            raise MetadataSourceError(f"Cannot parse metadata table '{self._csv_path}': {e}") from e
        return records

    ##########################################
    ############### RESOLVING ################
    ##########################################

    async def do_resolve(self, file_path: str) -> str | None:
        """Return the share link of the first row variant whose file path equals the path.

        Args:
            file_path (str): The logical file path, already decoded once from the request URL.
                             It is compared as is, a literal "%2F" stays "%2F".

        Returns:
            str | None: The share link, or None if the path is unknown, has no link,
                        or the metadata table is unavailable.
        """
        try:
            records = await self.do_load_records()
        except MetadataSourceError as e:
            self.logging.error("Link lookup for '%s' failed: %s", file_path, e)
            return None

        for record in records:
            link = record.get_link_for_path(file_path)
            if link:
                self.logging.debug("Resolved '%s' (case %s) to %s", file_path, record.case_reference, link)
                return link
        return None
