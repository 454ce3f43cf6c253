"""Metadata table row model: one report with up to three language variants."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

LANGUAGES = ("en", "tc", "sc")


class DocumentRecord(BaseModel):
    """
    Represents one row of the reports metadata table.

    Only the per-language file paths and share links matter for file
    resolution; the descriptive fields are carried for the sitemap and for
    log output.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    year: str | None = Field(default=None, alias="Year")
    case_reference: str | None = Field(default=None, alias="Case Reference")
    title_en: str | None = Field(default=None, alias="Title in English")
    title_tc: str | None = Field(default=None, alias="Title in Traditional Chinese")
    title_sc: str | None = Field(default=None, alias="Title in Simplified Chinese")
    organizations: str | None = Field(default=None, alias="Organizations concerned")
    declared_on: str | None = Field(default=None, alias="Declared on")
    completed_on: str | None = Field(default=None, alias="Completed on")
    report_type: str | None = Field(default=None, alias="Report Type")

    file_path_en: str | None = Field(default=None, alias="File Path (English)")
    file_path_tc: str | None = Field(default=None, alias="File Path (Traditional Chinese)")
    file_path_sc: str | None = Field(default=None, alias="File Path (Simplified Chinese)")
    link_en: str | None = Field(default=None, alias="Google Drive Link (EN)")
    link_tc: str | None = Field(default=None, alias="Google Drive Link (TC)")
    link_sc: str | None = Field(default=None, alias="Google Drive Link (SC)")

    @field_validator("*", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def get_file_paths(self) -> list[str]:
        """Return all non-empty logical file paths in language order (EN, TC, SC)."""
        paths = [getattr(self, f"file_path_{lang}") for lang in LANGUAGES]
        return [p for p in paths if p]

    def get_link_for_path(self, file_path: str) -> str | None:
        """
        Returns the share link of the language variant whose file path equals file_path.

        Args:
            file_path (str): The decoded logical file path.

        Returns:
            str | None: The share link, or None if no variant matches or the matching variant has no link.
        """
        for lang in LANGUAGES:
            link = getattr(self, f"link_{lang}")
            if getattr(self, f"file_path_{lang}") == file_path and link:
                return link
        return None
