"""Binary signature checks for fetched payloads."""

PDF_MAGIC = b"%PDF"


class HelperPayload:
    """Checks fetched bytes against the magic number of the expected format."""

    @staticmethod
    def has_magic(data: bytes | None, magic: bytes) -> bool:
        """
        Returns True if data starts with the given magic number.

        Empty input and input shorter than the magic number never match.
        """
        if not data or len(data) < len(magic):
            return False
        return data[: len(magic)] == magic

    @staticmethod
    def is_pdf(data: bytes | None) -> bool:
        """Returns True if data carries the four-byte PDF signature."""
        return HelperPayload.has_magic(data, PDF_MAGIC)
