from urllib.parse import urlencode

from pydantic import BaseModel

# order of the hidden fields in the follow-up query string
FORM_FIELDS = ("id", "export", "authuser", "confirm", "uuid", "at")


class InterstitialForm(BaseModel):
    """Hidden download form parsed from a file host's confirmation page.

    Attributes:
        action:   Submission target of the form (mandatory).
        id:       File identifier (mandatory).
        export:   Export flag, usually "download".
        authuser: User index.
        confirm:  Confirmation token.
        uuid:     Single-use download UUID.
        at:       Access timestamp token.
    """

    action: str
    id: str
    export: str | None = None
    authuser: str | None = None
    confirm: str | None = None
    uuid: str | None = None
    at: str | None = None

    def get_query_params(self) -> list[tuple[str, str]]:
        """Return the present form fields as ordered query parameters."""
        return [(name, getattr(self, name)) for name in FORM_FIELDS if getattr(self, name) is not None]

    def get_followup_url(self) -> str:
        """Build the URL that submits the form as a GET request."""
        separator = "&" if "?" in self.action else "?"
        return f"{self.action}{separator}{urlencode(self.get_query_params())}"
