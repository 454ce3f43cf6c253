import re
from urllib.parse import parse_qs, urljoin, urlparse

from bs4 import BeautifulSoup, Tag

from shared.clients.filehost.FileHostClientInterface import FileHostClientInterface
from shared.clients.filehost.models.Interstitial import FORM_FIELDS, InterstitialForm
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig

_FILE_PATH_ID = re.compile(r"/file/d/([a-zA-Z0-9_-]+)")
_FILE_ID = re.compile(r"^[a-zA-Z0-9_-]+$")
_DOWNLOAD_FORM_ID = "download-form"


def _get_attr(tag: Tag, name: str) -> str | None:
    value = tag.get(name)
    if isinstance(value, list):
        value = " ".join(value)
    return value


class FileHostClientGdrive(FileHostClientInterface):
    """Google Drive share links and its large-file virus scan warning page."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default="https://drive.google.com", val_type="string").rstrip("/")
        self._allowed_domains = [d.lower() for d in self.get_config_val("ALLOWED_DOMAINS", default=["drive.google.com"], val_type="list")]
        self._confirm_bypass = self.get_config_val("CONFIRM_BYPASS", default=True, val_type="bool")

    ##########################################
    ############### CHECKER ##################
    ##########################################

    def is_host_link(self, link: str) -> bool:
        hostname = self._get_hostname(link)
        if not hostname:
            return False
        return any(hostname == domain or hostname.endswith(f".{domain}") for domain in self._allowed_domains)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Gdrive"

    @staticmethod
    def _get_hostname(link: str) -> str | None:
        link = link.strip()
        if "://" not in link:
            link = f"https://{link}"
        return (urlparse(link).hostname or "").lower() or None

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default="https://drive.google.com"),
            EnvConfig(env_key="ALLOWED_DOMAINS", val_type="list", default=["drive.google.com"]),
            EnvConfig(env_key="CONFIRM_BYPASS", val_type="bool", default=True),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/"

    ################ LINKS ##################
    def extract_file_id(self, share_link: str) -> str | None:
        """
        Extracts the file id from the two known share link shapes.

        Shapes:
            https://drive.google.com/file/d/<ID>/view?usp=sharing
            https://drive.google.com/uc?id=<ID>  (also /open?id=<ID>, any extra parameters)

        Returns:
            str | None: The file id, or None if the link has neither shape.
        """
        match = _FILE_PATH_ID.search(share_link)
        if match:
            return match.group(1)

        if not self.is_host_link(share_link):
            return None
        parsed = urlparse(share_link if "://" in share_link else f"https://{share_link}")
        if parsed.path.rstrip("/") not in ("/uc", "/open"):
            return None
        ids = parse_qs(parsed.query).get("id")
        if ids and _FILE_ID.match(ids[0]):
            return ids[0]
        return None

    def get_direct_download_url(self, share_link: str) -> str:
        file_id = self.extract_file_id(share_link)
        if file_id is None:
            return share_link
        url = f"{self._base_url}/uc?export=download&id={file_id}"
        if self._confirm_bypass:
            url += "&confirm=t"
        return url

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def parse_interstitial(self, html: str, page_url: str | None = None) -> InterstitialForm | None:
        """
        Parses the "Google Drive can't scan this file for viruses" page.

        The page carries a GET form (id="download-form") whose hidden inputs are
        id, export, authuser, confirm, uuid and at. Only the target and id are mandatory.
        """
        soup = BeautifulSoup(html or "", "html.parser")
        form = soup.find("form", id=_DOWNLOAD_FORM_ID)
        if form is None:
            # otherwise the first form carrying an id field
            form = next((f for f in soup.find_all("form") if f.find("input", attrs={"name": "id"})), None)
        if form is None:
            return None

        action = (_get_attr(form, "action") or "").strip()
        if not action:
            return None
        if page_url:
            action = urljoin(page_url, action)

        fields: dict[str, str] = {}
        for input_tag in form.find_all("input"):
            name = _get_attr(input_tag, "name")
            if name in FORM_FIELDS and name not in fields:
                fields[name] = _get_attr(input_tag, "value") or ""

        if not fields.get("id"):
            return None
        return InterstitialForm(action=action, **fields)
