from abc import abstractmethod

import httpx

from shared.clients.ClientInterface import ClientInterface
from shared.clients.filehost.models.Interstitial import InterstitialForm
from shared.helper.HelperConfig import HelperConfig


class FileHostClientInterface(ClientInterface):
    """Client for the third-party host the reports are shared from.

    Engines know the host's link shapes and its confirmation page markup; the
    interface owns the fetch and the single follow-up fetch.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ############### CHECKER ##################
    ##########################################

    @abstractmethod
    def is_host_link(self, link: str) -> bool:
        """
        Returns True if the link points to a domain served by this host.

        Args:
            link (str): A share link from the metadata table.
        """
        pass

    def is_interstitial(self, response: httpx.Response) -> bool:
        """
        Returns True if the response declares markup instead of the binary payload.

        Args:
            response (httpx.Response): The response of the first fetch.
        """
        content_type = response.headers.get("content-type", "").lower()
        return "text/html" in content_type

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "filehost"
        """
        return "filehost"

    ################ LINKS ##################
    @abstractmethod
    def get_direct_download_url(self, share_link: str) -> str:
        """
        Rewrites a share link into a direct-download URL. Pure string transformation.

        Args:
            share_link (str): The share link as stored in the metadata table.

        Returns:
            str: The direct-download URL, or the input unchanged if its shape is unknown.
        """
        pass

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    @abstractmethod
    def parse_interstitial(self, html: str, page_url: str | None = None) -> InterstitialForm | None:
        """
        Extracts the download form from a confirmation page.

        Args:
            html (str): The body of the confirmation page.
            page_url (str | None): URL of the page, used to resolve a relative form target.

        Returns:
            InterstitialForm | None: The parsed form, or None if the mandatory fields are missing.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_fetch(self, url: str) -> httpx.Response:
        """Fetch a URL from the host, following redirects.

        Raises:
            httpx.HTTPError: On network errors.
        """
        return await self.do_request(method="GET", url=url, follow_redirects=True)

    async def do_resolve_interstitial(self, response: httpx.Response) -> bytes | None:
        """Submit the confirmation form of an interstitial page and return the real payload.

        The content type of the second response is not checked; the caller
        validates the returned bytes.

        Args:
            response (httpx.Response): The interstitial response of the first fetch.

        Returns:
            bytes | None: The payload of the follow-up fetch, or None if the form could not
                          be parsed or the follow-up fetch failed. There is no retry.
        """
        form = self.parse_interstitial(response.text, page_url=str(response.url))
        if form is None:
            self.logging.warning("Interstitial page from %s has no usable download form.", response.url)
            return None

        followup_url = form.get_followup_url()
        self.logging.info("Submitting interstitial form for file id %s: %s", form.id, followup_url)
        try:
            followup = await self.do_fetch(followup_url)
        except httpx.HTTPError as e:
            self.logging.error("Interstitial follow-up fetch for %s failed: %s", followup_url, e)
            return None

        if not followup.is_success or not followup.content:
            self.logging.error(
                "Interstitial follow-up fetch for %s returned status %d with %d bytes.",
                followup_url, followup.status_code, len(followup.content),
            )
            return None
        return followup.content
