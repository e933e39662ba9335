import asyncio
from abc import abstractmethod

from shared.clients.ClientInterface import ClientInterface
from shared.clients.source.OfficeTextExtractor import extract_text
from shared.errors import UnsupportedFormat
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import DocumentMeta


class SourceClientInterface(ClientInterface):
    """Drive-like document store the core lists, reads and organizes files in.

    Subclasses supply endpoints and response parsing; listing, text extraction
    and folder/shortcut creation are driven from here.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "source"

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_files(self) -> str:
        """
        Returns the endpoint path for listing and creating files (e.g. "/files").
        """
        pass

    @abstractmethod
    def _get_endpoint_file_details(self, file_id: str) -> str:
        """
        Returns the endpoint path for a single file (e.g. "/files/{id}").
        """
        pass

    @abstractmethod
    def _get_endpoint_file_export(self, file_id: str) -> str:
        """
        Returns the endpoint path used to export a native document as text.
        """
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_list_params(self, page_size: int, order_by: str, filter_expr: str) -> dict:
        """Build the query parameters of a file listing request."""
        pass

    @abstractmethod
    def get_folder_payload(self, name: str) -> dict:
        """Build the request body creating a folder named `name`."""
        pass

    @abstractmethod
    def get_shortcut_payload(self, file_id: str, folder_id: str, file_name: str) -> dict:
        """Build the request body creating a shortcut to `file_id` inside `folder_id`."""
        pass

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    @abstractmethod
    def get_export_mime_type(self, mime_type: str | None) -> str | None:
        """
        Returns the text format a native document is exported as, or None if
        the type is not exportable.
        """
        pass

    @abstractmethod
    def is_downloadable_text(self, mime_type: str | None) -> bool:
        """Returns True if the file's raw bytes are plain text."""
        pass

    @abstractmethod
    def is_extractable_binary(self, mime_type: str | None) -> bool:
        """Returns True if the file's raw bytes are an office format text can be extracted from."""
        pass

    @abstractmethod
    async def _parse_file_listing(self, response: dict) -> list[DocumentMeta]:
        """Convert a raw listing response into DocumentMeta records.

        Async because resolving folder paths may require further requests.
        """
        pass

    @abstractmethod
    def _parse_created_id(self, response: dict) -> str:
        """Extract the ID of a freshly created file or folder."""
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_list_candidates(self, page_size: int, order_by: str, filter_expr: str) -> list[DocumentMeta]:
        """List candidate files for a sync pass.

        Args:
            page_size (int): Maximum number of files to return.
            order_by (str): Sort expression, e.g. "modifiedTime desc".
            filter_expr (str): Backend filter expression, e.g. "trashed=false".

        Returns:
            list[DocumentMeta]: The listed files in backend order.
        """
        response = await self.do_request(
            method="GET",
            endpoint=self._get_endpoint_files(),
            params=self.get_list_params(page_size, order_by, filter_expr),
            raise_on_error=True,
        )
        files = await self._parse_file_listing(response.json())
        self.logging.debug("Listed %d files from %s (filter=%r).", len(files), self.get_engine_name(), filter_expr)
        return files

    async def do_fetch_mime_type(self, file_id: str) -> str | None:
        response = await self.do_request(
            method="GET",
            endpoint=self._get_endpoint_file_details(file_id),
            params={"fields": "mimeType"},
            raise_on_error=True,
        )
        return response.json().get("mimeType")

    async def do_get_content(self, file_id: str) -> str:
        """Extract the text content of a file.

        Args:
            file_id (str): The file to read.

        Returns:
            str: The extracted text.

        Raises:
            UnsupportedFormat: If the file's MIME type cannot be turned into text.
            Exception: If the backend request fails.
        """
        mime_type = await self.do_fetch_mime_type(file_id)

        export_type = self.get_export_mime_type(mime_type)
        if export_type is not None:
            response = await self.do_request(
                method="GET",
                endpoint=self._get_endpoint_file_export(file_id),
                params={"mimeType": export_type},
                raise_on_error=True,
            )
            return response.text

        if self.is_downloadable_text(mime_type):
            response = await self.do_request(
                method="GET",
                endpoint=self._get_endpoint_file_details(file_id),
                params={"alt": "media"},
                raise_on_error=True,
            )
            return response.text

        if self.is_extractable_binary(mime_type):
            response = await self.do_request(
                method="GET",
                endpoint=self._get_endpoint_file_details(file_id),
                params={"alt": "media"},
                raise_on_error=True,
            )
            # the parsers are synchronous
            return await asyncio.to_thread(extract_text, mime_type, response.content, file_id)

        raise UnsupportedFormat(mime_type, file_id)

    async def do_create_folder(self, name: str) -> str:
        """Create a folder and return its ID."""
        response = await self.do_request(
            method="POST",
            endpoint=self._get_endpoint_files(),
            json=self.get_folder_payload(name),
            params={"fields": "id"},
            raise_on_error=True,
        )
        return self._parse_created_id(response.json())

    async def do_create_shortcut(self, file_id: str, folder_id: str, file_name: str) -> str:
        """Create a non-destructive reference to a file inside a folder.

        The original file stays where it is.
        """
        response = await self.do_request(
            method="POST",
            endpoint=self._get_endpoint_files(),
            json=self.get_shortcut_payload(file_id, folder_id, file_name),
            params={"fields": "id"},
            raise_on_error=True,
        )
        return self._parse_created_id(response.json())
