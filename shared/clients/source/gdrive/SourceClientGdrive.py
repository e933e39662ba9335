from shared.clients.source.OfficeTextExtractor import is_extractable
from shared.clients.source.SourceClientInterface import SourceClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig
from shared.models.document import DocumentMeta

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
SHORTCUT_MIME_TYPE = "application/vnd.google-apps.shortcut"
LIST_FIELDS = "files(id,name,mimeType,modifiedTime,size,webViewLink,parents)"
MAX_FOLDER_DEPTH = 8
FOLDER_CACHE_SIZE = 1024

# native Google formats and the text format each is exported as
_EXPORT_TYPES: dict[str, str] = {
    "application/vnd.google-apps.document": "text/plain",
    "application/vnd.google-apps.spreadsheet": "text/csv",
    "application/vnd.google-apps.presentation": "text/plain",
}


class SourceClientGdrive(SourceClientInterface):
    """Google Drive v3 content source.

    Authenticates with a bearer access token from SOURCE_GDRIVE_ACCESS_TOKEN;
    obtaining and refreshing that token is left to the surrounding application.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default="https://www.googleapis.com/drive/v3", val_type="string")
        self._access_token = self.get_config_val("ACCESS_TOKEN", default=None, val_type="string")

        # folder id -> (name, parent id), filled while resolving folder paths
        self._folder_cache: dict[str, tuple[str, str | None] | None] = {}
        self._root_folder_id: str | None = None

    async def boot(self) -> None:
        await super().boot()
        response = await self.do_request(
            method="GET",
            endpoint=self._get_endpoint_file_details("root"),
            params={"fields": "id"},
            raise_on_error=True,
        )
        self._root_folder_id = response.json().get("id")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Gdrive"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default="https://www.googleapis.com/drive/v3"),
            EnvConfig(env_key="ACCESS_TOKEN", val_type="string", default=None),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        return {"Authorization": f"Bearer {self._access_token}"}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/about?fields=user"

    def _get_endpoint_files(self) -> str:
        return "/files"

    def _get_endpoint_file_details(self, file_id: str) -> str:
        return f"/files/{file_id}"

    def _get_endpoint_file_export(self, file_id: str) -> str:
        return f"/files/{file_id}/export"

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    def get_list_params(self, page_size: int, order_by: str, filter_expr: str) -> dict:
        return {
            "pageSize": page_size,
            "orderBy": order_by,
            "q": filter_expr,
            "fields": LIST_FIELDS,
        }

    def get_folder_payload(self, name: str) -> dict:
        return {"name": name, "mimeType": FOLDER_MIME_TYPE}

    def get_shortcut_payload(self, file_id: str, folder_id: str, file_name: str) -> dict:
        return {
            "name": file_name,
            "mimeType": SHORTCUT_MIME_TYPE,
            "shortcutDetails": {"targetId": file_id},
            "parents": [folder_id],
        }

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def get_export_mime_type(self, mime_type: str | None) -> str | None:
        return _EXPORT_TYPES.get(mime_type or "")

    def is_downloadable_text(self, mime_type: str | None) -> bool:
        return mime_type == "text/plain"

    def is_extractable_binary(self, mime_type: str | None) -> bool:
        return is_extractable(mime_type)

    async def _parse_file_listing(self, response: dict) -> list[DocumentMeta]:
        documents: list[DocumentMeta] = []
        for raw in response.get("files", []) or []:
            if not raw.get("id"):
                continue
            documents.append(
                DocumentMeta(
                    file_id=raw["id"],
                    name=raw.get("name") or "Untitled",
                    mime_type=raw.get("mimeType"),
                    modified_time=raw.get("modifiedTime"),
                    size=raw.get("size"),
                    web_view_link=raw.get("webViewLink"),
                    folder_path=await self._resolve_folder_path(raw.get("parents") or []),
                )
            )
        return documents

    def _parse_created_id(self, response: dict) -> str:
        created_id = response.get("id")
        if not created_id:
            raise ValueError(f"Drive response does not contain an id. Response keys: {list(response.keys())}")
        return created_id

    ##########################################
    ############ FOLDER PATHS ################
    ##########################################

    async def _fetch_folder(self, folder_id: str) -> tuple[str, str | None] | None:
        if folder_id in self._folder_cache:
            return self._folder_cache[folder_id]

        response = await self.do_request(
            method="GET",
            endpoint=self._get_endpoint_file_details(folder_id),
            params={"fields": "name,parents"},
        )
        folder = None
        if response.status_code == 200:
            data = response.json()
            parents = data.get("parents") or []
            folder = (data.get("name") or folder_id, parents[0] if parents else None)
        else:
            self.logging.debug("Could not resolve folder %s (status %d).", folder_id, response.status_code)
        if len(self._folder_cache) >= FOLDER_CACHE_SIZE:
            # evict the oldest entry
            self._folder_cache.pop(next(iter(self._folder_cache)))
        self._folder_cache[folder_id] = folder
        return folder

    async def _resolve_folder_path(self, parent_ids: list[str]) -> str | None:
        """Build a "Parent/Child" path for a file's first parent.

        Returns None for files living directly in My Drive or whose parents
        cannot be read.
        """
        if not parent_ids:
            return None

        segments: list[str] = []
        folder_id: str | None = parent_ids[0]
        for _ in range(MAX_FOLDER_DEPTH):
            if folder_id is None or folder_id == self._root_folder_id:
                break
            folder = await self._fetch_folder(folder_id)
            if folder is None:
                break
            name, folder_id = folder
            segments.insert(0, name)
        return "/".join(segments) or None
