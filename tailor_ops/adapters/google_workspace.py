import io
import json
import logging
from typing import Any, Dict, Optional

from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.http import MediaIoBaseUpload

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"


class GoogleWorkspaceClient:
    """Thin wrapper over the Docs v1 and Drive v3 calls used for invoices.

    Credentials come from a service account, either a key file path or the
    key JSON itself:
      - GOOGLE_SERVICE_ACCOUNT_FILE: path to service account JSON
      - GOOGLE_SERVICE_ACCOUNT_JSON: credentials JSON payload (alternative to FILE)

    The built services hold one httplib2 connection and are not thread-safe,
    so a client must not be shared between threads. Credentials may be.

    Every method performs exactly one API request and lets googleapiclient
    errors propagate; the caller decides how a failed step is reported.
    """

    SCOPES = [
        "https://www.googleapis.com/auth/drive",
        "https://www.googleapis.com/auth/documents",
    ]

    def __init__(self, credentials_file: Optional[str] = None, credentials_json: Optional[str] = None,
                 docs_service: Any = None, drive_service: Any = None, credentials: Any = None) -> None:
        self.credentials_file = credentials_file
        self.credentials_json = credentials_json
        self.credentials = credentials
        self._docs = docs_service
        self._drive = drive_service

    def _credentials(self):
        if self.credentials is None:
            self.credentials = self.load_credentials(self.credentials_file, self.credentials_json)
        return self.credentials

    @classmethod
    def load_credentials(cls, credentials_file: Optional[str] = None, credentials_json: Optional[str] = None):
        """Service account credentials from inline JSON or a key file"""
        if credentials_json:
            info = json.loads(credentials_json)
            return service_account.Credentials.from_service_account_info(info, scopes=cls.SCOPES)
        return service_account.Credentials.from_service_account_file(credentials_file, scopes=cls.SCOPES)

    @property
    def docs(self):
        if self._docs is None:
            self._docs = build("docs", "v1", credentials=self._credentials(), cache_discovery=False)
        return self._docs

    @property
    def drive(self):
        if self._drive is None:
            self._drive = build("drive", "v3", credentials=self._credentials(), cache_discovery=False)
        return self._drive

    def copy_document(self, template_id: str, name: str) -> str:
        """Copy a Drive document and return the new file id"""
        copy = self.drive.files().copy(fileId=template_id, body={"name": name}, fields="id").execute()
        logger.info(f"Copied template {template_id} to {copy['id']} ({name})")
        return copy["id"]

    def replace_all_text(self, document_id: str, replacements: Dict[str, str]) -> Dict[str, Any]:
        """Apply one case-sensitive replaceAllText request per placeholder, as a single batch"""
        requests = [
            {
                "replaceAllText": {
                    "containsText": {"text": placeholder, "matchCase": True},
                    "replaceText": value,
                }
            }
            for placeholder, value in replacements.items()
        ]
        return self.docs.documents().batchUpdate(
            documentId=document_id,
            body={"requests": requests},
        ).execute()

    def export_pdf(self, file_id: str) -> bytes:
        """Export a Google Doc as PDF bytes"""
        content = self.drive.files().export(fileId=file_id, mimeType=PDF_MIME_TYPE).execute()
        logger.info(f"Exported {file_id} as PDF ({len(content)} bytes)")
        return content

    def upload_pdf(self, name: str, content: bytes, parent_id: str) -> str:
        """Upload PDF bytes into a folder and return the new file id"""
        media = MediaIoBaseUpload(io.BytesIO(content), mimetype=PDF_MIME_TYPE, resumable=False)
        uploaded = self.drive.files().create(
            body={"name": name, "mimeType": PDF_MIME_TYPE, "parents": [parent_id]},
            media_body=media,
            fields="id",
        ).execute()
        logger.info(f"Uploaded {name} as {uploaded['id']}")
        return uploaded["id"]

    def share_publicly(self, file_id: str) -> Dict[str, Any]:
        """Grant read access to anyone with the link"""
        return self.drive.permissions().create(
            fileId=file_id,
            body={"role": "reader", "type": "anyone"},
        ).execute()

    def get_view_link(self, file_id: str) -> str:
        meta = self.drive.files().get(fileId=file_id, fields="webViewLink, webContentLink").execute()
        return meta["webViewLink"]

    def delete_file(self, file_id: str) -> None:
        self.drive.files().delete(fileId=file_id).execute()
        logger.info(f"Deleted Drive file {file_id}")
