import os
import logging
import uuid
from typing import Optional

from werkzeug.utils import secure_filename

logger = logging.getLogger(__name__)


class StorageError(Exception):
    pass


class StorageService:
    """
    Armazenamento local dos arquivos de certificado A1 (.pfx/.p12).

    Paths handed back are relative to the storage root, so the upload
    folder can move without rewriting the database.
    """

    def __init__(self, root_folder: str):
        self.root_folder = os.path.abspath(root_folder)

    @classmethod
    def from_config(cls, cfg) -> 'StorageService':
        return cls(cfg['UPLOAD_FOLDER'])

    def save_certificate_file(self, content: bytes, company_id: int, certificate_id: int, filename: str) -> str:
        safe_name = secure_filename(filename) or "certificado.pfx"
        relative_path = os.path.join(
            "certificates", str(company_id), f"{certificate_id}_{uuid.uuid4().hex[:8]}_{safe_name}"
        )
        target_path = self._resolve(relative_path)
        os.makedirs(os.path.dirname(target_path), exist_ok=True)

        with open(target_path, 'wb') as f:
            f.write(content)

        logger.info(f"✅ Arquivo de certificado salvo: {relative_path}")
        return relative_path

    def read(self, relative_path: str) -> bytes:
        target_path = self._resolve(relative_path)
        if not os.path.isfile(target_path):
            raise StorageError(f"Arquivo não encontrado: {relative_path}")
        with open(target_path, 'rb') as f:
            return f.read()

    def delete(self, relative_path: Optional[str]) -> bool:
        if not relative_path:
            return False
        target_path = self._resolve(relative_path)
        if os.path.isfile(target_path):
            os.remove(target_path)
            logger.info(f"🗑️ Arquivo de certificado removido: {relative_path}")
            return True
        return False

    def _resolve(self, relative_path: str) -> str:
        target_path = os.path.abspath(os.path.join(self.root_folder, relative_path))
        # Reject anything that escapes the storage root
        if os.path.commonpath([self.root_folder, target_path]) != self.root_folder:
            raise StorageError(f"Caminho inválido: {relative_path}")
        return target_path
