"""
Certificate file validation with magic bytes verification.

A1 certificates are uploaded as PKCS#12 containers (.pfx / .p12). The
extension alone proves nothing, so the content must look like a PKCS#12
PFX structure: a DER/BER SEQUENCE whose first element is INTEGER 3.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    """Result of file validation."""
    is_valid: bool
    file_type: Optional[str] = None
    error_message: Optional[str] = None
    error_code: Optional[str] = None


class CertificateFileValidator:
    """Validates uploaded certificate containers."""

    # SEQUENCE tag followed by a length octet: short form or long form (1-4 octets)
    SEQUENCE_TAG = 0x30
    # PFX version field: INTEGER, length 1, value 3
    PFX_VERSION = b'\x02\x01\x03'

    EXTENSION_MAP = {
        '.pfx': 'pkcs12',
        '.p12': 'pkcs12',
    }

    DEFAULT_MAX_SIZE = 10 * 1024 * 1024

    def __init__(self, max_size_bytes: Optional[int] = None):
        self.max_size_bytes = max_size_bytes or self.DEFAULT_MAX_SIZE

    def validate(self, file_content: bytes, filename: str) -> ValidationResult:
        if not file_content:
            return ValidationResult(
                is_valid=False,
                error_message="Arquivo vazio",
                error_code="EMPTY_FILE"
            )

        ok, message = self._validate_extension(filename)
        if not ok:
            logger.warning(f"Extensão rejeitada para certificado: {filename}")
            return ValidationResult(
                is_valid=False,
                error_message=message,
                error_code="FILE_TYPE_NOT_ALLOWED"
            )

        if len(file_content) > self.max_size_bytes:
            max_mb = self.max_size_bytes / (1024 * 1024)
            return ValidationResult(
                is_valid=False,
                file_type='pkcs12',
                error_message=f"Arquivo muito grande. Tamanho máximo: {max_mb:.1f} MB",
                error_code="FILE_TOO_LARGE"
            )

        if not self._looks_like_pkcs12(file_content):
            logger.warning(f"Conteúdo não é PKCS#12: {filename}")
            return ValidationResult(
                is_valid=False,
                error_message="O arquivo não é um certificado PKCS#12 válido (.pfx/.p12)",
                error_code="INVALID_CERTIFICATE_FILE"
            )

        logger.info(f"File validation passed: {filename} (type: pkcs12)")
        return ValidationResult(is_valid=True, file_type='pkcs12')

    def _validate_extension(self, filename: str) -> Tuple[bool, str]:
        ext = os.path.splitext((filename or '').lower())[1]
        if not ext:
            return False, "Arquivo sem extensão"
        if ext not in self.EXTENSION_MAP:
            return False, f"Extensão {ext} não permitida. Envie um arquivo .pfx ou .p12"
        return True, ""

    def _looks_like_pkcs12(self, content: bytes) -> bool:
        if len(content) < 5 or content[0] != self.SEQUENCE_TAG:
            return False

        length_octet = content[1]
        if length_octet < 0x80:
            header = 2
        elif length_octet == 0x80:
            header = 2  # BER indefinite length
        elif length_octet <= 0x84:
            header = 2 + (length_octet - 0x80)
        else:
            return False

        return content[header:header + 3] == self.PFX_VERSION
