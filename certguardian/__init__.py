"""CertificadoGuardian: inventário de certificados digitais A1/A3 com alertas de vencimento."""

__version__ = "1.0.0"
