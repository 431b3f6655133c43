from .unit_of_work import UnitOfWork
from .user_repository import UserRepository
from .company_repository import CompanyRepository
from .certificate_repository import CertificateRepository
from .certificate_system_repository import CertificateSystemRepository
from .permission_repository import PermissionRepository
from .activity_log_repository import ActivityLogRepository
from .reveal_code_repository import RevealCodeRepository
