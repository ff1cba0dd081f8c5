from .audit_log import AuditLog
from .client import Client
from .payment import Payment
from .payment_method import PaymentMethod
from .permission import Permission, UserPermission
from .plan import Plan
from .sector import Sector
from .service_type import ServiceType
from .status import Status
from .tariff import Tariff
from .user import User
