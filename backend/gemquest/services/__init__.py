"""
Services Module

Authentication and authorization core:
- Tokens: single-use confirmation/reset token lifecycle
- RBAC: effective roles (direct plus group-derived) per client scope
- Authorization: role/permission policy gate
- Auth flows: registration, confirmation, login, password reset, invitations
- Mailer: outbound email (SMTP or console)
"""

from .tokens import TokenManager
from .rbac import RBACResolver
from .authorization import AuthorizationGate, Policy, check_policy
from .mailer import ConsoleMailer, Mailer, SmtpMailer, build_mailer
from .auth_flows import AuthService, user_to_dict

__all__ = [
    # Tokens
    "TokenManager",
    # RBAC / authorization
    "RBACResolver",
    "AuthorizationGate",
    "Policy",
    "check_policy",
    # Mail
    "Mailer",
    "ConsoleMailer",
    "SmtpMailer",
    "build_mailer",
    # Flows
    "AuthService",
    "user_to_dict",
]
