#!/usr/bin/env python
"""
AWS SigV2/SigV4 request authentication for S3-compatible services.
"""
from .auth import Authenticator, generate_v4_headers, public_user_info
from .authinfo import AuthInfo
from .exc import AuthError, InvalidSignatureError, errors
from .request import AuthRequest
from .requestcontext import RequestContext
from .streaming import V4Transform
from .vault import Vault

__all__ = [
    "AuthError", "AuthInfo", "AuthRequest", "Authenticator",
    "InvalidSignatureError", "RequestContext", "V4Transform", "Vault",
    "errors", "generate_v4_headers", "public_user_info",
]

# Local variables:
# mode: Python
# tab-width: 8
# indent-tabs-mode: nil
# End:
# vi: set expandtab tabstop=8
